"""
Element fingerprinting.

Turns a raw element snapshot into a de-duplication key and an unfiltered
Variation. The key is a heuristic (tag, raw class string and rounded page
position), not a structural hash: two elements with the same tag, classes and
position are treated as the same element, which absorbs selectors that match
overlapping ancestor/descendant sets. Text and descendant structure are not
part of the key.
"""

import re
from typing import List, Tuple

from element_scraper.models import AnchorInfo, ImageInfo, RawElementSnapshot, Variation

MAX_TEXT_LENGTH = 150
MAX_ALT_LENGTH = 50
BRIEF_TEXT_LENGTH = 30
MIN_TEXT_LENGTH = 20

_NTH_CHILD_RE = re.compile(r':\s*nth-child\(\d+\)')


def fingerprint_key(snapshot: RawElementSnapshot) -> str:
    box = snapshot.bounding_box
    x = round(box.x) if box else 0
    y = round(box.y) if box else 0
    return f"{snapshot.tag_name}-{snapshot.class_attr}-{x}-{y}"


def describe_image(image: ImageInfo) -> str:
    """Short label for an image: alt text, else the file name, else a bare marker."""
    if image.alt:
        suffix = '...' if len(image.alt) > MAX_ALT_LENGTH else ''
        return f"[Image: {image.alt[:MAX_ALT_LENGTH]}{suffix}]"
    filename = image.src.split('/')[-1] or image.src
    if filename:
        return f"[Image: {filename}]"
    return "[Image]"


def summarize_content(text: str, images: List[ImageInfo]) -> str:
    """
    Summarize an element's content for display.

    Elements with images and little text are described by their images only;
    longer text is cut to a brief prefix followed by the image labels.
    """
    trimmed = text.strip()
    if not images:
        return trimmed

    image_info = ', '.join(describe_image(image) for image in images)
    if len(trimmed) < MIN_TEXT_LENGTH:
        return image_info

    ellipsis = '...' if len(text) > BRIEF_TEXT_LENGTH else ''
    return f"{trimmed[:BRIEF_TEXT_LENGTH]}{ellipsis} ({image_info})"


def build_selectors(selector: str, tag_name: str, position: int) -> Tuple[str, str]:
    """
    Build positional locators for re-querying an element later.

    Returns (display selector, actual selector). Any existing nth-child clause is
    stripped first. The display selector swaps a literal ``*`` for the tag name;
    the actual selector keeps the original text.
    """
    base = _NTH_CHILD_RE.sub('', selector, count=1)
    display = f"{base.replace('*', tag_name, 1)}:nth-child({position})"
    actual = f"{base}:nth-child({position})"
    return display, actual


def extract_anchor_info(snapshot: RawElementSnapshot) -> AnchorInfo:
    heading_ids = [i for i in snapshot.heading_ids if i and i.strip()]
    other_ids = [
        i for i in snapshot.descendant_ids
        if i and i.strip() and i not in heading_ids
    ]
    anchor_links = []
    for href in snapshot.anchor_hrefs:
        if href and '#' in href:
            fragment = href.split('#')[1]
            if fragment.strip():
                anchor_links.append(fragment)
    return AnchorInfo(
        element_id=snapshot.element_id or None,
        heading_ids=heading_ids,
        other_ids=other_ids,
        anchor_links=anchor_links,
    )


def build_variation(snapshot: RawElementSnapshot, selector: str, index: int) -> Variation:
    """Populate a Variation from a snapshot. No filtering is applied."""
    display, actual = build_selectors(selector, snapshot.tag_name, snapshot.sibling_position)
    content = summarize_content(snapshot.text, snapshot.images)
    return Variation(
        index=index,
        selector=display,
        actual_selector=actual,
        tag_name=snapshot.tag_name,
        class_names=snapshot.class_attr.split(),
        text_content=content[:MAX_TEXT_LENGTH],
        bounding_box=snapshot.bounding_box,
        anchor_info=extract_anchor_info(snapshot),
    )


def fingerprint(snapshot: RawElementSnapshot, selector: str, index: int) -> Tuple[str, Variation]:
    return fingerprint_key(snapshot), build_variation(snapshot, selector, index)
