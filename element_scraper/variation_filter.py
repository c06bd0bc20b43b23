"""
Class-prefix filtering for variations.

A prefix such as ``wp-block-`` names a component family. Classes carrying the
prefix together with ``__`` mark sub-elements of a component, so any element
wearing one of those is not surfaced as a top-level variation.
"""

from typing import Sequence

SUB_ELEMENT_MARKER = '__'


def is_variation(class_names: Sequence[str], variation_class_prefix: str = '') -> bool:
    if not variation_class_prefix:
        return True

    has_target_class = any(variation_class_prefix in cls for cls in class_names)
    has_sub_element_class = any(
        variation_class_prefix in cls and SUB_ELEMENT_MARKER in cls
        for cls in class_names
    )
    return has_target_class and not has_sub_element_class
