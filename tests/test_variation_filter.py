"""Tests for ``element_scraper.variation_filter``."""

import pytest

from element_scraper.variation_filter import is_variation


@pytest.mark.parametrize(
    "class_names, prefix, expected",
    [
        ([], "", True),
        (["anything"], "", True),
        (["wp-block-group"], "wp-block-", True),
        (["wp-block-group", "wp-block-group__inner-container"], "wp-block-", False),
        (["wp-block-columns__column"], "wp-block-", False),
        (["container"], "wp-block-", False),
        ([], "wp-block-", False),
        (["foo__bar", "wp-block-cover"], "wp-block-", True),
        (["is-style-wp-block-x"], "wp-block-", True),
    ],
)
def test_is_variation(class_names, prefix, expected):
    assert is_variation(class_names, prefix) is expected
