import pytest

from regex_download.core.scraping.sanitizer import sanitize_prefix


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("My Gallery", "My Gallery"),
        ("Tom &amp; Jerry", "Tom & Jerry"),
        ("AC/DC \\ Live | 1991", "ACDC Live 1991"),
        ("  lots\t\tof   space  ", "lots of space"),
        ("non&nbsp;breaking  space", "non breaking space"),
        ("&#47;etc&#47;passwd", "etcpasswd"),
        ("", ""),
    ],
)
def test_sanitize_prefix(raw, expected):
    assert sanitize_prefix(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "Tom &amp;amp; Jerry",
        "&am|p;lt;",
        " a / b \\ c | d ",
        "&amp;nbsp;x&amp;#47;y",
        "\t   ",
        "plain",
    ],
)
def test_sanitize_prefix_is_idempotent(raw):
    once = sanitize_prefix(raw)
    assert sanitize_prefix(once) == once
    assert "/" not in once and "\\" not in once and "|" not in once
