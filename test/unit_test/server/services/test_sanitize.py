import pytest

from requisition_workflow.server.services.sanitize import (
    is_valid_email,
    sanitize_email,
    sanitize_slug,
    sanitize_string,
)


class TestSanitizeString:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("  Grace Chapel  ", "Grace Chapel"),
            ("<script>alert(1)</script>", "&lt;script&gt;alert(1)&lt;&#x2F;script&gt;"),
            ("Tom & Jerry's \"fund\"", "Tom &amp; Jerry&#x27;s &quot;fund&quot;"),
            ("line\x00one\x1ftwo", "lineonetwo"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_sanitize(self, value, expected):
        assert sanitize_string(value) == expected

    def test_truncates_before_escaping(self):
        assert sanitize_string("a" * 300) == "a" * 255
        assert sanitize_string("<<<<", max_length=2) == "&lt;&lt;"

    def test_non_string_is_empty(self):
        assert sanitize_string(42) == ""


@pytest.mark.parametrize(
    "value, expected",
    [
        ("  Pastor@Grace.ORG ", "pastor@grace.org"),
        ("a\nb@c.io", "ab@c.io"),
        (None, ""),
    ],
)
def test_sanitize_email(value, expected):
    assert sanitize_email(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Grace Chapel", "gracechapel"),
        ("--grace---chapel--", "grace-chapel"),
        ("Église_42!", "glise42"),
        ("", ""),
    ],
)
def test_sanitize_slug(value, expected):
    assert sanitize_slug(value) == expected


def test_sanitize_slug_max_length():
    assert len(sanitize_slug("a" * 80)) == 50


@pytest.mark.parametrize(
    "value, valid",
    [
        ("treasurer@grace.org", True),
        ("a.b+c@sub.domain.io", True),
        ("no-at-sign.org", False),
        ("two@@signs.org", False),
        ("spaces in@grace.org", False),
        ("missing@tld", False),
        ("", False),
    ],
)
def test_is_valid_email(value, valid):
    assert is_valid_email(value) is valid
