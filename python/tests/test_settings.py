import pytest

from figref.numbering import lower_roman
from figref.settings import RenderSettings, parse_bool, parse_settings_header


def test_defaults():
    s = RenderSettings()
    assert s.base_url == ""
    assert s.figure_dir == "figures"
    assert s.check_refs
    assert s.caption_format().ref_text(2) == "Figure 2"


def test_apply_overrides():
    s = RenderSettings().apply_overrides(
        {
            "base-url": "img/",
            "check-refs": "no",
            "numbering": "roman",
            "caption-name": "Fig.",
            "dpi": "72",
        }
    )
    assert s.base_url == "img/"
    assert s.check_refs is False
    assert s.dpi == 72
    fmt = s.caption_format()
    assert fmt.style is lower_roman
    assert fmt.ref_text(4) == "Fig. iv"


def test_apply_overrides_returns_copy():
    s = RenderSettings()
    s.apply_overrides({"base-url": "img/"})
    assert s.base_url == ""


@pytest.mark.parametrize(
    "overrides",
    [
        {"colour": "red"},
        {"dpi": "lots"},
        {"check-refs": "maybe"},
        {"numbering": "hex"},
    ],
)
def test_bad_overrides(overrides):
    with pytest.raises(ValueError):
        RenderSettings().apply_overrides(overrides)


def test_parse_bool():
    assert parse_bool("YES")
    assert not parse_bool("0")


def test_parse_settings_header():
    text = (
        "<!-- figref: base-url=img/ -->\n"
        "<!--figref: check-refs=false dpi=90-->\n"
        "# Title\n"
        "<!-- figref: figure-dir=ignored -->\n"
    )
    overrides, header_lines = parse_settings_header(text)
    assert overrides == {"base-url": "img/", "check-refs": "false", "dpi": "90"}
    assert header_lines == 2


def test_no_settings_header():
    assert parse_settings_header("# Title\n") == ({}, 0)


def test_header_without_settings():
    with pytest.raises(ValueError):
        parse_settings_header("<!-- figref: nothing here -->\n")
