import pytest

from figref.numbering import (
    CaptionFormat,
    arabic,
    lookup_numbering,
    lower_alph,
    lower_roman,
    upper_alph,
    upper_roman,
)


def test_numbering_styles():
    assert arabic(12) == "12"
    assert lower_roman(14) == "xiv"
    assert upper_roman(1994) == "MCMXCIV"
    assert lower_alph(1) == "a"
    assert upper_alph(26) == "Z"


def test_alph_numbering_continues_past_z():
    assert lower_alph(27) == "aa"
    assert lower_alph(52) == "az"
    assert upper_alph(53) == "BA"
    assert lower_alph(702) == "zz"
    assert lower_alph(703) == "aaa"


def test_figure_numbers_start_at_one():
    for style in (arabic, lower_roman, upper_roman, lower_alph, upper_alph):
        with pytest.raises(ValueError):
            style(0)


def test_lookup_numbering():
    assert lookup_numbering("Roman") is upper_roman
    with pytest.raises(ValueError):
        lookup_numbering("hex")


def test_caption_format_text():
    fmt = CaptionFormat()
    assert fmt.ref_text(3) == "Figure 3"
    assert fmt.caption_text(3, "desc") == "Figure 3: desc"
    assert fmt.unresolved_text() == "Figure ??"

    nameless = CaptionFormat(name="", separator=". ")
    assert nameless.ref_text(3) == "3"
    assert nameless.caption_text(3, "desc") == "3. desc"
    assert nameless.unresolved_text() == "??"


def test_caption_format_many_alph_figures():
    fmt = CaptionFormat(style=lower_alph)
    assert fmt.ref_text(28) == "Figure ab"
