import string
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

NumberStyle = Callable[[int], str]
"""Turns a figure number (1, 2, 3...) into the text printed for it"""

_ROMAN_VALUES: List[Tuple[int, str]] = [
    (1000, "m"),
    (900, "cm"),
    (500, "d"),
    (400, "cd"),
    (100, "c"),
    (90, "xc"),
    (50, "l"),
    (40, "xl"),
    (10, "x"),
    (9, "ix"),
    (5, "v"),
    (4, "iv"),
    (1, "i"),
]


def _check_figure_number(num: int) -> None:
    if num < 1:
        raise ValueError(f"Figure numbers start at 1, got {num}")


def arabic(num: int) -> str:
    _check_figure_number(num)
    return str(num)


def lower_roman(num: int) -> str:
    _check_figure_number(num)
    parts = []
    for value, numeral in _ROMAN_VALUES:
        count, num = divmod(num, value)
        parts.append(numeral * count)
    return "".join(parts)


def upper_roman(num: int) -> str:
    return lower_roman(num).upper()


def lower_alph(num: int) -> str:
    """a..z, then aa, ab... like spreadsheet columns, so long reports never run out of letters"""
    _check_figure_number(num)
    letters = []
    while num > 0:
        num, rem = divmod(num - 1, 26)
        letters.append(string.ascii_lowercase[rem])
    return "".join(reversed(letters))


def upper_alph(num: int) -> str:
    return lower_alph(num).upper()


NUMBERING_STYLES: Dict[str, NumberStyle] = {
    "arabic": arabic,
    "roman": lower_roman,
    "Roman": upper_roman,
    "alph": lower_alph,
    "Alph": upper_alph,
}


def lookup_numbering(style: str) -> NumberStyle:
    try:
        return NUMBERING_STYLES[style]
    except KeyError:
        raise ValueError(
            f"Unknown numbering style '{style}', expected one of {list(NUMBERING_STYLES)}"
        ) from None


@dataclass
class CaptionFormat:
    """
    How a figure number is turned into text, both in references and at the start of the caption itself.
    """

    name: str = "Figure"
    """The prefix for the number e.g. 'Figure' to produce 'Figure 3'. May be empty."""

    style: NumberStyle = field(default=arabic)
    """The style of the number itself."""

    separator: str = ": "
    """Placed between the numbered name and the caption text e.g. 'Figure 3: The caption'"""

    def number_text(self, num: int) -> str:
        return self.style(num)

    def ref_text(self, num: int) -> str:
        if self.name:
            return f"{self.name} {self.number_text(num)}"
        return self.number_text(num)

    def caption_text(self, num: int, text: str) -> str:
        return f"{self.ref_text(num)}{self.separator}{text}"

    def unresolved_text(self) -> str:
        if self.name:
            return f"{self.name} ??"
        return "??"
