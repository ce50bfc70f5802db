"""
Figure numbering and cross-references.

A CaptionRegistry lives for exactly one render of one document.
It's populated up-front by pre-scanning the document source, so references that come before their caption
(e.g. "see Figure 4" in an introduction) still resolve, then it's consulted and occasionally extended while rendering.

Numbers are handed out in the order labels are first seen and never change afterwards.
"""

import dataclasses
import html
from typing import Dict, Iterable, List, Optional, Pattern, Union

from figref.errors import DuplicateLabelError, UnresolvedReferenceError
from figref.numbering import CaptionFormat
from figref.scan import DEFAULT_CAPTION_MARKER, extract_labels


@dataclasses.dataclass(frozen=True)
class CaptionParts:
    """The two halves of a declared caption, kept apart so a figure wrapper can place them separately."""

    label: str
    number: int
    anchor: str
    """HTML anchor that references link to"""
    caption: str
    """HTML caption text, already prefixed with e.g. 'Figure 1: '"""

    def __str__(self) -> str:
        return self.anchor + self.caption


class CaptionRegistry:
    fmt: CaptionFormat
    check_refs: bool
    _numbers: Dict[str, int]

    def __init__(
        self, fmt: Optional[CaptionFormat] = None, check_refs: bool = True
    ) -> None:
        self.fmt = fmt or CaptionFormat()
        # The default for ref(check_ref=...) when the caller doesn't say
        self.check_refs = check_refs
        self._numbers = {}

    @classmethod
    def from_source(
        cls,
        text: str,
        marker: Union[str, Pattern[str]] = DEFAULT_CAPTION_MARKER,
        fmt: Optional[CaptionFormat] = None,
        check_refs: bool = True,
    ) -> "CaptionRegistry":
        registry = cls(fmt, check_refs)
        registry.prescan(text.splitlines(), marker)
        return registry

    def __contains__(self, label: object) -> bool:
        return label in self._numbers

    def __len__(self) -> int:
        return len(self._numbers)

    def labels(self) -> List[str]:
        return list(self._numbers)

    def number(self, label: str) -> Optional[int]:
        return self._numbers.get(label)

    def prescan(
        self,
        lines: Iterable[str],
        marker: Union[str, Pattern[str]] = DEFAULT_CAPTION_MARKER,
    ) -> List[str]:
        """Number every caption label declared in the lines, in the order they appear.

        Nothing is registered unless the whole scan succeeds."""
        labels = extract_labels(lines, marker)
        for label in labels:
            if label in self._numbers:
                raise DuplicateLabelError(
                    label,
                    f"Caption label '{label}' found by the pre-scan was already registered",
                )
        for label in labels:
            self._assign(label)
        return labels

    def register(self, label: str) -> int:
        if label in self._numbers:
            raise DuplicateLabelError(label)
        return self._assign(label)

    def _assign(self, label: str) -> int:
        if not isinstance(label, str) or not label:
            raise ValueError(f"Caption label {label!r} must be a non-empty string")
        n = len(self._numbers) + 1
        self._numbers[label] = n
        return n

    def cap(
        self,
        label: str,
        text: str,
        center: bool = False,
        color: Optional[str] = None,
        inline: bool = False,
    ) -> Union[str, CaptionParts]:
        """Declare the caption for a figure.

        If the pre-scan didn't find this label it's numbered now; otherwise the pre-scanned number is used.
        Returns the anchor and caption HTML, either joined together (inline=True) or as CaptionParts for a figure wrapper.
        """
        n = self._numbers.get(label)
        if n is None:
            n = self._assign(label)

        styles = []
        if center:
            styles.append("display:block; text-align:center")
        if color:
            styles.append(f"color:{color}")
        if styles:
            span = f'<span style="{html.escape("; ".join(styles))}">'
        else:
            span = "<span>"

        parts = CaptionParts(
            label=label,
            number=n,
            anchor=f'<a name="{html.escape(label)}"></a>',
            caption=f"{span}{self.fmt.caption_text(n, text)}</span>",
        )
        if inline:
            return str(parts)
        return parts

    def ref(
        self, label: str, link: bool = False, check_ref: Optional[bool] = None
    ) -> str:
        """Refer to a figure by label, e.g. 'Figure 4', or a link to it if link=True."""
        if check_ref is None:
            check_ref = self.check_refs
        n = self._numbers.get(label)
        if n is None:
            if check_ref:
                raise UnresolvedReferenceError(label)
            return self.fmt.unresolved_text()

        text = self.fmt.ref_text(n)
        if link:
            return f'<a href="#{html.escape(label)}">{text}</a>'
        return text
