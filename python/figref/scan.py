"""Pre-scanning a document's raw source for caption labels.

Captions can be referenced before they are declared, e.g. "as shown in Figure 4" in the introduction.
To number them before rendering starts, we scan the raw text for lines which declare a caption and pull the label out of each one.
This isn't a parse of the embedded Python - it assumes the label is the first quoted argument after the marker, and that there's at most one caption declared per line.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern, Union

from figref.errors import DuplicateLabelError

DEFAULT_CAPTION_MARKER = r"\bcap\("

# After the marker: optional whitespace, an optional label= keyword, then a quoted string.
# The label runs up to the first closing quote of the same kind.
_LABEL_AFTER_MARKER = re.compile(
    r"""\s*(?:label\s*=\s*)?(?P<quote>["'])(?P<label>.*?)(?P=quote)"""
)


@dataclass(frozen=True)
class ScannedLabel:
    label: str
    line_no: int
    """1-based line number of the declaring line"""


def compile_marker(marker: Union[str, Pattern[str]]) -> Pattern[str]:
    if isinstance(marker, str):
        return re.compile(marker)
    return marker


def extract_label(line: str, marker: Pattern[str]) -> Optional[str]:
    """Given a single line, find the caption-declaration marker and return the label after it.

    Returns None if the marker isn't present, or if it isn't followed by a quoted label."""
    m = marker.search(line)
    if m is None:
        return None
    label_match = _LABEL_AFTER_MARKER.match(line, m.end())
    if label_match is None:
        return None
    return label_match.group("label")


def scan_lines(
    lines: Iterable[str], marker: Union[str, Pattern[str]] = DEFAULT_CAPTION_MARKER
) -> List[ScannedLabel]:
    """Find every caption label in the lines, in source order. Doesn't check for duplicates."""
    marker = compile_marker(marker)
    found = []
    for line_no, line in enumerate(lines, start=1):
        if not marker.search(line):
            continue
        label = extract_label(line, marker)
        if not label:
            print(
                f"Warning: line {line_no} looks like it declares a caption, but no quoted label could be found after the marker. Skipping it: {line.strip()!r}"
            )
            continue
        found.append(ScannedLabel(label, line_no))
    return found


def extract_labels(
    lines: Iterable[str], marker: Union[str, Pattern[str]] = DEFAULT_CAPTION_MARKER
) -> List[str]:
    """Find every caption label in the lines, in source order.

    Raises DuplicateLabelError if any label is declared more than once."""
    scanned = scan_lines(lines, marker)
    first_seen: Dict[str, ScannedLabel] = {}
    for s in scanned:
        if s.label in first_seen:
            raise DuplicateLabelError(
                s.label,
                f"Caption label '{s.label}' is declared on line {first_seen[s.label].line_no} and again on line {s.line_no}",
            )
        first_seen[s.label] = s
    return [s.label for s in scanned]
