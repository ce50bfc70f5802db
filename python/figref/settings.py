import dataclasses
import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from figref.numbering import CaptionFormat, lookup_numbering
from figref.scan import DEFAULT_CAPTION_MARKER

# Documents can override settings with comment lines at the very start of the file.
# The lines are parsed until they stop being comments, and of those all that fit the `<!-- figref: .* -->` pattern are used.
# <!-- figref: base-url=https://example.org/report/ --> sets RenderSettings.base_url
# <!-- figref: check-refs=no figure-dir=img --> sets multiple settings at once
# These override both the defaults and the command-line arguments.
FIGREF_HEADER = re.compile(r"^<!--\s*figref:\s*(.*?)\s*-->\s*$")
HEADER_KWARG = re.compile(r"([\w-]+)=(\S*)")

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def parse_bool(value: str) -> bool:
    if value.lower() in _TRUE_STRINGS:
        return True
    if value.lower() in _FALSE_STRINGS:
        return False
    raise ValueError(f"Can't interpret '{value}' as a true/false value")


@dataclass
class RenderSettings:
    """Everything that can be configured about rendering a single document."""

    base_url: str = ""
    """Prefixed onto every image path inside <img src=...>"""
    figure_dir: str = "figures"
    """Output-relative folder that generated figure images are saved into"""
    check_refs: bool = True
    """If False, references to undeclared labels render as e.g. 'Figure ??' instead of aborting the render"""
    caption_name: str = "Figure"
    numbering: str = "arabic"
    dpi: int = 150
    marker: str = DEFAULT_CAPTION_MARKER
    """Regex identifying lines that declare a caption, for the pre-scan"""

    def caption_format(self) -> CaptionFormat:
        return CaptionFormat(
            name=self.caption_name, style=lookup_numbering(self.numbering)
        )

    def apply_overrides(self, overrides: Dict[str, str]) -> "RenderSettings":
        """Return a copy of these settings with kebab-case string overrides applied, e.g. {'base-url': 'img/'}"""
        fields = {f.name: f for f in dataclasses.fields(self)}
        changes: Dict[str, object] = {}
        for key, value in overrides.items():
            name = key.replace("-", "_")
            if name not in fields:
                raise ValueError(
                    f"Unknown setting '{key}', expected one of {[f.replace('_', '-') for f in fields]}"
                )
            if name == "check_refs":
                changes[name] = parse_bool(value)
            elif name == "dpi":
                try:
                    changes[name] = int(value)
                except ValueError:
                    raise ValueError(f"Setting dpi={value} must be an integer") from None
            else:
                changes[name] = value
        new_settings = dataclasses.replace(self, **changes)
        # Fail early on a bad numbering style rather than halfway through the render
        lookup_numbering(new_settings.numbering)
        return new_settings


def parse_settings_header(text: str) -> Tuple[Dict[str, str], int]:
    """Find the settings overrides at the start of a document.

    Returns the overrides and the number of leading lines they took up, so the caller can strip them from the output.
    """
    overrides: Dict[str, str] = {}
    header_lines = 0
    for line in text.splitlines():
        match = FIGREF_HEADER.match(line.strip())
        if not match:
            break
        header_lines += 1
        body = match.group(1)
        kwargs: List[Tuple[str, str]] = HEADER_KWARG.findall(body)
        if not kwargs:
            raise ValueError(
                f"Line {header_lines}: figref header '{line.strip()}' doesn't contain any key=value settings"
            )
        for key, value in kwargs:
            if key in overrides:
                print(
                    f"Warning: setting '{key}' is given more than once in the document header, using the last value '{value}'"
                )
            overrides[key] = value
    return overrides, header_lines
