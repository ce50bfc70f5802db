import html
from typing import Optional, Tuple, Union

from figref.registry import CaptionParts

FIGURE_ALIGNMENTS = ("default", "left", "right", "center")


class FigureHook:
    """Wraps a generated image in a captioned HTML <figure>.

    The caption is either the CaptionParts from cap(), in which case the anchor lands inside the figure
    so references jump straight to it, or a plain string with no anchor."""

    base_url: str

    def __init__(self, base_url: str = "") -> None:
        self.base_url = base_url

    @staticmethod
    def align_style(align: str) -> str:
        if align not in FIGURE_ALIGNMENTS:
            raise ValueError(
                f"Figure alignment '{align}' isn't one of {FIGURE_ALIGNMENTS}"
            )
        if align == "default":
            return ""
        return f' style="text-align: {align}"'

    @staticmethod
    def split_caption(
        caption: Union[CaptionParts, str, None]
    ) -> Tuple[str, Optional[str]]:
        """Returns (anchor HTML, caption HTML or None)"""
        if caption is None:
            return "", None
        if isinstance(caption, CaptionParts):
            return caption.anchor, caption.caption
        if isinstance(caption, str):
            return "", caption
        raise TypeError(
            f"Figure caption must be CaptionParts from cap(), a string, or None - got {type(caption).__name__}"
        )

    def __call__(
        self,
        image_path: str,
        align: str = "default",
        caption: Union[CaptionParts, str, None] = None,
    ) -> str:
        style = self.align_style(align)
        anchor, caption_text = self.split_caption(caption)
        src = html.escape(self.base_url + image_path)

        out = f'<figure{style}>{anchor}<img src="{src}">'
        if caption_text is not None:
            out += f"\n<figcaption>{caption_text}</figcaption>"
        out += "</figure>"
        return out
