from typing import Optional


class CaptionError(ValueError):
    """Base class for authoring errors in caption labels.

    These are never recoverable - the document author needs to fix the label."""

    label: str

    def __init__(self, label: str, message: Optional[str] = None) -> None:
        super().__init__(message or label)
        self.label = label


class DuplicateLabelError(CaptionError):
    def __init__(self, label: str, message: Optional[str] = None) -> None:
        super().__init__(
            label, message or f"Caption label '{label}' is declared more than once"
        )


class UnresolvedReferenceError(CaptionError):
    def __init__(self, label: str, message: Optional[str] = None) -> None:
        super().__init__(
            label,
            message
            or f"Reference to caption label '{label}', which was never declared",
        )


class DocumentSyntaxError(ValueError):
    """The structure of a literate document is malformed, e.g. an executable chunk is never closed."""

    line_no: int

    def __init__(self, message: str, line_no: int) -> None:
        super().__init__(f"line {line_no}: {message}")
        self.line_no = line_no


class DocumentError(RuntimeError):
    """Code inside a document raised an exception while rendering.

    The original exception is always available as __cause__."""

    src_path: str
    line_no: int

    def __init__(self, src_path: str, line_no: int, message: str) -> None:
        super().__init__(f"{src_path}:{line_no}: {message}")
        self.src_path = src_path
        self.line_no = line_no
