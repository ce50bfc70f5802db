from figref.build_system import BuildSystem, InMemoryBuildSystem, SimpleBuildSystem
from figref.document import RenderContext, RenderResult, render_document, render_source
from figref.errors import (
    CaptionError,
    DocumentError,
    DocumentSyntaxError,
    DuplicateLabelError,
    UnresolvedReferenceError,
)
from figref.html import FigureHook
from figref.numbering import CaptionFormat
from figref.registry import CaptionParts, CaptionRegistry
from figref.scan import extract_labels
from figref.settings import RenderSettings
