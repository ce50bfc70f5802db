"""Rendering a literate Markdown document happens in phases:

1. Reading
   The document source is read once through the BuildSystem.
   Any `<!-- figref: key=value -->` comment lines at the very start override the RenderSettings, and are dropped from the output.
2. Pre-scanning
   The whole source is scanned line-by-line for caption declarations, and every label found is numbered in source order.
   This is what lets text refer to "Figure 4" before the chunk that declares Figure 4 has run.
   Duplicate labels abort the render here, before any document code is executed.
3. Rendering
   The source is split into segments - Markdown text and executable ```{python} chunks - and walked in order.
   Chunks are executed in a namespace shared by the whole document, and are replaced by whatever they emit().
   `{{ expr }}` inline expressions in the text are evaluated in the same namespace and replaced by str(result).
4. Writing
   Only once every segment has rendered successfully is the output written, so a failed render never leaves half a document behind.
   The RenderContext is then frozen: its registry has served its purpose and must not be extended.
"""

import inspect
import io
import re
import traceback
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from figref.build_system import BuildSystem, check_relative_path
from figref.errors import DocumentError, DocumentSyntaxError
from figref.html import FigureHook
from figref.registry import CaptionParts, CaptionRegistry
from figref.settings import RenderSettings, parse_settings_header

CHUNK_OPEN = re.compile(r"^```\{python\}\s*$")
CHUNK_CLOSE = re.compile(r"^```\s*$")
FENCE_OPEN = re.compile(r"^(?P<fence>`{3,}|~{3,})")
INLINE_EXPR = re.compile(r"\{\{(?P<expr>.*?)\}\}")


@dataclass
class TextSegment:
    text: str
    start_line: int
    verbatim: bool = False
    """Verbatim text (e.g. a non-executable code block) is copied through without evaluating {{ }} expressions"""


@dataclass
class ChunkSegment:
    code: str
    start_line: int
    """1-based line number of the first line of code, i.e. the line after the ```{python} fence"""


Segment = Union[TextSegment, ChunkSegment]


def parse_segments(text: str, first_line: int = 1) -> List[Segment]:
    """Split a document into text and executable chunks. first_line is the line number of the first line in `text`."""
    lines = text.splitlines(keepends=True)
    segments: List[Segment] = []
    pending: List[str] = []
    pending_start = first_line

    def flush_text(next_start: int) -> None:
        nonlocal pending, pending_start
        if pending:
            segments.append(TextSegment("".join(pending), pending_start))
        pending = []
        pending_start = next_start

    i = 0
    while i < len(lines):
        line = lines[i]
        line_no = first_line + i
        if CHUNK_OPEN.match(line):
            flush_text(line_no)
            j = i + 1
            while j < len(lines) and not CHUNK_CLOSE.match(lines[j]):
                j += 1
            if j >= len(lines):
                raise DocumentSyntaxError(
                    "executable ```{python} chunk is never closed", line_no
                )
            segments.append(ChunkSegment("".join(lines[i + 1 : j]), line_no + 1))
            i = j + 1
            pending_start = first_line + i
            continue

        fence_match = FENCE_OPEN.match(line)
        if fence_match:
            flush_text(line_no)
            fence = fence_match.group("fence")
            # Only a bare run of the same fence character, at least as long, closes the block
            fence_close = re.compile(rf"^{re.escape(fence[0])}{{{len(fence)},}}\s*$")
            j = i + 1
            # An unclosed fence runs to the end of the document, like in Markdown
            while j < len(lines) and not fence_close.match(lines[j]):
                j += 1
            segments.append(
                TextSegment("".join(lines[i : j + 1]), line_no, verbatim=True)
            )
            i = j + 1
            pending_start = first_line + i
            continue

        pending.append(line)
        i += 1
    flush_text(first_line + i)
    return segments


class RenderContext:
    """The functions available to code inside a document.

    Every public attribute of this object (that isn't a property) is exported into the document namespace by _interface().
    One RenderContext exists per render."""

    settings: RenderSettings
    registry: CaptionRegistry

    _build_sys: BuildSystem
    _hook: FigureHook
    _chunk_output: Optional[List[str]]
    _written_images: Dict[str, str]
    _unnamed_figures: int
    _frozen: bool

    def __init__(
        self,
        build_sys: BuildSystem,
        settings: RenderSettings,
        registry: CaptionRegistry,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self._build_sys = build_sys
        self._hook = FigureHook(settings.base_url)
        self._chunk_output = None
        self._written_images = {}
        self._unnamed_figures = 0
        self._frozen = False

    def _check_not_frozen(self) -> None:
        if self._frozen:
            raise RuntimeError(
                "The document has finished rendering, its captions can't be changed any more"
            )

    def _interface(self) -> Dict[str, Any]:
        interface = {}
        for key in dir(self):
            if key.startswith("_"):
                continue
            value = inspect.getattr_static(self, key)
            if isinstance(value, property):
                print(
                    f"Property {key} on {self} is not going to be used in the document namespace, because we can't enforce calling __get__()."
                )
                continue
            interface[key] = getattr(self, key)
        return interface

    def cap(
        self,
        label: str,
        text: str,
        center: bool = False,
        color: Optional[str] = None,
        inline: bool = False,
    ) -> Union[str, CaptionParts]:
        """Declare a numbered caption. Pass the result as figure(caption=...), or use it inline as {{ cap(...) }}."""
        self._check_not_frozen()
        return self.registry.cap(label, text, center=center, color=color, inline=inline)

    def ref(
        self, label: str, link: bool = False, check_ref: Optional[bool] = None
    ) -> str:
        """Refer to a figure by its caption label, e.g. {{ ref("fig_sources") }} -> 'Figure 1'"""
        return self.registry.ref(label, link=link, check_ref=check_ref)

    def emit(self, *items: Any) -> None:
        """Place text in the output, where the current chunk is."""
        if self._chunk_output is None:
            raise RuntimeError(
                "emit() can only be used inside an executable ```{python} chunk"
            )
        self._chunk_output.extend(str(item) for item in items)

    def read_input(self, path: str) -> str:
        """Get a real filesystem path for a project-relative input file e.g. read_input('data/institutions.csv')"""
        return str(self._build_sys.input_external_path(path))

    def figure(
        self,
        plot: Any,
        caption: Union[CaptionParts, str, None] = None,
        align: str = "default",
        name: Optional[str] = None,
    ) -> str:
        """Place a figure in the output.

        `plot` is either something with .savefig() e.g. a matplotlib Figure, which is saved as a PNG into the figure directory,
        or a string path to an existing image."""
        self._check_not_frozen()
        # Check alignment before writing any files
        FigureHook.align_style(align)

        if isinstance(plot, str):
            image_path = plot
        elif hasattr(plot, "savefig"):
            if name is None:
                if isinstance(caption, CaptionParts):
                    name = caption.label
                else:
                    self._unnamed_figures += 1
                    name = f"figure-{self._unnamed_figures}"
            image_path = check_relative_path(
                f"{self.settings.figure_dir}/{name}.png"
            )
            if image_path in self._written_images:
                raise ValueError(
                    f"Two figures tried to write the same image '{image_path}', give one of them a different name="
                )
            buf = io.BytesIO()
            plot.savefig(buf, format="png", dpi=self.settings.dpi)
            self._build_sys.write_bytes(image_path, buf.getvalue())
            self._written_images[image_path] = name
        else:
            raise TypeError(
                f"figure() expects a string image path or an object with .savefig(), got {type(plot).__name__}"
            )

        out = self._hook(image_path, align=align, caption=caption)
        if self._chunk_output is not None:
            self._chunk_output.append(out)
        return out


def _error_line(e: BaseException, src_path: str, default: int) -> int:
    """Find the innermost line of the document source involved in an exception"""
    line = default
    for frame in traceback.extract_tb(e.__traceback__):
        if frame.filename == src_path and frame.lineno is not None:
            line = frame.lineno
    return line


class DocumentRenderer:
    src_path: str
    ctx: RenderContext
    namespace: Dict[str, Any]

    def __init__(
        self,
        src_path: str,
        ctx: RenderContext,
        env: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.src_path = src_path
        self.ctx = ctx
        self.namespace = {"__name__": "__figref_document__"}
        if env:
            self.namespace.update(env)
        # The render functions always win over user-supplied names
        self.namespace.update(ctx._interface())

    def _compile(self, code: str, start_line: int, mode: str) -> Any:
        # Pad with newlines so tracebacks and error messages point at the right line of the document
        return compile("\n" * (start_line - 1) + code, self.src_path, mode)

    def run_chunk(self, chunk: ChunkSegment) -> str:
        self.ctx._chunk_output = []
        try:
            exec(self._compile(chunk.code, chunk.start_line, "exec"), self.namespace)
            output = self.ctx._chunk_output
        except Exception as e:
            line = _error_line(e, self.src_path, chunk.start_line)
            raise DocumentError(
                self.src_path, line, f"chunk raised {type(e).__name__}: {e}"
            ) from e
        finally:
            self.ctx._chunk_output = None
        if not output:
            return ""
        return "\n".join(output) + "\n"

    def render_text(self, segment: TextSegment) -> str:
        if segment.verbatim:
            return segment.text

        def eval_inline(m: re.Match) -> str:
            line = segment.start_line + segment.text.count("\n", 0, m.start())
            expr = m.group("expr").strip()
            if not expr:
                raise DocumentSyntaxError("empty {{ }} expression", line)
            try:
                return str(self._eval(expr, line))
            except Exception as e:
                raise DocumentError(
                    self.src_path,
                    line,
                    f"{{{{ {expr} }}}} raised {type(e).__name__}: {e}",
                ) from e

        return INLINE_EXPR.sub(eval_inline, segment.text)

    def _eval(self, expr: str, line: int) -> Any:
        return eval(self._compile(expr, line, "eval"), self.namespace)

    def render_segments(self, segments: List[Segment]) -> str:
        out = []
        for s in segments:
            if isinstance(s, ChunkSegment):
                out.append(self.run_chunk(s))
            else:
                out.append(self.render_text(s))
        return "".join(out)


@dataclass
class RenderResult:
    output: str
    registry: CaptionRegistry
    settings: RenderSettings


def render_source(
    build_sys: BuildSystem,
    src_path: str,
    text: str,
    settings: Optional[RenderSettings] = None,
    env: Optional[Dict[str, Any]] = None,
) -> RenderResult:
    """Render already-read document text. Figures are written through build_sys, the rendered text is returned."""
    settings = settings or RenderSettings()
    overrides, header_lines = parse_settings_header(text)
    if overrides:
        print(f"Taking settings from the document header: {overrides}")
        settings = settings.apply_overrides(overrides)

    registry = CaptionRegistry(settings.caption_format(), check_refs=settings.check_refs)
    registry.prescan(text.splitlines(), settings.marker)

    body = "".join(text.splitlines(keepends=True)[header_lines:])
    segments = parse_segments(body, first_line=header_lines + 1)

    ctx = RenderContext(build_sys, settings, registry)
    renderer = DocumentRenderer(src_path, ctx, env)
    try:
        output = renderer.render_segments(segments)
    finally:
        ctx._frozen = True
    return RenderResult(output, registry, settings)


def render_document(
    build_sys: BuildSystem,
    src_path: str,
    out_path: str,
    settings: Optional[RenderSettings] = None,
    env: Optional[Dict[str, Any]] = None,
) -> RenderResult:
    """Render the document at src_path, writing it to out_path only if the whole render succeeds.

    `env` holds extra names that document code can use, on top of cap/ref/figure/emit."""
    text = build_sys.read_text(src_path)
    result = render_source(build_sys, src_path, text, settings, env)
    build_sys.write_text(out_path, result.output)
    return result
