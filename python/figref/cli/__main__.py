import argparse
import sys
from typing import Any, List, Optional

from figref.cli import autodetect_input, autodetect_output, render
from figref.errors import DocumentError
from figref.numbering import NUMBERING_STYLES
from figref.registry import CaptionRegistry
from figref.settings import RenderSettings, parse_settings_header


def settings_from_args(args: Any) -> RenderSettings:
    settings = RenderSettings()
    overrides = {}
    if args.base_url is not None:
        overrides["base-url"] = args.base_url
    if args.figure_dir is not None:
        overrides["figure-dir"] = args.figure_dir
    if args.caption_name is not None:
        overrides["caption-name"] = args.caption_name
    if args.numbering is not None:
        overrides["numbering"] = args.numbering
    if args.dpi is not None:
        overrides["dpi"] = str(args.dpi)
    if args.no_check_refs:
        overrides["check-refs"] = "false"
    if overrides:
        print(f"Taking settings from command line: {overrides}")
    return settings.apply_overrides(overrides)


def wrap_render(args: Any) -> None:
    settings = settings_from_args(args)
    for input_arg in args.inputs:
        input_params = autodetect_input(input_arg, args.project_dir)
        output_params = autodetect_output(args.output_dir, input_params)
        render(input_params, output_params, settings)


def wrap_labels(args: Any) -> None:
    for input_arg in args.inputs:
        with open(input_arg, "r", encoding="utf-8") as f:
            text = f.read()
        overrides, _ = parse_settings_header(text)
        settings = RenderSettings().apply_overrides(overrides)
        registry = CaptionRegistry.from_source(
            text, settings.marker, settings.caption_format()
        )
        print(f"{input_arg}: {len(registry)} caption label(s)")
        for label in registry.labels():
            print(f"\t{registry.ref(label)}\t{label}")


def run_cli(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser("figref")

    subparsers = parser.add_subparsers(required=True)

    render_subcommand = subparsers.add_parser(
        "render",
        help="Render a literate Markdown document, executing its chunks and numbering its figures.",
    )
    render_subcommand.add_argument(
        "inputs",
        type=str,
        nargs="+",
        help="The input documents (usually with a .md extension). If `--project-dir` is not set, each document's folder is its project directory.",
    )
    render_subcommand.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default="output",
        help="The toplevel folder for document outputs. Generates output folders {output}/{input_basename}/ containing the rendered document and its figures.",
    )
    render_subcommand.add_argument(
        "--project-dir",
        type=str,
        default=None,
        help="The 'project' directory, where all accessible input files are stored.",
    )
    render_subcommand.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Prefix for image paths in the generated <img> tags. Can be overridden with a '<!-- figref: base-url=... -->' line at the start of the document.",
    )
    render_subcommand.add_argument(
        "--figure-dir",
        type=str,
        default=None,
        help="Folder inside the output directory that generated figures are saved to.",
    )
    render_subcommand.add_argument(
        "--caption-name",
        type=str,
        default=None,
        help="The word used before figure numbers, 'Figure' by default.",
    )
    render_subcommand.add_argument(
        "--numbering",
        choices=list(NUMBERING_STYLES),
        default=None,
        help="How figure numbers are written.",
    )
    render_subcommand.add_argument(
        "--dpi", type=int, default=None, help="Resolution of generated PNG figures."
    )
    render_subcommand.add_argument(
        "--no-check-refs",
        action="store_true",
        help="Render references to undeclared captions as placeholders instead of failing.",
    )
    render_subcommand.set_defaults(func=wrap_render)

    labels_subcommand = subparsers.add_parser(
        "labels",
        help="List the caption labels a document declares, and the figure numbers they will get.",
    )
    labels_subcommand.add_argument("inputs", type=str, nargs="+")
    labels_subcommand.set_defaults(func=wrap_labels)

    args = parser.parse_args(argv)
    try:
        args.func(args)
    # CaptionError, DocumentSyntaxError and bad settings or input paths are all ValueErrors
    except (DocumentError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(run_cli())
