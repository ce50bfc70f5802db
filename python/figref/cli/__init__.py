import pathlib
from dataclasses import dataclass
from typing import Optional

from figref.build_system import SimpleBuildSystem, check_relative_path
from figref.document import RenderResult, render_document
from figref.settings import RenderSettings


@dataclass
class InputParams:
    project_dir: pathlib.Path
    input_rel_path: str


def autodetect_input(input_arg: str, project_folder_arg: Optional[str]) -> InputParams:
    """
    Given the required [input] argument and the optional [--project-dir] argument,
    determine or infer the project directory and input-relative-path.

    If [--project-dir] is supplied:
    - If [input] is a valid file then input-relative-path is [input]-relative-to-[--project-dir]
    - Otherwise assume [input] is already an input-relative-path

    If [--project-dir] is not supplied, the directory containing [input] is the project directory,
    so data files next to the report (e.g. ./data/institutions.csv) can be read with relative paths.
    """
    if project_folder_arg:
        project_dir = pathlib.Path(project_folder_arg)
        input_path = pathlib.Path(input_arg)
        if input_path.is_file():
            print(
                f"Making sure input path {input_path} is inside the supplied project directory {project_dir}"
            )
            return InputParams(
                project_dir,
                check_relative_path(
                    input_path.resolve()
                    .relative_to(project_dir.resolve())
                    .as_posix()
                ),
            )
        else:
            print(f"Assuming input path {input_arg} is relative to {project_dir}")
            return InputParams(project_dir, check_relative_path(input_arg))
    else:
        input_path = pathlib.Path(input_arg)
        if not input_path.is_file():
            raise ValueError(f"Supplied document '{input_arg}' isn't a file")
        project_dir = input_path.parent
        print(f"Taking project directory as the document's folder: '{project_dir}'")
        return InputParams(project_dir, input_path.name)


@dataclass
class OutputParams:
    output_dir: pathlib.Path
    input_stem: str


def autodetect_output(output_arg: str, input_params: InputParams) -> OutputParams:
    """
    Given an --output argument determining the top-level folder containing subfolders for each document,
    and the input_params for a specific input document, determine the isolated output subfolder for the document {output}/{input.basename}/
    """
    output_base_dir = pathlib.Path(output_arg)
    if output_base_dir.exists() and not output_base_dir.is_dir():
        raise ValueError(
            f"Output base directory {output_base_dir} exists but isn't a directory. Please make it a folder."
        )

    input_name = input_params.input_rel_path.split("/")[-1]
    input_stem = input_name.split(".", maxsplit=1)[0]
    if not input_stem:
        print(
            f"Trying to infer output folder from input file {input_name}, but it starts with a '.' and thus I cannot remove the extension.\nUsing the whole input file name as the output subdirectory."
        )
        input_stem = input_name

    output_dir = output_base_dir / input_stem
    print(f"Chose output directory {output_dir}")
    if output_dir.exists() and not output_dir.is_dir():
        raise ValueError(
            f"Output directory {output_dir} exists but isn't a directory. Please make it a folder."
        )
    elif not output_dir.exists():
        print(f"Output directory {output_dir} does not exist, auto creating...")
        output_dir.mkdir(parents=True, exist_ok=True)

    return OutputParams(output_dir, input_stem=input_stem)


def render(
    input: InputParams,
    output: OutputParams,
    settings: RenderSettings,
) -> RenderResult:
    build_sys = SimpleBuildSystem(input.project_dir, output.output_dir)
    out_path = f"{output.input_stem}.md"
    result = render_document(
        build_sys,
        src_path=input.input_rel_path,
        out_path=out_path,
        settings=settings,
    )
    print(
        f"Rendered {input.input_rel_path} with {len(result.registry)} numbered figure(s) to {output.output_dir / out_path}"
    )
    return result
