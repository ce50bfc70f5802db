"""Rendering a report reads the document source and any data files it uses, and writes the rendered document plus the generated figure images.

The BuildSystem considers project-relative paths for input files and output-relative paths for output files.
In the simple case these are relative to a single project folder and output folder respectively.
InMemoryBuildSystem keeps everything in dicts of bytes, so tests don't need to touch the filesystem.
"""

import abc
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from typing_extensions import override

ProjectRelativePath = str
OutputRelativePath = str


def check_relative_path(path: str) -> str:
    """Normalize a relative path with forward slashes, rejecting absolute paths and paths escaping the root with '..'"""
    if path.startswith("/") or path.startswith("\\") or (len(path) > 1 and path[1] == ":"):
        raise ValueError(f"Path '{path}' must be relative")
    components: List[str] = []
    for c in path.replace("\\", "/").split("/"):
        if c in ("", "."):
            continue
        elif c == "..":
            if not components:
                raise ValueError(f"Path '{path}' goes above the root directory")
            components.pop()
        elif all(ch == "." for ch in c):
            raise ValueError(f"Path '{path}' has a component '{c}' made of only dots")
        else:
            components.append(c)
    if not components:
        raise ValueError(f"Path '{path}' is empty")
    return "/".join(components)


class BuildSystem(abc.ABC):
    """Abstraction over where a render reads its inputs and writes its outputs."""

    def read_text(
        self, project_relative_path: ProjectRelativePath, encoding: str = "utf-8"
    ) -> str:
        return self.read_bytes(project_relative_path).decode(encoding)

    @abc.abstractmethod
    def read_bytes(self, project_relative_path: ProjectRelativePath) -> bytes: ...

    @abc.abstractmethod
    def input_external_path(
        self, project_relative_path: ProjectRelativePath
    ) -> Path:
        """A path usable with open() and friends (e.g. pandas.read_csv) for the given input file."""
        ...

    @abc.abstractmethod
    def write_bytes(self, output_relative_path: OutputRelativePath, data: bytes) -> None: ...

    def write_text(
        self,
        output_relative_path: OutputRelativePath,
        data: str,
        encoding: str = "utf-8",
    ) -> None:
        self.write_bytes(output_relative_path, data.encode(encoding))


class SimpleBuildSystem(BuildSystem):
    project_dir: Path
    output_dir: Path

    def __init__(
        self, project_dir: Path, output_dir: Path, make_output_dir: bool = True
    ) -> None:
        super().__init__()
        project_dir = project_dir.resolve()
        if not project_dir.is_dir():
            raise ValueError(
                f"Project dir '{project_dir}' either doesn't exist or isn't a directory"
            )
        output_dir = output_dir.resolve()
        if not output_dir.is_dir():
            if make_output_dir:
                output_dir.mkdir(parents=True, exist_ok=True)
            else:
                raise ValueError(
                    f"Output dir '{output_dir}' either doesn't exist or isn't a directory"
                )
        self.project_dir = project_dir
        self.output_dir = output_dir

    def _resolve_project_relpath(
        self, project_relative_path: ProjectRelativePath
    ) -> Path:
        p = self.project_dir / check_relative_path(project_relative_path)
        if not p.is_file():
            raise ValueError(
                f"Requested input '{project_relative_path}' doesn't exist in {self.project_dir} or is a directory"
            )
        return p.resolve()

    @override
    def read_bytes(self, project_relative_path: ProjectRelativePath) -> bytes:
        return self._resolve_project_relpath(project_relative_path).read_bytes()

    @override
    def input_external_path(self, project_relative_path: ProjectRelativePath) -> Path:
        return self._resolve_project_relpath(project_relative_path)

    @override
    def write_bytes(self, output_relative_path: OutputRelativePath, data: bytes) -> None:
        p = self.output_dir / check_relative_path(output_relative_path)
        # Subfolders inside the output dir e.g. figures/ are created on demand
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)


class InMemoryBuildSystem(BuildSystem):
    """Implementation of BuildSystem that keeps files as bytes in dicts instead of real files."""

    input_files: Dict[str, bytes]
    output_files: Dict[str, bytes]
    _spill_dir: Optional[tempfile.TemporaryDirectory]

    def __init__(self, input_files: Dict[str, bytes]) -> None:
        super().__init__()
        self.input_files = {check_relative_path(k): v for k, v in input_files.items()}
        self.output_files = {}
        self._spill_dir = None

    @override
    def read_bytes(self, project_relative_path: ProjectRelativePath) -> bytes:
        data = self.input_files.get(check_relative_path(project_relative_path))
        if data is None:
            raise ValueError(f"Input file '{project_relative_path}' doesn't exist")
        return data

    @override
    def input_external_path(self, project_relative_path: ProjectRelativePath) -> Path:
        # Some consumers insist on a real path, so write the file out to a temporary directory that lives as long as this object
        data = self.read_bytes(project_relative_path)
        if self._spill_dir is None:
            self._spill_dir = tempfile.TemporaryDirectory(prefix="figref-")
        p = Path(self._spill_dir.name) / check_relative_path(project_relative_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
        return p

    @override
    def write_bytes(self, output_relative_path: OutputRelativePath, data: bytes) -> None:
        self.output_files[check_relative_path(output_relative_path)] = data

    def get_output_text(
        self, output_relative_path: OutputRelativePath, encoding: str = "utf-8"
    ) -> str:
        return self.output_files[check_relative_path(output_relative_path)].decode(
            encoding
        )
