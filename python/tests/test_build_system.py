from pathlib import Path

import pytest

from figref.build_system import (
    InMemoryBuildSystem,
    SimpleBuildSystem,
    check_relative_path,
)


def test_basic_relative_path():
    assert check_relative_path("a/b/c/d/document.md") == "a/b/c/d/document.md"
    assert check_relative_path("a\\b\\c.png") == "a/b/c.png"


def test_relative_path_dot():
    assert check_relative_path("./1/2/./3/") == "1/2/3"


def test_relative_path_double_dot():
    # Double dots which go too far raise ValueError
    with pytest.raises(ValueError):
        check_relative_path("..")

    with pytest.raises(ValueError):
        check_relative_path("1/2/../../../3")

    # Double dots in the middle of paths do the right thing
    assert check_relative_path("1/2/../2a") == "1/2a"


def test_relative_path_rejects_absolute_and_empty():
    with pytest.raises(ValueError):
        check_relative_path("/etc/passwd")
    with pytest.raises(ValueError):
        check_relative_path("C:/data.csv")
    with pytest.raises(ValueError):
        check_relative_path("./")


def test_relative_path_rejects_triple_dots():
    with pytest.raises(ValueError):
        check_relative_path("123/...")


def test_in_memory_round_trip():
    build_sys = InMemoryBuildSystem({"doc.md": b"# Hello"})
    assert build_sys.read_text("./doc.md") == "# Hello"
    build_sys.write_text("out/doc.md", "rendered")
    assert build_sys.output_files == {"out/doc.md": b"rendered"}
    assert build_sys.get_output_text("out/doc.md") == "rendered"

    with pytest.raises(ValueError):
        build_sys.read_text("missing.md")


def test_in_memory_external_path():
    build_sys = InMemoryBuildSystem({"data/table.csv": b"a,b\n1,2\n"})
    path = build_sys.input_external_path("data/table.csv")
    assert path.read_bytes() == b"a,b\n1,2\n"


def test_simple_build_system(tmp_path: Path):
    project = tmp_path / "project"
    project.mkdir()
    (project / "doc.md").write_text("source", encoding="utf-8")
    build_sys = SimpleBuildSystem(project, tmp_path / "out")

    assert build_sys.read_text("doc.md") == "source"
    assert build_sys.input_external_path("doc.md") == (project / "doc.md").resolve()
    with pytest.raises(ValueError):
        build_sys.read_bytes("missing.md")

    build_sys.write_bytes("figures/a.png", b"png")
    assert (tmp_path / "out" / "figures" / "a.png").read_bytes() == b"png"


def test_simple_build_system_requires_project_dir(tmp_path: Path):
    with pytest.raises(ValueError):
        SimpleBuildSystem(tmp_path / "nope", tmp_path / "out")
    with pytest.raises(ValueError):
        SimpleBuildSystem(tmp_path, tmp_path / "out", make_output_dir=False)
