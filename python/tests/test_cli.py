from pathlib import Path

import pytest

from figref.cli import autodetect_input, autodetect_output
from figref.cli.__main__ import run_cli

REPORT = """\
<!-- figref: figure-dir=img -->
Intro to {{ ref("fig_b") }}.

```{python}
figure("given.png", caption=cap("fig_a", "First"))
```

{{ cap("fig_b", "Second", inline=True) }}
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    (project / "report.md").write_text(REPORT, encoding="utf-8")
    return project


def test_autodetect_input_from_document_folder(project: Path):
    params = autodetect_input(str(project / "report.md"), None)
    assert params.project_dir == project
    assert params.input_rel_path == "report.md"


def test_autodetect_input_with_project_dir(project: Path):
    params = autodetect_input(str(project / "report.md"), str(project))
    assert params.input_rel_path == "report.md"

    params = autodetect_input("report.md", str(project))
    assert params.input_rel_path == "report.md"


def test_autodetect_input_missing_file(tmp_path: Path):
    with pytest.raises(ValueError):
        autodetect_input(str(tmp_path / "missing.md"), None)


def test_autodetect_output(project: Path, tmp_path: Path):
    params = autodetect_output(
        str(tmp_path / "out"), autodetect_input(str(project / "report.md"), None)
    )
    assert params.input_stem == "report"
    assert params.output_dir == tmp_path / "out" / "report"
    assert params.output_dir.is_dir()


def test_render_command(project: Path, tmp_path: Path):
    out = tmp_path / "out"
    assert (
        run_cli(
            [
                "render",
                str(project / "report.md"),
                "--output-dir",
                str(out),
                "--base-url",
                "site/",
            ]
        )
        == 0
    )
    rendered = (out / "report" / "report.md").read_text(encoding="utf-8")
    assert rendered.startswith("Intro to Figure 2.\n")
    assert '<img src="site/given.png">' in rendered
    assert '<a name="fig_b"></a><span>Figure 2: Second</span>' in rendered


def test_render_command_reports_errors(tmp_path: Path, capsys):
    doc = tmp_path / "broken.md"
    doc.write_text('{{ ref("nope") }}\n', encoding="utf-8")
    assert run_cli(["render", str(doc), "--output-dir", str(tmp_path / "out")]) == 1
    assert "nope" in capsys.readouterr().err
    assert not (tmp_path / "out" / "broken" / "broken.md").exists()

    assert (
        run_cli(
            [
                "render",
                str(doc),
                "--output-dir",
                str(tmp_path / "out"),
                "--no-check-refs",
            ]
        )
        == 0
    )
    assert (tmp_path / "out" / "broken" / "broken.md").read_text(
        encoding="utf-8"
    ) == "Figure ??\n"


def test_labels_command(project: Path, capsys):
    assert run_cli(["labels", str(project / "report.md")]) == 0
    out = capsys.readouterr().out
    assert "2 caption label(s)" in out
    assert "Figure 1\tfig_a" in out
    assert "Figure 2\tfig_b" in out


def test_labels_command_duplicate(tmp_path: Path, capsys):
    doc = tmp_path / "dup.md"
    doc.write_text('cap("a", "x")\ncap("a", "y")\n', encoding="utf-8")
    assert run_cli(["labels", str(doc)]) == 1
    assert "'a'" in capsys.readouterr().err


def test_missing_input_is_a_one_line_error(tmp_path: Path, capsys):
    missing = str(tmp_path / "missing.md")
    assert run_cli(["render", missing, "--output-dir", str(tmp_path / "out")]) == 1
    assert run_cli(["labels", missing]) == 1
    err = capsys.readouterr().err
    assert err.count("error: ") == 2
    assert "Traceback" not in err


def test_bad_header_setting_is_a_one_line_error(tmp_path: Path, capsys):
    doc = tmp_path / "bad.md"
    doc.write_text("<!-- figref: dpi=lots -->\nText\n", encoding="utf-8")
    assert run_cli(["render", str(doc), "--output-dir", str(tmp_path / "out")]) == 1
    assert run_cli(["labels", str(doc)]) == 1
    err = capsys.readouterr().err
    assert err.count("error: ") == 2
    assert "dpi" in err
