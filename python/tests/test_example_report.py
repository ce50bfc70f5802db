from pathlib import Path

from figref import SimpleBuildSystem, render_document

EXAMPLES_DIR = Path(__file__).parent.parent.parent / "examples"


def test_gazetteer_report_renders(tmp_path: Path):
    build_sys = SimpleBuildSystem(EXAMPLES_DIR, tmp_path)
    result = render_document(build_sys, "gazetteer_report.md", "gazetteer_report.md")

    assert result.registry.labels() == [
        "fig_sources",
        "fig_raster",
        "fig_continent",
        "fig_country",
    ]
    out = (tmp_path / "gazetteer_report.md").read_text(encoding="utf-8")
    assert "a gazetteer of 18 institutions" in out
    assert "17 of them have usable coordinates" in out
    assert "Figure 3 and Figure 4 break the counts down" in out
    assert '<a href="#fig_raster">Figure 2</a>' in out
    assert '<figure style="text-align: center"><a name="fig_raster"></a>' in out
    assert "28% of institutions lie inside a protected area." in out
    for label in result.registry.labels():
        png = tmp_path / "figures" / f"{label}.png"
        assert png.read_bytes().startswith(b"\x89PNG")
