"""Tests for county_density.maps: legend construction and PNG output."""
from __future__ import annotations

import math

import pytest

from county_density.classes import ClassScheme, LabelConvention, classify_values
from county_density.maps import NO_DATA_LABEL, PlotTheme, class_colors, legend_handles, make_plot

DENSITY = (0, 2, 6, 18, 45, 90, math.inf)


@pytest.fixture
def classed(counties_gdf):
    out = classify_values(counties_gdf["density"], ClassScheme(DENSITY), missing="keep")
    return counties_gdf.assign(class_idx=out["class_idx"], class_label=out["class_label"])


class TestLegend:

    def test_one_color_per_class(self):
        colors = class_colors(6, PlotTheme())
        assert len(colors) == 6
        assert len(set(colors)) == 6

    def test_handles_follow_labels(self):
        scheme = ClassScheme(DENSITY, LabelConvention.ROUNDED)
        handles = legend_handles(scheme, PlotTheme())
        assert [h.get_label() for h in handles] == scheme.labels()

    def test_no_data_entry_last(self):
        handles = legend_handles(ClassScheme(DENSITY), PlotTheme(), with_missing=True)
        assert handles[-1].get_label() == NO_DATA_LABEL
        assert len(handles) == 7


class TestMakePlot:

    def test_writes_png(self, classed, tmp_path, capsys):
        out = make_plot(classed, ClassScheme(DENSITY), tmp_path / "sub" / "m.png", "Test map")
        assert out.exists()
        assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
        assert "Wrote:" in capsys.readouterr().out

    def test_dark_theme(self, classed, tmp_path):
        theme = PlotTheme(palette="Blues", background="black", text_color="white", dpi=50)
        assert make_plot(classed, ClassScheme(DENSITY), tmp_path / "d.png", "Dark", theme).exists()

    def test_requires_classified_frame(self, counties_gdf, tmp_path):
        with pytest.raises(ValueError, match="class_idx"):
            make_plot(counties_gdf, ClassScheme(DENSITY), tmp_path / "x.png", "x")
