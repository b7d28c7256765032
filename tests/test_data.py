"""Tests for county_density.data: CSV loading, shapes and the FIPS join."""
from __future__ import annotations

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from county_density import data


def _write_csv(path, text):
    path.write_text(text)
    return path


@pytest.fixture
def county_csv(tmp_path):
    return _write_csv(
        tmp_path / "counties.csv",
        'FIPS,Population,Land_Area\n'
        '1001,"58,805",1539.6\n'
        '01003,231767,4117.5\n'
        '02013,3389,0\n'
        '06037,9829544,10510.0\n',
    )


@pytest.fixture
def shapes_path(tmp_path):
    g = gpd.GeoDataFrame(
        {"GEOID": ["01001", "01003", "02013", "06037"], "NAME": ["A", "B", "C", "D"]},
        geometry=[box(-90 + i, 35, -89 + i, 36) for i in range(4)],
        crs="EPSG:4326",
    )
    path = tmp_path / "counties.gpkg"
    g.to_file(path, driver="GPKG")
    return path


class TestLoadCounties:

    def test_fips_padded_and_density_computed(self, county_csv):
        df = data.load_counties(county_csv)
        assert df["fips"].tolist() == ["01001", "01003", "02013", "06037"]
        assert df.loc[0, "population"] == 58805
        assert df.loc[0, "density"] == pytest.approx(58805 / 1539.6)

    def test_zero_area_gives_nan_not_inf(self, county_csv):
        df = data.load_counties(county_csv)
        assert pd.isna(df.loc[2, "density"])

    def test_square_miles_converted_to_km2(self, county_csv):
        km2 = data.load_counties(county_csv)
        mi2 = data.load_counties(county_csv, area_unit="mi2")
        assert mi2.loc[1, "density"] == pytest.approx(km2.loc[1, "density"] / data.KM2_PER_MI2)

    def test_missing_columns(self, tmp_path):
        path = _write_csv(tmp_path / "bad.csv", "fips,population\n01001,10\n")
        with pytest.raises(ValueError, match="land_area"):
            data.load_counties(path)

    def test_no_valid_density(self, tmp_path):
        path = _write_csv(tmp_path / "bad.csv", "fips,population,land_area\n01001,x,10\n")
        with pytest.raises(ValueError, match="No valid densities"):
            data.load_counties(path)

    def test_unknown_area_unit(self, county_csv):
        with pytest.raises(ValueError):
            data.load_counties(county_csv, area_unit="acres")


class TestShapesAndJoin:

    def test_load_shapes_drops_non_contiguous(self, shapes_path):
        g = data.load_shapes(shapes_path)
        assert sorted(g["fips"]) == ["01001", "01003", "06037"]
        assert g.crs.to_epsg() == 5070

    def test_load_shapes_from_state_and_county_codes(self, tmp_path):
        g = gpd.GeoDataFrame(
            {"STATEFP": ["1"], "COUNTYFP": ["1"]},
            geometry=[box(-90, 35, -89, 36)],
            crs="EPSG:4326",
        )
        path = tmp_path / "sc.gpkg"
        g.to_file(path, driver="GPKG")
        assert data.load_shapes(path)["fips"].tolist() == ["01001"]

    def test_join_on_fips(self, shapes_path, county_csv):
        gdf = data.join(data.load_shapes(shapes_path), data.load_counties(county_csv))
        assert len(gdf) == 3
        assert set(gdf.columns) >= {"fips", "population", "density", "geometry"}
        assert gdf.set_index("fips").loc["06037", "population"] == 9829544

    def test_join_empty_raises(self, shapes_path, county_csv):
        shapes = data.load_shapes(shapes_path).iloc[0:0]
        with pytest.raises(RuntimeError):
            data.join(shapes, data.load_counties(county_csv))
