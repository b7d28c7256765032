# data.py
# County CSV + county shapes -> one GeoDataFrame keyed by 5-digit FIPS.

from __future__ import annotations

import logging

import geopandas as gpd
import numpy as np
import pandas as pd

log = logging.getLogger(__name__)

DROP_STATES = {"02", "15", "60", "66", "69", "72", "78"}  # AK, HI, AS, GU, MP, PR, VI
ALBERS_CRS  = "EPSG:5070"
KM2_PER_MI2 = 2.589988110336

REQUIRED_COLUMNS = ("fips", "population", "land_area")


def _fips(series: pd.Series) -> pd.Series:
    return series.astype(str).str.strip().str.split(".").str[0].str.zfill(5)


def load_counties(csv_path, area_unit: str = "km2") -> pd.DataFrame:
    """
    Reads fips/population/land_area and adds 'density' in people per km².
    area_unit is the unit of the CSV's land_area column ("km2" or "mi2").
    """
    if area_unit not in ("km2", "mi2"):
        raise ValueError(f"area_unit must be 'km2' or 'mi2', got {area_unit!r}.")
    df = pd.read_csv(csv_path, dtype=str)
    df.columns = [c.strip().lower() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"CSV must have columns {REQUIRED_COLUMNS}; missing {missing}.")

    df["fips"] = _fips(df["fips"])
    df["population"] = pd.to_numeric(df["population"].str.replace(",", ""), errors="coerce")
    df["land_area"] = pd.to_numeric(df["land_area"].str.replace(",", ""), errors="coerce")
    area = df["land_area"].where(df["land_area"] > 0)
    if area_unit == "mi2":
        area = area * KM2_PER_MI2
    df["density"] = df["population"] / area
    if df["density"].dropna().empty:
        raise ValueError("No valid densities: check 'population' and 'land_area'.")

    n_bad = int(df["density"].isna().sum())
    if n_bad:
        log.warning("%d counties have no usable density", n_bad)
    return df[["fips", "population", "land_area", "density"]].copy()


def load_shapes(path_or_url, drop_states=DROP_STATES, crs: str = ALBERS_CRS) -> gpd.GeoDataFrame:
    g = gpd.read_file(path_or_url)
    if "GEOID" in g.columns:
        g["fips"] = _fips(g["GEOID"])
    elif {"STATEFP", "COUNTYFP"} <= set(g.columns):
        g["fips"] = g["STATEFP"].astype(str).str.zfill(2) + g["COUNTYFP"].astype(str).str.zfill(3)
    else:
        raise ValueError("Shapes need a 'GEOID' column or 'STATEFP' + 'COUNTYFP'.")
    g = g[~g["fips"].str[:2].isin(drop_states)].copy()
    if g.crs is not None and crs:
        g = g.to_crs(crs)
    return g


def join(shapes: gpd.GeoDataFrame, counties: pd.DataFrame) -> gpd.GeoDataFrame:
    gdf = shapes.merge(counties, on="fips", how="left")
    if gdf.empty:
        raise RuntimeError("Merged GeoDataFrame is empty. Check the input CSV and shapefile schema.")
    gdf["density"] = gdf["density"].replace([np.inf, -np.inf], np.nan)
    unmatched = int(gdf["density"].isna().sum())
    if unmatched:
        log.warning("%d of %d shapes have no density after join", unmatched, len(gdf))
    return gdf
