# essay.py
# One county dataset, five legends. Each map uses the same breaks and the same
# class assignment; only the label convention changes.

from __future__ import annotations

import argparse
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import NamedTuple, Optional

import geopandas as gpd

from county_density import data
from county_density.classes import ClassScheme, LabelConvention, classify_values
from county_density.maps import PlotTheme, make_plot

log = logging.getLogger(__name__)

# ---------------------- CONFIG ----------------------
CSV_INPUT   = "county_population.csv"  # fips, population, land_area
SHP_URL     = "https://www2.census.gov/geo/tiger/GENZ2023/shp/cb_2023_us_county_20m.zip"
OUT_DIR     = "maps"

DENSITY_BREAKS    = (0, 2, 6, 18, 45, 90, math.inf)  # people per km²
POPULATION_BREAKS = (100, 1_000, 10_000, 100_000, 1_000_000, 10_000_000)

FOOTNOTE = "US Albers Equal Area — US Census Bureau"
# ----------------------------------------------------


class MapSpec(NamedTuple):
    column: str
    scheme: ClassScheme
    title: str
    legend_title: Optional[str] = None  # None keeps PlotTheme.legend_title


SCHEMES: dict[str, MapSpec] = {
    "overlapping": MapSpec(
        "density",
        ClassScheme(DENSITY_BREAKS, LabelConvention.OVERLAPPING),
        "Population density: overlapping labels",
    ),
    "interval": MapSpec(
        "density",
        ClassScheme(DENSITY_BREAKS, LabelConvention.RAW_INTERVAL),
        "Population density: interval notation",
    ),
    "rounded": MapSpec(
        "density",
        ClassScheme(DENSITY_BREAKS, LabelConvention.ROUNDED, precision=1),
        "Population density: rounded labels",
    ),
    "pseudo-rounded": MapSpec(
        "density",
        ClassScheme(DENSITY_BREAKS, LabelConvention.PSEUDO_ROUNDED, precision=1, epsilon=1e-5),
        "Population density: pseudo-rounded labels",
    ),
    "discrete": MapSpec(
        "population",
        ClassScheme(POPULATION_BREAKS, LabelConvention.DISCRETE),
        "County population: discrete counts",
        legend_title="People",
    ),
}


def classify_frame(gdf: gpd.GeoDataFrame, spec: MapSpec) -> gpd.GeoDataFrame:
    classes = classify_values(gdf[spec.column], spec.scheme, missing="keep")
    return gdf.assign(class_idx=classes["class_idx"], class_label=classes["class_label"])


def render_all(gdf: gpd.GeoDataFrame, out_dir, names: Optional[list[str]] = None,
               theme: PlotTheme = PlotTheme(footnote=FOOTNOTE)) -> list[Path]:
    names = list(SCHEMES) if not names else names
    unknown = [n for n in names if n not in SCHEMES]
    if unknown:
        raise KeyError(f"Unknown scheme(s): {unknown}; choose from {list(SCHEMES)}.")
    out_dir = Path(out_dir)
    written = []
    for name in names:
        spec = SCHEMES[name]
        log.info("Rendering %s (%s, %d classes)", name, spec.scheme.convention.value, spec.scheme.k)
        classed = classify_frame(gdf, spec)
        map_theme = replace(theme, legend_title=spec.legend_title) if spec.legend_title else theme
        written.append(make_plot(classed, spec.scheme, out_dir / f"{name}.png", spec.title, map_theme))
    return written


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="county-density",
        description="Render county density choropleths under several legend conventions.",
    )
    p.add_argument("--csv", default=CSV_INPUT, help="County CSV with fips, population, land_area.")
    p.add_argument("--shapes", default=SHP_URL, help="County shapefile path or URL.")
    p.add_argument("--area-unit", choices=("km2", "mi2"), default="km2",
                   help="Unit of the CSV's land_area column.")
    p.add_argument("--out-dir", default=OUT_DIR)
    p.add_argument("--scheme", action="append", choices=list(SCHEMES), dest="schemes",
                   help="Render only this scheme (repeatable). Default: all.")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    # Load & merge
    shapes = data.load_shapes(args.shapes)
    counties = data.load_counties(args.csv, area_unit=args.area_unit)
    gdf = data.join(shapes, counties)

    # Classify & plot
    render_all(gdf, args.out_dir, args.schemes)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
