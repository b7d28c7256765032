# maps.py
# Choropleth of pre-classified counties (class_idx / class_label) with a manual legend.

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import geopandas as gpd
import matplotlib.pyplot as plt
from matplotlib.colors import rgb2hex
from matplotlib.patches import Patch

from county_density.classes import ClassScheme

log = logging.getLogger(__name__)

NO_DATA_LABEL = "No data"


@dataclass(frozen=True)
class PlotTheme:
    palette: str = "YlOrRd"
    background: str = "white"
    text_color: str = "black"
    edge_color: str = "#bfbfbf"
    outline_color: str = "#606060"
    missing_color: str = "#d9d9d9"
    edge_width: float = 0.1
    figsize: tuple[float, float] = (12, 7)
    dpi: int = 150
    legend_title: str = "People per km²"
    legend_loc: str = "lower right"
    footnote: str = "US Albers Equal Area — US Census Bureau"


def class_colors(k: int, theme: PlotTheme) -> list:
    cmap = plt.get_cmap(theme.palette, k)  # discrete light->dark
    return [rgb2hex(cmap(i)) for i in range(k)]


def legend_handles(scheme: ClassScheme, theme: PlotTheme, with_missing: bool = False) -> list[Patch]:
    colors = class_colors(scheme.k, theme)
    handles = [
        Patch(facecolor=colors[i], edgecolor=theme.edge_color, label=lbl)
        for i, lbl in enumerate(scheme.labels())
    ]
    if with_missing:
        handles.append(Patch(facecolor=theme.missing_color, edgecolor=theme.edge_color, label=NO_DATA_LABEL))
    return handles


def make_plot(gdf: gpd.GeoDataFrame, scheme: ClassScheme, out_png, title: str,
              theme: PlotTheme = PlotTheme()) -> Path:
    """gdf must already carry 'class_idx' from classes.classify_values(..., missing="keep")."""
    if "class_idx" not in gdf.columns:
        raise ValueError("gdf has no 'class_idx' column; classify it first.")
    out_png = Path(out_png)
    colors = class_colors(scheme.k, theme)

    fig, ax = plt.subplots(figsize=theme.figsize, dpi=theme.dpi, facecolor=theme.background)
    ax.set_facecolor(theme.background)

    # Class fills; counties with no class are drawn in the missing colour
    idx = gdf["class_idx"]
    no_data = idx.isna().to_numpy(dtype=bool)
    for i in range(scheme.k):
        part = gdf[idx.eq(i).fillna(False).to_numpy(dtype=bool)]
        if not part.empty:
            part.plot(ax=ax, color=colors[i], edgecolor=theme.edge_color, linewidth=theme.edge_width)
    if no_data.any():
        gdf[no_data].plot(ax=ax, color=theme.missing_color, edgecolor=theme.edge_color,
                          linewidth=theme.edge_width)
        log.info("%s: %d counties drawn as '%s'", out_png.name, int(no_data.sum()), NO_DATA_LABEL)
    # Silhouette
    gpd.GeoSeries([gdf.union_all()], crs=gdf.crs).boundary.plot(
        ax=ax, color=theme.outline_color, linewidth=0.8)

    leg = ax.legend(
        handles=legend_handles(scheme, theme, with_missing=bool(no_data.any())),
        title=theme.legend_title,
        loc=theme.legend_loc, frameon=True, framealpha=0.85,
        facecolor=theme.background, edgecolor="#aaaaaa", fontsize=8, title_fontsize=9
    )
    plt.setp(leg.get_title(), color=theme.text_color)
    for t in leg.get_texts():
        t.set_color(theme.text_color)

    # Title and footer
    ax.set_title(title, fontsize=13, fontweight="bold", pad=16, color=theme.text_color, loc="center")
    ax.text(
        0.01, 0.01, theme.footnote,
        transform=ax.transAxes,
        color="#888888", fontsize=7, ha="left", va="bottom", style="italic"
    )

    ax.axis("off")
    out_png.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(out_png, bbox_inches="tight", facecolor=fig.get_facecolor(), dpi=theme.dpi)
    print(f"Wrote: {out_png}")
    plt.close(fig)
    return out_png
