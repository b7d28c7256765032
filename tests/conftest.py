import matplotlib

matplotlib.use("Agg")

import geopandas as gpd  # noqa: E402
import pytest  # noqa: E402
from shapely.geometry import box  # noqa: E402


@pytest.fixture
def counties_gdf():
    """Five unit squares standing in for counties, one with no data."""
    return gpd.GeoDataFrame(
        {
            "fips": ["01001", "01003", "01005", "01007", "01009"],
            "population": [150.0, 2_500.0, 40_000.0, 600_000.0, None],
            "density": [0.0, 5.0, 18.0, 120.0, None],
        },
        geometry=[box(i, 0, i + 1, 1) for i in range(5)],
        crs="EPSG:5070",
    )
