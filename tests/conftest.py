import geopandas as gpd
import pytest
from shapely.geometry import LineString, Point

from bikemap.config import DEFAULTS, merge_config

FIELDS = dict(DEFAULTS["fields"])


def make_collisions(rows):
    """rows: (id, lon, lat, speed, severity) tuples."""
    return gpd.GeoDataFrame(
        {
            "NO_SEQ_COLL": [r[0] for r in rows],
            "VITESSE_AUTOR": [r[3] for r in rows],
            "GRAVITE": [r[4] for r in rows],
        },
        geometry=[Point(r[1], r[2]) for r in rows],
        crs="EPSG:4326",
    )


@pytest.fixture
def fields():
    return dict(FIELDS)


@pytest.fixture
def collisions():
    return make_collisions([
        ("c1", -73.56, 45.50, "45", "Dommages matériels seulement"),
        ("c2", -73.60, 45.55, "100", "Accident mortel"),
        ("c3", -73.58, 45.52, "50", "Blessé léger"),
        ("c4", -73.57, 45.51, "", "Grave"),
        ("c5", -73.59, 45.53, 70, None),
        ("c6", -73.62, 45.48, "90", "GRAVE"),
    ])


@pytest.fixture
def network():
    return gpd.GeoDataFrame(
        {"SEPARATEUR_CODE": ["M", "D", " ", None]},
        geometry=[
            LineString([(-73.57, 45.50), (-73.56, 45.51)]),
            LineString([(-73.58, 45.52), (-73.57, 45.53)]),
            LineString([(-73.60, 45.53), (-73.59, 45.54)]),
            LineString([(-73.61, 45.54), (-73.60, 45.55)]),
        ],
        crs="EPSG:4326",
    )


@pytest.fixture
def config():
    return merge_config({})


@pytest.fixture
def write_geojson(tmp_path):
    def _write(name, gdf):
        path = tmp_path / name
        path.write_text(gdf.to_json(), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def feature_collection():
    def _fc(features):
        return {"type": "FeatureCollection", "features": features}
    return _fc
