import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

import geopandas as gpd
import requests

from bikemap.config import is_url

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"


def _fetch_remote(url: str, timeout: float) -> gpd.GeoDataFrame:
    res = requests.get(url, timeout=timeout)
    res.raise_for_status()
    features = res.json().get("features", [])
    if not features:
        return gpd.GeoDataFrame(geometry=[], crs=WGS84)
    return gpd.GeoDataFrame.from_features(features, crs=WGS84)


def to_wgs84(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    # Ensure CRS matches the web map CRS
    if gdf.crs is None:
        return gdf.set_crs(WGS84)
    if gdf.crs.to_string() != WGS84:
        return gdf.to_crs(WGS84)
    return gdf


# Purpose: Read a GeoJSON dataset from a local path or an http(s) URL.
# Inputs:
# - source (str | Path): File path or URL.
# - required_fields (iterable[str]): Attribute columns the map needs; missing ones are added empty.
# - timeout (float): Seconds to wait on a remote fetch.
# - geom_type (str | None): When set, features of any other geometry type are dropped.
# Outputs:
# - GeoDataFrame in EPSG:4326 with features lacking geometry removed.
def read_geojson(source, required_fields=(), timeout: float = 30, geom_type=None) -> gpd.GeoDataFrame:
    if is_url(source):
        gdf = _fetch_remote(str(source), timeout)
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Dataset not found: {path}")
        gdf = gpd.read_file(path)

    gdf = to_wgs84(gdf)

    missing_geom = gdf.geometry.isna() | gdf.geometry.is_empty
    if missing_geom.any():
        logger.warning(f"{source}: dropped {int(missing_geom.sum())} features without geometry")
        gdf = gdf[~missing_geom].copy()

    if geom_type is not None:
        wrong_type = gdf.geometry.geom_type != geom_type
        if wrong_type.any():
            logger.warning(f"{source}: dropped {int(wrong_type.sum())} features that are not {geom_type}s")
            gdf = gdf[~wrong_type].copy()

    for field in required_fields:
        if field not in gdf.columns:
            logger.warning(f"{source}: attribute {field} missing; treating it as blank")
            gdf[field] = None

    logger.info(f"Loaded {source} with {len(gdf)} features.")
    return gdf


def load_overlays(sources: dict, handlers: dict, required_fields=None, timeout: float = 30, geom_types=None) -> dict:
    """Fetch every source concurrently and hand each result to its handler.

    `sources` and `handlers` are keyed by overlay name. Reads run on worker
    threads; handlers run on the calling thread in completion order. A failed
    read is logged and its handler is never called; a handler that raises is
    logged and does not stop the other overlays.
    Returns {name: loaded_ok}.
    """
    required_fields = required_fields or {}
    geom_types = geom_types or {}
    status = {}
    with ThreadPoolExecutor(max_workers=max(len(sources), 1)) as pool:
        futures = {
            pool.submit(read_geojson, src, required_fields.get(name, ()), timeout, geom_types.get(name)): name
            for name, src in sources.items()
        }
        for fut in as_completed(futures):
            name = futures[fut]
            try:
                gdf = fut.result()
            except Exception as e:
                logger.error(f"❌ Failed to load {name} from {sources[name]}: {e}")
                status[name] = False
                continue
            try:
                handlers[name](gdf)
            except Exception as e:
                logger.error(f"❌ Failed to build the {name} layer: {e}")
                status[name] = False
                continue
            status[name] = True
    return status
