import logging
from dataclasses import dataclass

import geopandas as gpd

from bikemap.severity import SEVERITY_CATEGORIES, severity_category
from bikemap.speed import SPEED_BUCKETS, matches_speed, parse_speed, speed_mask

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterSelection:
    """Currently checked speed buckets and severity categories.

    An empty set on either axis selects nothing; there is no "show all" fallback.
    """
    speeds: frozenset = frozenset()
    severities: frozenset = frozenset()

    def __post_init__(self):
        speeds = frozenset(self.speeds)
        severities = frozenset(self.severities)
        bad_speeds = speeds - set(SPEED_BUCKETS)
        if bad_speeds:
            raise ValueError(f"Unknown speed buckets: {sorted(bad_speeds)}")
        bad_severities = severities - set(SEVERITY_CATEGORIES)
        if bad_severities:
            raise ValueError(f"Unknown severity categories: {sorted(bad_severities)}")
        object.__setattr__(self, "speeds", speeds)
        object.__setattr__(self, "severities", severities)

    @property
    def is_empty(self) -> bool:
        return not self.speeds or not self.severities

    def with_speed(self, bucket: str, checked: bool) -> "FilterSelection":
        speeds = self.speeds | {bucket} if checked else self.speeds - {bucket}
        return FilterSelection(speeds, self.severities)

    def with_severity(self, category: str, checked: bool) -> "FilterSelection":
        severities = self.severities | {category} if checked else self.severities - {category}
        return FilterSelection(self.speeds, severities)


def include_record(speed_value, severity_label, selection: FilterSelection) -> bool:
    """Per-record inclusion test: speed bucket AND severity category must both be selected."""
    speed_ok = bool(selection.speeds) and matches_speed(speed_value, selection.speeds)
    grav_ok = bool(selection.severities) and severity_category(severity_label) in selection.severities
    return speed_ok and grav_ok


def filter_collisions(collisions: gpd.GeoDataFrame, selection: FilterSelection, fields: dict) -> gpd.GeoDataFrame:
    """Return the collisions matching the selection, keeping row order and index.

    The input frame is left untouched.
    """
    if selection.is_empty or collisions.empty:
        return collisions.iloc[0:0].copy()

    speeds = collisions[fields["speed"]].map(parse_speed).astype(float)
    speed_ok = speed_mask(speeds, selection.speeds)
    grav_ok = collisions[fields["severity"]].map(severity_category).isin(selection.severities)

    filtered = collisions[speed_ok & grav_ok].copy()
    logger.debug(f"Filter kept {len(filtered)} of {len(collisions)} collisions")
    return filtered
