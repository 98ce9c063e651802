"""Speed limit buckets used by the speed filter checkboxes."""
import math
from functools import reduce

import pandas as pd

SPEED_BUCKETS = ("under50", "50", "60", "70", "80", "90", "100plus")

SPEED_LABELS = {
    "under50": "<50 km/h",
    "50": "50 km/h",
    "60": "60 km/h",
    "70": "70 km/h",
    "80": "80 km/h",
    "90": "90 km/h",
    "100plus": "100+ km/h",
}

# Each rule accepts a float or a pandas Series. NaN compares False everywhere,
# so an unparseable speed never lands in a bucket.
BUCKET_RULES = {
    "under50": lambda s: s < 50,
    "50": lambda s: s == 50,
    "60": lambda s: s == 60,
    "70": lambda s: s == 70,
    "80": lambda s: s == 80,
    "90": lambda s: s == 90,
    "100plus": lambda s: s >= 100,
}


def parse_speed(value) -> float:
    """Convert a raw speed limit attribute to float, NaN when it cannot be read."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def _rule(bucket):
    try:
        return BUCKET_RULES[bucket]
    except KeyError:
        raise ValueError(f"Unknown speed bucket: {bucket!r}") from None


def in_bucket(speed, bucket):
    return _rule(bucket)(speed)


def matches_speed(speed, buckets) -> bool:
    """True iff the speed falls in at least one of the selected buckets."""
    speed = parse_speed(speed)
    return any(bool(in_bucket(speed, b)) for b in buckets)


def speed_mask(speeds: pd.Series, buckets) -> pd.Series:
    """Element-wise matches_speed over a Series of already parsed speeds."""
    empty = pd.Series(False, index=speeds.index)
    return reduce(lambda acc, b: acc | in_bucket(speeds, b), sorted(buckets), empty)
