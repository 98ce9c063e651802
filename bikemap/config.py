import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

# Defaults
DEFAULTS = {
    "data": {
        "collisions": "data/bikes.geojson",
        "network": "data/reseau_cyclable.json",
    },
    "fields": {
        "speed": "VITESSE_AUTOR",
        "severity": "GRAVITE",
        "id": "NO_SEQ_COLL",
        "bicycles": "NB_BICYCLETTE",
        "separator": "SEPARATEUR_CODE",
    },
    "map": {
        "center": [45.508888, -73.561668],  # Montréal
        "zoom": 12,
        "max_zoom": 20,
        "tiles": "OpenStreetMap",
    },
    "markers": {
        "radius": 6,
        "color": "#333",
        "weight": 1,
        "opacity": 1,
        "fill_opacity": 0.8,
    },
    "heatmap": {
        "weight": 0.6,
        "radius": 25,
        "blur": 20,
        "min_opacity": 0.25,
        "gradient": {0.0: "green", 0.5: "yellow", 1.0: "red"},
    },
    "filters": {
        "speeds": [],
        "severities": [],
    },
    "output": {
        "html": "outputs/bike_collisions_map.html",
    },
    "http": {
        "timeout": 30,
    },
}

# Keys under "data" and "output" that hold paths relative to the config file.
PATH_KEYS = {"data": ("collisions", "network"), "output": ("html",)}


class ConfigError(ValueError):
    """Raised when the configuration file cannot be used."""


def is_url(source) -> bool:
    return str(source).startswith(("http://", "https://"))


def merge_config(raw: dict) -> dict:
    """Overlay a user config on DEFAULTS, one section at a time."""
    config = {}
    for section, defaults in DEFAULTS.items():
        override = raw.get(section) or {}
        if not isinstance(override, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping, got {type(override).__name__}")
        config[section] = {**defaults, **override}

    # An empty YAML key ("speeds:") loads as None and means no checkbox ticked.
    for key in ("speeds", "severities"):
        value = config["filters"][key]
        if value is None:
            config["filters"][key] = []
        elif not isinstance(value, (list, tuple)):
            raise ConfigError(f"filters.{key} must be a list, got {type(value).__name__}")
        else:
            config["filters"][key] = [str(v) for v in value]

    unknown = set(raw) - set(DEFAULTS)
    if unknown:
        logger.warning(f"Ignoring unknown config sections: {sorted(unknown)}")
    return config


def load_config(path=None) -> dict:
    """Load config.yaml merged over DEFAULTS.

    Relative data/output paths are resolved against the config file's directory.
    A missing file is not an error: the defaults are used as-is.
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    raw = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level")
        logger.info(f"Loaded config from {path}")
    else:
        logger.warning(f"Config file {path} not found; using defaults")

    config = merge_config(raw)

    base_dir = path.parent
    for section, keys in PATH_KEYS.items():
        for key in keys:
            value = config[section].get(key)
            if value and not is_url(value) and not Path(value).is_absolute():
                config[section][key] = str(base_dir / value)
    return config
