"""Collision markers and heatmap layers.

Layers are rebuilt from scratch on every filter change: the previous feature
groups are detached from the map and fresh ones are attached in their place.
"""
import html
import logging

import folium
import geopandas as gpd
import pandas as pd
from folium.map import FitBounds
from folium.plugins import HeatMap

from bikemap.severity import classify_severity

logger = logging.getLogger(__name__)

COLLISIONS_LAYER_NAME = "Accident Severity"
HEAT_LAYER_NAME = "Heatmap"


class RenderedLayerSet:
    """Markers, heat samples and bounds derived from one filtered collision set."""

    def __init__(self, markers, heat_samples, bounds):
        self.markers = markers
        self.heat_samples = heat_samples
        self.bounds = bounds

    def __len__(self):
        return len(self.markers)

    @property
    def is_empty(self) -> bool:
        return not self.markers


def _fmt(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return html.escape(str(value))


def popup_html(row, fields: dict) -> str:
    lines = [
        f"<b>ID:</b> {_fmt(row.get(fields['id']))}",
        f"<b>Speed:</b> {_fmt(row.get(fields['speed']))} km/h",
        f"<b>Gravité:</b> {_fmt(row.get(fields['severity']))}",
    ]
    bicycles = row.get(fields["bicycles"])
    if bicycles is not None and not pd.isna(bicycles):
        lines.append(f"<b>Bicycles:</b> {_fmt(bicycles)}")
    return "<br>".join(lines)


def build_layer_set(filtered: gpd.GeoDataFrame, fields: dict, heat_weight: float = 0.6) -> RenderedLayerSet:
    markers = []
    heat_samples = []
    for _, row in filtered.iterrows():
        point = row.geometry
        if point.geom_type != "Point":
            point = point.representative_point()
        lat, lon = point.y, point.x
        category, color = classify_severity(row.get(fields["severity"]))
        markers.append({
            "location": [lat, lon],
            "category": category,
            "color": color,
            "popup": popup_html(row, fields),
        })
        heat_samples.append([lat, lon, heat_weight])

    bounds = None
    if markers:
        lats = [m["location"][0] for m in markers]
        lons = [m["location"][1] for m in markers]
        bounds = [[min(lats), min(lons)], [max(lats), max(lons)]]
    return RenderedLayerSet(markers, heat_samples, bounds)


def detach(parent, element):
    """Remove a child element from a folium map or branca container.

    folium only supports adding children, so the child registry is edited directly.
    """
    if element is not None:
        parent._children.pop(element.get_name(), None)


class LayerRenderer:
    """Owns the collision and heatmap layers of one folium map."""

    def __init__(self, m: folium.Map, marker_style: dict, heat_options: dict):
        self.map = m
        self.marker_style = dict(marker_style)
        self.heat_options = {k: v for k, v in heat_options.items() if k != "weight"}
        self.collisions_layer = None
        self.heat_layer = None
        self._fit = None

    @property
    def marker_count(self) -> int:
        if self.collisions_layer is None:
            return 0
        return sum(isinstance(c, folium.CircleMarker) for c in self.collisions_layer._children.values())

    def clear(self):
        detach(self.map, self.collisions_layer)
        detach(self.map, self.heat_layer)
        self.collisions_layer = None
        self.heat_layer = None

    def render(self, layer_set: RenderedLayerSet):
        self.clear()

        collisions = folium.FeatureGroup(name=COLLISIONS_LAYER_NAME, show=True)
        for marker in layer_set.markers:
            folium.CircleMarker(
                location=marker["location"],
                radius=self.marker_style["radius"],
                color=self.marker_style["color"],
                weight=self.marker_style["weight"],
                opacity=self.marker_style["opacity"],
                fill=True,
                fill_color=marker["color"],
                fill_opacity=self.marker_style["fill_opacity"],
                popup=folium.Popup(marker["popup"], max_width=300),
            ).add_to(collisions)

        heat = folium.FeatureGroup(name=HEAT_LAYER_NAME, show=True)
        if layer_set.heat_samples:
            HeatMap(layer_set.heat_samples, **self.heat_options).add_to(heat)

        collisions.add_to(self.map)
        heat.add_to(self.map)
        self.collisions_layer = collisions
        self.heat_layer = heat

        # An empty result leaves the viewport where it was.
        if not layer_set.is_empty:
            detach(self.map, self._fit)
            self._fit = FitBounds(layer_set.bounds)
            self.map.add_child(self._fit)

        logger.info(f"Rendered {len(layer_set)} collision markers")
