import logging
from pathlib import Path

import folium

from bikemap.controls import FilterControls, filter_panel_html
from bikemap.filters import filter_collisions
from bikemap.loader import load_overlays
from bikemap.network import build_network_layer, network_legend_html
from bikemap.render import LayerRenderer, build_layer_set, detach
from bikemap.severity import SEVERITY_CATEGORIES, SEVERITY_COLORS, SEVERITY_LABELS

logger = logging.getLogger(__name__)


def severity_legend_html() -> str:
    html = ('<div class="map-legend" style="position:fixed;bottom:30px;left:30px;z-index:1000;'
            'background:white;padding:8px 12px;border-radius:4px;'
            'box-shadow:0 1px 4px rgba(0,0,0,0.3);font-size:12px;line-height:1.8;">')
    html += '<h6 style="margin:0 0 4px 0;">Accident Severity</h6>'
    for category in SEVERITY_CATEGORIES:
        html += (f'<span style="display:inline-block;width:12px;height:12px;'
                 f'background:{SEVERITY_COLORS[category]};border:1px solid #333;border-radius:50%;'
                 f'margin-right:6px;vertical-align:middle;"></span>{SEVERITY_LABELS[category]}<br>')
    html += '</div>'
    return html


class BikeMapApp:
    """Holds all map state: datasets, filter checkboxes and rendered layers."""

    def __init__(self, config: dict):
        self.config = config
        self.fields = config["fields"]
        map_cfg = config["map"]
        self.map = folium.Map(
            location=map_cfg["center"],
            zoom_start=map_cfg["zoom"],
            max_zoom=map_cfg["max_zoom"],
            tiles=map_cfg["tiles"],
        )
        self.collisions = None
        self.network_layer = None
        self.layer_set = None
        self.renderer = LayerRenderer(self.map, config["markers"], config["heatmap"])
        self.controls = FilterControls(config["filters"]["speeds"], config["filters"]["severities"])
        self.controls.subscribe(self.on_filter_change)
        self._page_elements = []

    @property
    def has_collisions(self) -> bool:
        return self.collisions is not None

    def on_collisions_loaded(self, gdf):
        self.collisions = gdf
        logger.info(f"Cached {len(gdf)} collisions")
        self.render_layers()

    def on_network_loaded(self, gdf):
        if self.network_layer is not None:
            logger.debug("Bike network already on the map; ignoring reload")
            return
        self.network_layer = build_network_layer(gdf, self.fields["separator"])
        self.network_layer.add_to(self.map)
        self.map.get_root().html.add_child(folium.Element(network_legend_html()))
        logger.info(f"Added bike network with {len(gdf)} segments")

    def on_filter_change(self, selection):
        self.render_layers()

    def render_layers(self):
        if not self.has_collisions:
            logger.debug("Collisions not loaded yet; skipping render")
            return
        filtered = filter_collisions(self.collisions, self.controls.selection, self.fields)
        self.layer_set = build_layer_set(filtered, self.fields, self.config["heatmap"]["weight"])
        self.renderer.render(self.layer_set)

    def load(self, collisions_source=None, network_source=None) -> dict:
        data_cfg = self.config["data"]
        sources = {
            "collisions": collisions_source or data_cfg["collisions"],
            "network": network_source or data_cfg["network"],
        }
        handlers = {
            "collisions": self.on_collisions_loaded,
            "network": self.on_network_loaded,
        }
        required = {
            "collisions": [self.fields[k] for k in ("speed", "severity", "id")],
            "network": [self.fields["separator"]],
        }
        return load_overlays(sources, handlers, required, timeout=self.config["http"]["timeout"],
                             geom_types={"collisions": "Point"})

    def _reset_page_elements(self):
        root_html = self.map.get_root().html
        for element in self._page_elements:
            detach(root_html, element)
            detach(self.map, element)
        self._page_elements = []

    def save(self, path=None) -> Path:
        path = Path(path or self.config["output"]["html"])
        path.parent.mkdir(parents=True, exist_ok=True)

        # Panel, legend and layer control reflect the current state only.
        self._reset_page_elements()
        root_html = self.map.get_root().html
        for snippet in (severity_legend_html(), filter_panel_html(self.controls.selection)):
            element = folium.Element(snippet)
            root_html.add_child(element)
            self._page_elements.append(element)
        layer_control = folium.LayerControl(collapsed=False)
        layer_control.add_to(self.map)
        self._page_elements.append(layer_control)

        self.map.save(str(path))
        logger.info(f"✅ Map saved to {path}")
        return path
