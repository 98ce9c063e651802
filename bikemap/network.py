import folium
import geopandas as gpd

NETWORK_LAYER_NAME = "Bike Network"

PROTECTED_CODES = {"M", "C", "J", "S"}
NON_PROTECTED_CODES = {"D", "P"}

# Style dictionaries with default fallback
LANE_STYLES = {
    "protected": {"color": "#66b7d0", "weight": 2, "opacity": 0.9},
    "non_protected": {"color": "#c780e8", "weight": 1.8, "opacity": 0.9},
    "default": {"color": "#737373", "weight": 1, "opacity": 0.5},  # Fallback style
}

LEGEND_ITEMS = [
    (LANE_STYLES["protected"]["color"], "Protected lanes"),
    (LANE_STYLES["non_protected"]["color"], "Non-protected lanes"),
]


def lane_class(code) -> str:
    """Classify a lane separator code as protected, non_protected or default."""
    if not isinstance(code, str):
        return "default"
    sep = code.strip().upper()
    if sep in PROTECTED_CODES:
        return "protected"
    if sep in NON_PROTECTED_CODES:
        return "non_protected"
    return "default"


def make_lane_style(field: str):
    """Build a GeoJson style_function keyed on the separator field."""
    def lane_style(feature):
        code = (feature.get("properties") or {}).get(field)
        return dict(LANE_STYLES[lane_class(code)])
    return lane_style


def build_network_layer(network: gpd.GeoDataFrame, field: str) -> folium.GeoJson:
    # Only the separator code is shown; other columns may not be JSON serializable.
    return folium.GeoJson(
        network[[field, "geometry"]],
        name=NETWORK_LAYER_NAME,
        style_function=make_lane_style(field),
        popup=folium.GeoJsonPopup(fields=[field], aliases=[f"{field}:"]),
    )


def network_legend_html() -> str:
    html = ('<div class="map-legend" style="position:fixed;bottom:30px;right:10px;z-index:1000;'
            'background:white;padding:8px 12px;border-radius:4px;'
            'box-shadow:0 1px 4px rgba(0,0,0,0.3);font-size:12px;line-height:1.8;">')
    html += '<h6 style="margin:0 0 4px 0;">Bike Lanes</h6>'
    for color, label in LEGEND_ITEMS:
        html += (f'<div><span style="display:inline-block;width:20px;height:3px;background:{color};'
                 f'margin-right:6px;vertical-align:middle;"></span>{label}</div>')
    html += '</div>'
    return html
