import folium
import pytest
from folium.map import FitBounds
from folium.plugins import HeatMap

from bikemap.config import DEFAULTS
from bikemap.filters import FilterSelection, filter_collisions
from bikemap.render import COLLISIONS_LAYER_NAME, HEAT_LAYER_NAME, LayerRenderer, build_layer_set, detach
from bikemap.speed import SPEED_BUCKETS
from bikemap.severity import SEVERITY_CATEGORIES

ALL = FilterSelection(set(SPEED_BUCKETS), set(SEVERITY_CATEGORIES))


@pytest.fixture
def renderer():
    m = folium.Map(location=[45.5, -73.56], zoom_start=12)
    return LayerRenderer(m, DEFAULTS["markers"], DEFAULTS["heatmap"])


def groups(m, name):
    return [c for c in m._children.values() if isinstance(c, folium.FeatureGroup) and c.layer_name == name]


def fits(m):
    return [c for c in m._children.values() if isinstance(c, FitBounds)]


def test_layer_set_contents(collisions, fields):
    filtered = filter_collisions(collisions, FilterSelection({"100plus"}, {"serious"}), fields)
    layer_set = build_layer_set(filtered, fields)
    assert len(layer_set) == 1
    marker = layer_set.markers[0]
    assert marker["location"] == [45.55, -73.60]
    assert marker["category"] == "serious"
    assert marker["color"] == "red"
    assert "c2" in marker["popup"]
    assert "100 km/h" in marker["popup"]
    assert "Accident mortel" in marker["popup"]
    assert layer_set.heat_samples == [[45.55, -73.60, 0.6]]


def test_layer_set_bounds(collisions, fields):
    layer_set = build_layer_set(filter_collisions(collisions, ALL, fields), fields)
    assert layer_set.bounds == [[45.48, -73.62], [45.55, -73.56]]


def test_no_injury_marker_is_green(collisions, fields):
    filtered = filter_collisions(collisions, FilterSelection({"under50"}, {"none"}), fields)
    assert [m["color"] for m in build_layer_set(filtered, fields).markers] == ["green"]


def test_popup_shows_bicycle_count(collisions, fields):
    collisions["NB_BICYCLETTE"] = [1, 2, None, 1, 1, 1]
    layer_set = build_layer_set(collisions.iloc[[1, 2]], fields)
    assert "<b>Bicycles:</b> 2" in layer_set.markers[0]["popup"]
    assert "Bicycles" not in layer_set.markers[1]["popup"]


def test_empty_layer_set(collisions, fields):
    layer_set = build_layer_set(collisions.iloc[0:0], fields)
    assert layer_set.is_empty
    assert layer_set.bounds is None
    assert layer_set.heat_samples == []


def test_render_attaches_markers_and_heatmap(renderer, collisions, fields):
    layer_set = build_layer_set(filter_collisions(collisions, ALL, fields), fields)
    renderer.render(layer_set)
    assert renderer.marker_count == 5
    heat = groups(renderer.map, HEAT_LAYER_NAME)
    assert len(heat) == 1
    assert any(isinstance(c, HeatMap) for c in heat[0]._children.values())
    assert len(fits(renderer.map)) == 1


def test_rerender_replaces_layers(renderer, collisions, fields):
    layer_set = build_layer_set(filter_collisions(collisions, ALL, fields), fields)
    renderer.render(layer_set)
    renderer.render(layer_set)
    assert renderer.marker_count == 5
    assert len(groups(renderer.map, COLLISIONS_LAYER_NAME)) == 1
    assert len(groups(renderer.map, HEAT_LAYER_NAME)) == 1
    assert len(fits(renderer.map)) == 1


def test_empty_render_keeps_viewport(renderer, collisions, fields):
    renderer.render(build_layer_set(filter_collisions(collisions, ALL, fields), fields))
    fit = fits(renderer.map)[0]
    renderer.render(build_layer_set(collisions.iloc[0:0], fields))
    assert renderer.marker_count == 0
    assert fits(renderer.map) == [fit]
    heat = groups(renderer.map, HEAT_LAYER_NAME)[0]
    assert not any(isinstance(c, HeatMap) for c in heat._children.values())


def test_detach_removes_only_the_given_element():
    m = folium.Map(location=[45.5, -73.56])
    keep = folium.FeatureGroup(name="keep").add_to(m)
    drop = folium.FeatureGroup(name="drop").add_to(m)
    detach(m, drop)
    detach(m, drop)
    detach(m, None)
    assert keep.get_name() in m._children
    assert drop.get_name() not in m._children
