"""Layers — tests for kind resolution, field coercion and immutable merges."""

import pytest

from thumbnail_ai.core.domain_types import LayerType, ShapeType
from thumbnail_ai.core.errors import LayerValidationError
from thumbnail_ai.core.layers import (
    CropRect, ImageLayer, ShapeLayer, TextLayer, apply_fields, build_layer,
    coerce_fields, new_layer_id, normalize_key, resolve_kind,
)


def test_new_layer_ids_are_prefixed_and_unique():
    a, b = new_layer_id(), new_layer_id()
    assert a.startswith("layer_")
    assert a != b


@pytest.mark.parametrize("kind,expected", [
    ("text", (LayerType.TEXT, None)),
    (LayerType.IMAGE, (LayerType.IMAGE, None)),
    ("triangle", (LayerType.SHAPE, ShapeType.TRIANGLE)),
    (ShapeType.LINE, (LayerType.SHAPE, ShapeType.LINE)),
])
def test_resolve_kind(kind, expected):
    assert resolve_kind(kind) == expected


def test_resolve_unknown_kind_raises():
    with pytest.raises(LayerValidationError):
        resolve_kind("hexagon")


def test_normalize_key_maps_camel_case():
    assert normalize_key("fontSize") == "font_size"
    assert normalize_key("font_size") == "font_size"
    assert normalize_key("x") == "x"


def test_coerce_drops_fields_of_other_variants():
    result = coerce_fields(ImageLayer, {"text": "nope", "src": "u", "fontSize": 3})
    assert result == {"src": "u"}


def test_coerce_skips_bad_opacity_and_shape_type():
    result = coerce_fields(ShapeLayer, {"opacity": "loud", "shapeType": "blob", "fill": "#000"})
    assert result == {"fill": "#000"}


def test_coerce_builds_crop_rect():
    result = coerce_fields(ImageLayer, {"crop": {"x": 1, "y": 2, "width": 3, "height": 4}})
    assert result["crop"] == CropRect(1.0, 2.0, 3.0, 4.0)
    assert coerce_fields(ImageLayer, {"crop": {"x": 1}})["crop"] is None


@pytest.mark.parametrize("bad", ["abc", None, float("nan"), float("inf"), True, [1]])
def test_coerce_drops_non_numeric_geometry(bad):
    result = coerce_fields(TextLayer, {"x": bad, "fontSize": bad, "strokeWidth": bad, "y": 5})
    assert result == {"y": 5.0}


def test_coerce_parses_numeric_strings():
    assert coerce_fields(ShapeLayer, {"width": "120", "cornerRadius": "4.5"}) == {
        "width": 120.0, "corner_radius": 4.5,
    }


def test_coerce_allows_clearing_optional_numbers():
    result = coerce_fields(TextLayer, {"letterSpacing": None, "lineHeight": "x"})
    assert result == {"letter_spacing": None}


def test_coerce_rejects_non_finite_crop():
    crop = {"x": 0, "y": 0, "width": float("inf"), "height": 10}
    assert coerce_fields(ImageLayer, {"crop": crop})["crop"] is None


def test_apply_fields_returns_same_instance_when_nothing_changes():
    layer = TextLayer(id="a", text="same")
    assert apply_fields(layer, {"text": "same", "unknown": 1}) is layer


def test_apply_fields_never_mutates_original():
    layer = TextLayer(id="a", text="before")
    updated = apply_fields(layer, {"text": "after"})
    assert layer.text == "before"
    assert updated.text == "after"
    assert updated.id == "a"


def test_build_layer_places_at_quarter_canvas():
    layer = build_layer("circle", "layer_x", 3, 1000, 800)
    assert isinstance(layer, ShapeLayer)
    assert (layer.x, layer.y) == (250, 200)
    assert layer.z_index == 3
    assert layer.name == "Circle 4"
