"""Document Snapshot — tests for the camelCase canvas_state wire format.

Invariants:
    - Output is JSON-safe (enum values, flattened crop, no None fields)
    - Malformed input never raises: bad layers are skipped, bad dimensions defaulted
"""

import json

from thumbnail_ai.core.document import Document
from thumbnail_ai.core.document_snapshot import (
    document_from_snapshot, document_to_snapshot, layer_from_snapshot, layer_to_snapshot,
)
from thumbnail_ai.core.domain_types import ShapeType
from thumbnail_ai.core.layers import CropRect, ImageLayer, ShapeLayer, TextLayer


def test_text_layer_uses_camel_case_keys():
    data = layer_to_snapshot(TextLayer(id="t", font_size=40, z_index=2))
    assert data["type"] == "text"
    assert data["fontSize"] == 40
    assert data["zIndex"] == 2
    assert data["scaleX"] == 1.0
    assert "letterSpacing" not in data
    assert "font_size" not in data


def test_shape_type_serialized_as_value():
    data = layer_to_snapshot(ShapeLayer(id="s", shape_type=ShapeType.ARROW))
    assert data["shapeType"] == "arrow"


def test_image_crop_is_flattened():
    data = layer_to_snapshot(ImageLayer(id="i", src="u", crop=CropRect(1, 2, 3, 4)))
    assert (data["cropX"], data["cropY"], data["cropWidth"], data["cropHeight"]) == (1, 2, 3, 4)
    assert "crop" not in data


def test_snapshot_is_json_serializable_and_restores_equal_document():
    document = Document(width=800, height=600, layers=(
        TextLayer(id="t", text="Hello", z_index=0),
        ImageLayer(id="i", src="u", crop=CropRect(0, 0, 10, 10), z_index=1),
        ShapeLayer(id="s", shape_type=ShapeType.STAR, opacity=0.5, z_index=2),
    ))
    snapshot = json.loads(json.dumps(document_to_snapshot(document)))
    assert document_from_snapshot(snapshot) == document


def test_non_dict_snapshot_is_empty_document():
    assert document_from_snapshot(None) == Document()
    assert document_from_snapshot(["layers"]) == Document()


def test_bad_dimensions_fall_back_to_default_canvas():
    document = document_from_snapshot({"width": -5, "height": "tall", "layers": []})
    assert (document.width, document.height) == (1280, 720)


def test_malformed_layers_are_skipped():
    document = document_from_snapshot({
        "width": 1280, "height": 720,
        "layers": [
            "not a layer",
            {"type": "video", "id": "v"},
            {"type": "text"},
            {"type": "text", "id": "ok", "text": "kept"},
        ],
    })
    assert [l.id for l in document.layers] == ["ok"]
    assert document.layers[0].text == "kept"


def test_missing_z_index_defaults_to_position():
    layer = layer_from_snapshot({"type": "shape", "id": "s", "shapeType": "circle"}, position=4)
    assert layer.z_index == 4
    assert layer.shape_type is ShapeType.CIRCLE


def test_duplicate_ids_are_preserved_for_load_state_to_resolve():
    document = document_from_snapshot({"layers": [
        {"type": "text", "id": "a", "zIndex": 0},
        {"type": "text", "id": "a", "zIndex": 1},
    ]})
    assert [l.id for l in document.layers] == ["a", "a"]


def test_infinite_numbers_fall_back_to_defaults():
    document = document_from_snapshot(json.loads(
        '{"width": Infinity, "height": 720,'
        ' "layers": [{"type": "text", "id": "t", "zIndex": Infinity, "x": -Infinity}]}'
    ))
    assert document.width == 1280
    layer = document.find("t")
    assert layer.z_index == 0
    assert layer.x == TextLayer(id="t").x


def test_null_geometry_keeps_layer_defaults():
    layer = layer_from_snapshot({"type": "text", "id": "t", "x": None, "fontSize": "big"})
    assert layer.x == 0.0
    assert layer.font_size == TextLayer(id="t").font_size
