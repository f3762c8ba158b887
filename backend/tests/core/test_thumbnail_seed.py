"""Thumbnail Seed — tests for the starting Document built from a generation result."""

from itertools import count

from thumbnail_ai.core.document import has_dense_z_order
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.core.layers import ImageLayer, TextLayer
from thumbnail_ai.core.thumbnail_seed import project_name_for, seed_document


def _ids():
    counter = count(1)
    return lambda: f"layer_{next(counter)}"


def test_full_seed_has_background_headline_and_subheadline():
    document = seed_document(
        "https://img/bg.png", TextSuggestions("GO BIG", "or go home"), id_factory=_ids(),
    )
    background, headline, subheadline = document.layers
    assert isinstance(background, ImageLayer)
    assert background.locked is True
    assert background.z_index == 0
    assert (background.width, background.height) == (1280, 720)
    assert isinstance(headline, TextLayer)
    assert headline.text == "GO BIG"
    assert headline.font_family == "Impact"
    assert subheadline.font_size == 36
    assert has_dense_z_order(document)


def test_color_scheme_drives_text_colours():
    document = seed_document(
        None, TextSuggestions("HI"), color_scheme=("#1", "#2", "#FFFF00", "#111111"),
    )
    (headline,) = document.layers
    assert headline.fill == "#FFFF00"
    assert headline.stroke == "#111111"
    assert headline.z_index == 0


def test_empty_subheadline_is_not_added():
    document = seed_document("https://img/bg.png", TextSuggestions("ONLY HEADLINE"))
    assert [l.name for l in document.layers] == ["Background", "Headline"]


def test_background_only():
    document = seed_document("https://img/bg.png")
    assert document.layer_count == 1


def test_project_names():
    suggestions = TextSuggestions("EPIC FAIL")
    assert project_name_for(suggestions, from_trial=True) == "EPIC FAIL"
    assert project_name_for(None, from_trial=True) == "My First Thumbnail"
    assert project_name_for(suggestions) == "EPIC FAIL Thumbnail"
    assert project_name_for(None) == "AI Generated Thumbnail"
