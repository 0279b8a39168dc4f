"""Tests for Handlebars rendering of preset templates."""

import pytest

from story_weaver.templates import (
    TemplateError,
    _cache,
    keyword_context,
    render,
    render_with_keywords,
)


# ── render ────────────────────────────────────────────────


def test_render_basic():
    assert render("Hello {{{name}}}!", {"name": "World"}) == "Hello World!"


def test_render_does_not_escape():
    assert render("{{{text}}}", {"text": "<b>Tom & Jerry's</b>"}) == "<b>Tom & Jerry's</b>"


def test_render_missing_variable_is_empty():
    assert render("[{{{missing}}}]", {}) == "[]"


def test_render_empty_template():
    assert render("", {"a": 1}) == ""


def test_render_capitalize_helper():
    assert render("{{{capitalize word}}} Realm", {"word": "magical forest"}) == "Magical forest Realm"


def test_render_capitalize_missing_value():
    assert render("[{{{capitalize word}}}]", {}) == "[]"


def test_render_caches_compiled_template():
    template = "Cached {{{value}}} template"
    render(template, {"value": 1})
    assert template in _cache
    assert render(template, {"value": 2}) == "Cached 2 template"


def test_render_error_is_wrapped():
    with pytest.raises(TemplateError, match="Template error"):
        render("{{#if items}}mismatched{{/each}}", {"items": []})


# ── keyword_context ───────────────────────────────────────


def test_keyword_context_words_first():
    assert keyword_context(["fire", "ice", "wind", "earth"], ["a", "b", "c"]) == {
        "k1": "fire", "k2": "ice", "k3": "wind",
    }


def test_keyword_context_falls_back_to_defaults():
    assert keyword_context(["fire"], ["a", "b", "c"]) == {"k1": "fire", "k2": "b", "k3": "c"}


def test_keyword_context_leaves_slots_out():
    assert keyword_context([], ["only"]) == {"k1": "only"}


# ── render_with_keywords ──────────────────────────────────


def test_render_with_keywords():
    entry = {"text": "The {{{capitalize k1}}} of {{{k2}}}", "defaults": ["tower", "doom"]}
    assert render_with_keywords(entry, ["castle"]) == "The Castle of doom"
    assert render_with_keywords(entry, []) == "The Tower of doom"
