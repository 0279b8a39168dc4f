"""Handlebars rendering for preset text templates.

Preset strings use triple-stash output (``{{{k1}}}``) so nothing is HTML
escaped. Keyword-driven templates get ``k1``..``k3`` from keyword_context().
"""

from collections.abc import Callable, Sequence
from typing import Any

import pybars


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}

KEYWORD_SLOTS = 3


class TemplateError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_capitalize(this, value=None):
    """{{capitalize word}}: upper-case the first letter only."""
    text = "" if value is None else str(value)
    return text[:1].upper() + text[1:]


_HELPERS: dict[str, Callable] = {
    "capitalize": _helper_capitalize,
}


def render(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    if not template_str:
        return ""
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise TemplateError(f"Template error: {e}") from e


def keyword_context(words: Sequence[str], defaults: Sequence[str] = ()) -> dict[str, str]:
    """Map the first three keywords to k1..k3, falling back to defaults.

    A slot with neither a keyword nor a default is left out, so it renders
    as an empty string.
    """
    ctx: dict[str, str] = {}
    for i in range(KEYWORD_SLOTS):
        if i < len(words):
            ctx[f"k{i + 1}"] = words[i]
        elif i < len(defaults):
            ctx[f"k{i + 1}"] = defaults[i]
    return ctx


def render_with_keywords(entry: dict[str, Any], words: Sequence[str]) -> str:
    """Render a ``{"text": ..., "defaults": [...]}`` preset entry."""
    return render(entry["text"], keyword_context(words, entry.get("defaults", ())))
