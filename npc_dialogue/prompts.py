"""Handlebars prompts for rewriting NPC lines."""

from collections.abc import Callable
from typing import Any

import pybars


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


SYSTEM_PROMPT = (
    "You are an NPC in a fantasy RPG game. Stay in-character. "
    "Reply in 1-2 sentences. Do not mention you are an AI. "
    "Do not reference the real world. "
    "You must preserve the meaning of the provided canonical NPC line."
)

# {{ }} escapes HTML entities; the prompt is plain text, so use triple braces.
USER_PROMPT_TEMPLATE = (
    'The player chose: "{{{player_choice}}}".\n\n'
    'Canonical NPC line (do not change the meaning): "{{{canonical_line}}}".\n\n'
    "Rewrite the canonical line naturally as the NPC would say it."
)


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_messages(
    prior_choice_text: str,
    canonical_line: str,
    user_template: str = USER_PROMPT_TEMPLATE,
) -> list[dict[str, str]]:
    """Return the chat messages for one rewrite request: system first, then user."""
    user = render_prompt(user_template, {
        "player_choice": prior_choice_text or "",
        "canonical_line": canonical_line or "",
    })
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]
