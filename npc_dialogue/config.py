"""Augmentation settings read from the environment.

The launcher and the HTTP app call `load_dotenv()` first, so values may also
come from a `.env` file at the repo root.

    DIALOGUE_LLM_API_KEY      bearer token (falls back to OPENAI_API_KEY)
    DIALOGUE_LLM_MODEL        default gpt-4o-mini
    DIALOGUE_LLM_ENDPOINT     default OpenAI chat completions URL
    DIALOGUE_LLM_TEMPERATURE  default 0.7
    DIALOGUE_LLM_MAX_TOKENS   default 120
    DIALOGUE_LLM_TIMEOUT      seconds, default 15
    DIALOGUE_NPC_SPEAKER      speaker label eligible for rewriting, default NPC
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

from npc_dialogue.models import NPC_SPEAKER

DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o-mini"

_ENV_FIELDS: dict[str, str] = {
    "DIALOGUE_LLM_MODEL": "model",
    "DIALOGUE_LLM_ENDPOINT": "endpoint",
    "DIALOGUE_LLM_TEMPERATURE": "temperature",
    "DIALOGUE_LLM_MAX_TOKENS": "max_tokens",
    "DIALOGUE_LLM_TIMEOUT": "timeout",
    "DIALOGUE_NPC_SPEAKER": "npc_speaker",
}


class AugmentationSettings(BaseModel):
    api_key: str = ""
    model: str = DEFAULT_MODEL
    endpoint: str = DEFAULT_ENDPOINT
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=120, gt=0)
    timeout: float = Field(default=15.0, gt=0)
    npc_speaker: str = NPC_SPEAKER

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key.strip())


def load_settings(env: Mapping[str, str] | None = None) -> AugmentationSettings:
    """Build settings from `env` (default: os.environ). Unset or blank keys keep defaults.

    Raises pydantic.ValidationError for values of the wrong type or range.
    """
    if env is None:
        env = os.environ

    values: dict[str, str] = {}
    api_key = env.get("DIALOGUE_LLM_API_KEY") or env.get("OPENAI_API_KEY") or ""
    if api_key:
        values["api_key"] = api_key
    for var, field in _ENV_FIELDS.items():
        raw = env.get(var, "").strip()
        if raw:
            values[field] = raw
    return AugmentationSettings.model_validate(values)
