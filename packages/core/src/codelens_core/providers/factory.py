from __future__ import annotations

from codelens_core.providers.anthropic import AnthropicAnalyzer
from codelens_core.providers.base import BaseAnalyzer
from codelens_core.providers.openai import OpenAIAnalyzer


def get_analyzer(config: dict) -> BaseAnalyzer:
    model = config["model"]
    if model == "anthropic":
        return AnthropicAnalyzer(api_key=config["anthropic_api_key"])
    if model == "openai":
        return OpenAIAnalyzer(api_key=config["openai_api_key"])
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")
