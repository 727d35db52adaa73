"""Tests for AI provider implementations.

Shared behaviour (_parse, the prompts and the failure mapping in analyze())
lives in BaseAnalyzer and is tested once via a lightweight stub. Provider
tests cover only what differs: SDK client setup and _call_api.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from codelens_core.analysis import AnalysisRequest
from codelens_core.errors import AnalysisFailed
from codelens_core.providers.anthropic import AnthropicAnalyzer
from codelens_core.providers.base import BaseAnalyzer
from codelens_core.providers.factory import get_analyzer
from codelens_core.providers.openai import OpenAIAnalyzer

VALID_JSON = json.dumps(
    {
        "summary": "One bug.",
        "score": 60,
        "language": "python",
        "comments": [{"lineNumber": 1, "severity": "major", "category": "bug", "content": "Off by one"}],
        "refactoredCode": "x = 2",
    }
)


class _StubAnalyzer(BaseAnalyzer):
    """Minimal concrete subclass returning a canned reply."""

    def __init__(self, reply=VALID_JSON):
        self.reply = reply
        self.prompts = None

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        self.prompts = (system_prompt, user_prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


# ---------------------------------------------------------------------------
# Shared behaviour
# ---------------------------------------------------------------------------


class TestBaseAnalyzerParse:
    def test_parses_valid_json(self):
        result = _StubAnalyzer()._parse(VALID_JSON)
        assert result["score"] == 60

    def test_strips_markdown_code_fences(self):
        raw = f"```json\n{VALID_JSON}\n```"
        assert _StubAnalyzer()._parse(raw)["language"] == "python"

    def test_preserves_code_blocks_inside_values(self):
        payload = json.dumps({"score": 90, "comments": [], "summary": "Use:\n```python\nfoo()\n```"})
        result = _StubAnalyzer()._parse(f"```json\n{payload}\n```")
        assert "```python" in result["summary"]

    def test_invalid_json_raises(self):
        with pytest.raises(AnalysisFailed):
            _StubAnalyzer()._parse("not json at all")


class TestBaseAnalyzerPrompts:
    def test_system_prompt_contains_preferences(self):
        request = AnalysisRequest(code="x", preferred_style="strict", primary_languages=["go", "rust"])
        prompt = _StubAnalyzer()._build_system_prompt(request)
        assert "strict" in prompt
        assert "go, rust" in prompt

    def test_system_prompt_contains_style_guide(self):
        request = AnalysisRequest(code="x", style_guide="Tabs, never spaces.")
        assert "Tabs, never spaces." in _StubAnalyzer()._build_system_prompt(request)

    def test_system_prompt_without_style_guide(self):
        prompt = _StubAnalyzer()._build_system_prompt(AnalysisRequest(code="x"))
        assert "style guide" not in prompt

    def test_user_prompt_numbers_lines(self):
        prompt = _StubAnalyzer()._build_user_prompt("a = 1\nb = 2")
        assert "1: a = 1" in prompt
        assert "2: b = 2" in prompt


class TestBaseAnalyzerAnalyze:
    @pytest.mark.asyncio
    async def test_returns_normalized_result(self):
        result = await _StubAnalyzer().analyze(AnalysisRequest(code="x = 1"))
        assert result.score == 60
        assert result.refactored_code == "x = 2"
        assert result.comments[0].content == "Off by one"

    @pytest.mark.asyncio
    async def test_api_error_becomes_analysis_failed(self):
        with pytest.raises(AnalysisFailed, match="network error"):
            await _StubAnalyzer(RuntimeError("network error")).analyze(AnalysisRequest(code="x"))

    @pytest.mark.asyncio
    async def test_api_is_called_once_on_failure(self):
        analyzer = _StubAnalyzer()
        analyzer._call_api = AsyncMock(side_effect=TimeoutError("slow"))
        with pytest.raises(AnalysisFailed):
            await analyzer.analyze(AnalysisRequest(code="x"))
        assert analyzer._call_api.await_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", ["", "   \n"])
    async def test_empty_reply_raises(self, reply):
        with pytest.raises(AnalysisFailed, match="empty"):
            await _StubAnalyzer(reply).analyze(AnalysisRequest(code="x"))

    @pytest.mark.asyncio
    async def test_infinite_score_in_reply_raises(self):
        reply = '{"summary": "s", "score": Infinity, "comments": []}'
        with pytest.raises(AnalysisFailed):
            await _StubAnalyzer(reply).analyze(AnalysisRequest(code="x"))

    @pytest.mark.asyncio
    async def test_reply_missing_fields_raises(self):
        with pytest.raises(AnalysisFailed):
            await _StubAnalyzer('{"summary": "hi"}').analyze(AnalysisRequest(code="x"))


# ---------------------------------------------------------------------------
# Provider-specific
# ---------------------------------------------------------------------------


class TestAnthropicAnalyzer:
    def test_raises_import_error_without_sdk(self):
        with patch.dict("sys.modules", {"anthropic": None}):
            with pytest.raises(ImportError):
                AnthropicAnalyzer(api_key="key")

    def test_model_is_claude(self):
        assert "claude" in AnthropicAnalyzer.MODEL

    def test_temperature_is_set(self):
        assert AnthropicAnalyzer.TEMPERATURE == 0.1

    @pytest.mark.asyncio
    async def test_call_api_joins_text_blocks(self):
        from anthropic.types import TextBlock

        analyzer = AnthropicAnalyzer(api_key="key")
        response = MagicMock()
        response.content = [TextBlock(type="text", text=VALID_JSON)]
        analyzer.client = MagicMock()
        analyzer.client.messages.create = AsyncMock(return_value=response)

        assert await analyzer._call_api("sys", "user") == VALID_JSON
        kwargs = analyzer.client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["max_tokens"] == BaseAnalyzer.MAX_TOKENS


class TestOpenAIAnalyzer:
    def test_raises_import_error_without_sdk(self):
        import codelens_core.providers.openai as openai_mod

        real_openai = openai_mod._AsyncOpenAI
        openai_mod._AsyncOpenAI = None
        try:
            with pytest.raises(ImportError):
                OpenAIAnalyzer(api_key="key")
        finally:
            openai_mod._AsyncOpenAI = real_openai

    def test_model_is_gpt(self):
        assert "gpt" in OpenAIAnalyzer.MODEL

    @pytest.mark.asyncio
    async def test_call_api_requests_json_object(self):
        analyzer = OpenAIAnalyzer(api_key="key")
        response = MagicMock()
        response.choices[0].message.content = VALID_JSON
        analyzer.client = MagicMock()
        analyzer.client.chat.completions.create = AsyncMock(return_value=response)

        assert await analyzer._call_api("sys", "user") == VALID_JSON
        kwargs = analyzer.client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}


class TestFactory:
    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError):
            get_analyzer({"model": "llama"})

    def test_selects_openai(self):
        analyzer = get_analyzer({"model": "openai", "openai_api_key": "key"})
        assert isinstance(analyzer, OpenAIAnalyzer)

    def test_selects_anthropic(self):
        analyzer = get_analyzer({"model": "anthropic", "anthropic_api_key": "key"})
        assert isinstance(analyzer, AnthropicAnalyzer)
