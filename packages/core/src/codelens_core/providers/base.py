"""Base analyzer implementing the Template Method pattern.

All providers share the same analysis algorithm:
    analyze() → _build_system_prompt() + _build_user_prompt()
              → _call_api()   ← only this differs per provider
              → _parse() → normalize_result()

Subclasses implement two things only:
  - __init__: validate and store the async SDK client
  - _call_api: make one raw API call and return the text response

There is deliberately no retry loop: a failed analysis surfaces as
AnalysisFailed and the user re-triggers it.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod

from codelens_core.analysis import AnalysisRequest, AnalysisResult, normalize_result
from codelens_core.errors import AnalysisFailed
from codelens_core.utils.code import number_lines

logger = logging.getLogger(__name__)

_MAX_TOKENS = 8192


class BaseAnalyzer(ABC):
    MAX_TOKENS: int = _MAX_TOKENS

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Score one snippet and return the normalized result.

        Raises AnalysisFailed on transport errors and on empty or
        unparseable replies.
        """
        system = self._build_system_prompt(request)
        user = self._build_user_prompt(request.code)
        try:
            raw = await self._call_api(system, user)
        except Exception as e:
            logger.error("%s API call failed: %s", self.__class__.__name__, e)
            raise AnalysisFailed(f"Code analysis failed due to an API error: {e}") from e
        if not raw or not raw.strip():
            raise AnalysisFailed("AI returned an empty response.")
        return normalize_result(self._parse(raw), request.code)

    # ------------------------------------------------------------------ #
    # Abstract — implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; analyze() converts the error into AnalysisFailed.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _build_system_prompt(self, request: AnalysisRequest) -> str:
        languages = ", ".join(request.primary_languages) or "any"
        style_guide = f"\nAdhere to this style guide:\n{request.style_guide}\n" if request.style_guide else ""
        return f"""You are a principal software engineer reviewing a single source file.
Style preference: {request.preferred_style}.
The author mostly writes: {languages}.
{style_guide}
Focus on:
1. Security vulnerabilities (injection, XSS, broken auth)
2. Performance bottlenecks (quadratic loops, leaks)
3. Clean code and maintainability

Rules:
- If issues are found, return "refactoredCode" containing the ENTIRE file with every fix applied.
- "refactoredCode" must be plain code, never wrapped in markdown fences.
- If the code is already clean, do not invent issues: return an empty "comments" list and a score of 100.
- The refactored code must fix every reported issue, so re-analysing it would score 100.
- Only report line-based comments for issues that actually exist."""

    def _build_user_prompt(self, code: str) -> str:
        return f"""Review this code (each line is prefixed with its line number):

{number_lines(code)}

### Output Format:
Respond with **only** a valid JSON object:

{{
  "summary": "<executive summary of the code quality>",
  "score": <integer 0-100; 100 only if there are no issues>,
  "language": "<detected language>",
  "comments": [
    {{
      "lineNumber": <1-based line number; use 1 if the issue has no single line>,
      "severity": "<critical|major|minor|info>",
      "category": "<security|performance|style|bug|refactor>",
      "content": "<explanation of the issue>",
      "suggestion": "<replacement snippet, optional>"
    }}
  ],
  "refactoredCode": "<complete fixed file, omit if there are no issues>"
}}

Do not return any text outside the JSON object."""

    def _parse(self, raw: str) -> dict:
        """Parse the model's raw text response into a dict.

        Strips only the outer ```json ... ``` fence the model may wrap the
        reply in, not backticks inside string values.
        """
        cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
        cleaned = re.sub(r"\s*```$", "", cleaned.strip())
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            logger.warning(
                "%s: failed to parse response as JSON: %s",
                self.__class__.__name__,
                raw[:200],
            )
            raise AnalysisFailed("Failed to parse AI response.")
