"""
Content generator collaborator.

``ContentGenerator`` is the protocol the authoring service depends on;
``GeminiContentGenerator`` implements it with the google-genai client:
outlines are requested as JSON against a response schema, refinements as
plain text.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional, Protocol

from google import genai
from google.genai import types

from doccontrol.dto.generated_outline import GeneratedOutline, GenerationRequest, OutlineSection
from doccontrol.enum.ai_options import RefineAction
from doccontrol.exceptions.errors import GenerationError, RefineError
from doccontrol.adapters import prompts

logger = logging.getLogger(__name__)


class ContentGenerator(Protocol):
    def generate(self, request: GenerationRequest) -> GeneratedOutline:
        """Raises GenerationError on failure or malformed/empty output."""
        ...

    def refine(self, text: str, action: RefineAction) -> str:
        """Raises RefineError on failure or empty output."""
        ...


OUTLINE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "sections": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "title": types.Schema(type=types.Type.STRING),
                    "content": types.Schema(type=types.Type.STRING),
                },
                required=["title", "content"],
            ),
        ),
    },
    required=["sections"],
)


def parse_outline(raw: Optional[str]) -> GeneratedOutline:
    """Validate the model's JSON answer; anything unusable is a GenerationError."""
    if not raw or not raw.strip():
        raise GenerationError("The model returned an empty answer.")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as ex:
        raise GenerationError(f"The model answer is not valid JSON: {ex.msg}") from ex

    items = data.get("sections") if isinstance(data, dict) else None
    if not isinstance(items, list) or not items:
        raise GenerationError("The model answer contains no sections.")

    sections = []
    for i, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise GenerationError(f"Section {i} is malformed.")
        title = item.get("title")
        content = item.get("content", "")
        if not isinstance(title, str) or not title.strip() or not isinstance(content, str):
            raise GenerationError(f"Section {i} is missing a title or content.")
        sections.append(OutlineSection(title=title.strip(), content=content))
    return GeneratedOutline(sections=tuple(sections))


class GeminiContentGenerator:
    """
    Google Gemini implementation of ContentGenerator.

    Environment:
        GEMINI_API_KEY (name configurable via [Generator] api_key_env)
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        api_key_env: str = "GEMINI_API_KEY",
        model_generate: str = "gemini-2.5-pro",
        model_refine: str = "gemini-2.5-flash",
        temperature: float = 0.4,
        language: str = "English",
        timeout_seconds: float = 90.0,
        client: Any = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.getenv(api_key_env, "")
        self._api_key_env = api_key_env
        self.model_generate = model_generate
        self.model_refine = model_refine
        self.temperature = temperature
        self.language = language
        self.timeout_seconds = timeout_seconds
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise RuntimeError(f"No API key configured; set {self._api_key_env}.")
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
        return self._client

    def generate(self, request: GenerationRequest) -> GeneratedOutline:
        prompt = prompts.outline_prompt(request, language=self.language)
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            response_mime_type="application/json",
            response_schema=OUTLINE_SCHEMA,
        )
        try:
            response = self._get_client().models.generate_content(
                model=self.model_generate,
                contents=prompt,
                config=config,
            )
        except Exception as ex:
            logger.error("Outline generation failed: %s", ex)
            raise GenerationError(f"Content generation failed: {ex}") from ex
        return parse_outline(response.text)

    def refine(self, text: str, action: RefineAction) -> str:
        prompt = prompts.refine_prompt(text, RefineAction(action), language=self.language)
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            thinking_config=types.ThinkingConfig(thinking_budget=0),
        )
        try:
            response = self._get_client().models.generate_content(
                model=self.model_refine,
                contents=prompt,
                config=config,
            )
        except Exception as ex:
            logger.error("Refinement (%s) failed: %s", RefineAction(action).value, ex)
            raise RefineError(f"Content refinement failed: {ex}") from ex

        result = (response.text or "").strip()
        if not result:
            raise RefineError("The model returned an empty answer.")
        return result
