"""LLM-backed analysis of feed posts into problem/idea/product candidates."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from http import client as http_client
from pathlib import Path
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

from pydantic import BaseModel, Field, ValidationError, field_validator

from ideagraph.config import get_settings
from ideagraph.extraction.extractor_interface import ExtractorInterface
from ideagraph.extraction.types import (
    ExtractedIdea,
    ExtractedProblem,
    ExtractedProduct,
    ExtractionResult,
    split_categories,
)
from ideagraph.utils.slug import create_slug

_STRING_ARRAY: dict[str, Any] = {"type": "array", "items": {"type": "string"}}
_ANALYSIS_JSON_SCHEMA: dict[str, Any] = {
    "name": "entity_analysis",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "problem": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "pain_points": _STRING_ARRAY,
                    "score": {"type": "integer"},
                    "categories": _STRING_ARRAY,
                },
                "required": ["title", "description", "pain_points", "score", "categories"],
            },
            "idea": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "features": _STRING_ARRAY,
                    "score": {"type": "integer"},
                    "categories": _STRING_ARRAY,
                },
                "required": ["title", "description", "features", "score", "categories"],
            },
            "products": {
                "type": "array",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "name": {"type": "string"},
                        "description": {"type": "string"},
                        "url": {"type": "string"},
                        "categories": _STRING_ARRAY,
                    },
                    "required": ["name", "description", "url", "categories"],
                },
            },
            "is_meta": {"type": "boolean"},
        },
        "required": ["problem", "idea", "products", "is_meta"],
    },
}
ANALYSIS_PROMPT_VERSION = "analysis.v1"
_PROMPT_FILES: dict[str, Path] = {
    "analysis.v1": Path(__file__).resolve().parent / "prompts" / "analysis_v1.txt",
}


class LLMExtractionError(RuntimeError):
    """Raised when analysis is misconfigured or the provider response is invalid."""


class LLMClient(Protocol):
    """Protocol for pluggable LLM clients used by the extractor."""

    def analyze_structured(self, text: str) -> dict[str, Any]:
        """Return the structured analysis payload for one text."""


@dataclass(slots=True)
class MistralChatCompletionsClient:
    """Minimal Mistral chat completions client using stdlib HTTP."""

    api_key: str
    model: str
    base_url: str = "https://api.mistral.ai/v1"
    timeout_seconds: int = 60

    def analyze_structured(self, text: str) -> dict[str, Any]:
        """Call the chat completions endpoint and return the parsed JSON analysis."""

        prompt = f"{_get_analysis_prompt()}\n\nPost:\n{text}"
        payload = {
            "model": self.model,
            "temperature": 0,
            "response_format": {
                "type": "json_schema",
                "json_schema": _ANALYSIS_JSON_SCHEMA,
            },
            "messages": [{"role": "user", "content": prompt}],
        }
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        req = urllib_request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise LLMExtractionError(f"Mistral HTTP {exc.code}: {detail}") from exc
        except urllib_error.URLError as exc:
            raise LLMExtractionError(f"Mistral request failed: {exc.reason}") from exc
        except (OSError, http_client.HTTPException) as exc:
            raise LLMExtractionError(f"Mistral connection failed: {exc!r}") from exc

        try:
            decoded = json.loads(raw)
            content = decoded["choices"][0]["message"]["content"]
            if not isinstance(content, str):
                raise TypeError("Mistral response content is not a string")
            return json.loads(content)
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as exc:
            raise LLMExtractionError("Mistral returned an unexpected or non-JSON response") from exc


@lru_cache(maxsize=8)
def _get_analysis_prompt(version: str = ANALYSIS_PROMPT_VERSION) -> str:
    prompt_file = _PROMPT_FILES.get(version)
    if prompt_file is None:
        raise LLMExtractionError(f"Analysis prompt version is not registered: {version}")
    try:
        prompt_text = prompt_file.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise LLMExtractionError(f"Failed to load analysis prompt file: {prompt_file}") from exc
    if not prompt_text:
        raise LLMExtractionError(f"Analysis prompt file is empty: {prompt_file}")
    return prompt_text


class _CategorizedModel(BaseModel):
    categories: list[str] = Field(default_factory=list)

    @field_validator("categories", mode="before")
    @classmethod
    def split_category_values(cls, value: Any) -> list[str]:
        try:
            return split_categories(value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc


class _RawProblem(_CategorizedModel):
    title: str = ""
    description: str = ""
    pain_points: list[str] = Field(default_factory=list)
    score: int = 0


class _RawIdea(_CategorizedModel):
    title: str = ""
    description: str = ""
    features: list[str] = Field(default_factory=list)
    score: int = 0


class _RawProduct(_CategorizedModel):
    name: str = ""
    description: str = ""
    url: str = ""


class _RawAnalysisPayload(BaseModel):
    is_meta: bool = False
    problem: _RawProblem = Field(default_factory=_RawProblem)
    idea: _RawIdea = Field(default_factory=_RawIdea)
    products: list[_RawProduct] = Field(default_factory=list)


class LLMExtractor(ExtractorInterface):
    """AI-powered extractor that validates and normalizes structured LLM output."""

    def __init__(self, client: LLMClient) -> None:
        self._client = client
        self._last_raw_output: dict[str, Any] | None = None

    def extract(self, text: str) -> ExtractionResult:
        """Analyze one post text."""

        self._last_raw_output = None
        clean_text = text.strip()
        if not clean_text:
            return ExtractionResult()

        raw_payload = self._client.analyze_structured(clean_text)
        self._last_raw_output = raw_payload if isinstance(raw_payload, dict) else {}
        try:
            validated = _RawAnalysisPayload.model_validate(raw_payload)
        except ValidationError as exc:
            raise LLMExtractionError(f"LLM analysis payload failed validation: {exc}") from exc

        return ExtractionResult(
            is_meta=validated.is_meta,
            problem=ExtractedProblem(
                title=self._clean_text(validated.problem.title),
                description=validated.problem.description.strip(),
                pain_points=self._clean_list(validated.problem.pain_points),
                score=self._clamp_score(validated.problem.score),
                categories=self._normalize_categories(validated.problem.categories),
            ),
            idea=ExtractedIdea(
                title=self._clean_text(validated.idea.title),
                description=validated.idea.description.strip(),
                features=self._clean_list(validated.idea.features),
                score=self._clamp_score(validated.idea.score),
                categories=self._normalize_categories(validated.idea.categories),
            ),
            products=[
                ExtractedProduct(
                    name=self._clean_text(product.name),
                    description=product.description.strip(),
                    url=product.url.strip(),
                    categories=self._normalize_categories(product.categories),
                )
                for product in validated.products
            ],
        )

    @property
    def prompt_version(self) -> str:
        return ANALYSIS_PROMPT_VERSION

    @property
    def model_name(self) -> str:
        return str(getattr(self._client, "model", self._client.__class__.__name__))

    @property
    def last_raw_output(self) -> dict[str, Any] | None:
        return self._last_raw_output

    @staticmethod
    def _clean_text(value: str | None) -> str:
        if not value:
            return ""
        return re.sub(r"\s+", " ", value).strip()

    @classmethod
    def _clean_list(cls, values: list[str]) -> list[str]:
        cleaned = [cls._clean_text(value) for value in values]
        return [value for value in cleaned if value]

    @staticmethod
    def _clamp_score(value: int) -> int:
        return max(0, min(100, int(value)))

    @classmethod
    def _normalize_categories(cls, values: list[str]) -> list[str]:
        result: list[str] = []
        for value in values:
            slug = create_slug(cls._clean_text(value))
            if slug and slug not in result:
                result.append(slug)
        return result


def get_default_extractor() -> LLMExtractor:
    """Return the Mistral-backed extractor from settings."""

    settings = get_settings()
    if not settings.mistral_api_key:
        raise LLMExtractionError("MISTRAL_API_KEY is not configured. Set it in backend/.env before crawling.")
    return LLMExtractor(
        MistralChatCompletionsClient(
            api_key=settings.mistral_api_key,
            model=settings.mistral_model,
            base_url=settings.mistral_base_url,
            timeout_seconds=settings.http_timeout_seconds,
        )
    )
