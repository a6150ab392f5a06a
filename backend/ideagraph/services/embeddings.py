"""Embedding clients and vector math."""

from __future__ import annotations

import hashlib
import json
import math
import re
from dataclasses import dataclass
from http import client as http_client
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

from ideagraph.config import get_settings
from ideagraph.models.embedding_type import EMBEDDING_DIMENSIONS

_WORD_RE = re.compile(r"[a-z0-9]+")


class EmbeddingError(RuntimeError):
    """Raised when the embedding oracle fails or returns nothing usable."""


class EmbeddingClient(Protocol):
    """Anything that turns texts into fixed-length vectors."""

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """One vector per input text, in input order."""


@dataclass(slots=True)
class OllamaEmbeddingsClient:
    """Minimal Ollama `/api/embed` client using stdlib HTTP."""

    model: str
    base_url: str = "http://localhost:11434"
    timeout_seconds: int = 60

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        payload = {
            "model": self.model,
            "input": texts,
        }
        url = f"{self.base_url.rstrip('/')}/api/embed"
        req = urllib_request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise EmbeddingError(f"Ollama embeddings HTTP {exc.code}: {detail}") from exc
        except urllib_error.URLError as exc:
            raise EmbeddingError(f"Ollama embeddings request failed: {exc.reason}") from exc
        except (OSError, http_client.HTTPException) as exc:
            raise EmbeddingError(f"Ollama embeddings connection failed: {exc!r}") from exc

        try:
            decoded = json.loads(raw)
            return [list(map(float, row)) for row in decoded["embeddings"]]
        except (KeyError, TypeError, ValueError, json.JSONDecodeError) as exc:
            raise EmbeddingError("Ollama embeddings response was invalid") from exc


@dataclass(slots=True)
class HashEmbeddingsClient:
    """Offline feature-hashing embedder; similar wording gives similar vectors."""

    dimensions: int = EMBEDDING_DIMENSIONS

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return list(map(self._embed_one, texts))

    def _embed_one(self, text: str) -> list[float]:
        return hash_embed_text(text, dimensions=self.dimensions)


def get_default_embedding_client() -> EmbeddingClient:
    """Return the configured embedding client."""

    settings = get_settings()
    if settings.embedding_provider == "hash":
        return HashEmbeddingsClient()
    if settings.embedding_provider != "ollama":
        raise EmbeddingError(f"Unknown embedding provider: {settings.embedding_provider}")
    return OllamaEmbeddingsClient(
        model=settings.ollama_embedding_model,
        base_url=settings.ollama_base_url,
        timeout_seconds=settings.http_timeout_seconds,
    )


def embed_text(text: str, *, client: EmbeddingClient | None = None) -> list[float]:
    """Embed one text; an empty vector is an error."""

    active_client = client or get_default_embedding_client()
    vectors = active_client.embed_texts([text])
    if len(vectors) != 1 or not vectors[0]:
        raise EmbeddingError("Embedding client returned an empty embedding")
    return vectors[0]


def hash_embed_text(text: str, *, dimensions: int = EMBEDDING_DIMENSIONS) -> list[float]:
    """Feature-hash words and adjacent word pairs into a unit-length vector.

    Each feature lands in one bucket with a hash-derived sign. Empty text gives
    the zero vector.
    """

    words = _WORD_RE.findall((text or "").lower())
    features = words + [f"{first} {second}" for first, second in zip(words, words[1:])]
    vector = [0.0] * max(1, int(dimensions))
    for feature in features:
        digest = hashlib.blake2b(feature.encode("utf-8"), digest_size=8).digest()
        bucket = int.from_bytes(digest[:4], "big") % len(vector)
        vector[bucket] += 1.0 if digest[4] & 1 else -1.0
    return _unit_length(vector)


def cosine_distance(left: list[float], right: list[float]) -> float:
    """Return ``1 - cos(left, right)``; 0 is identical, 2 is opposite.

    Zero vectors and mismatched lengths are treated as maximally dissimilar.
    """

    if not left or not right or len(left) != len(right):
        return 2.0
    norms = _l2_norm(left) * _l2_norm(right)
    if norms == 0.0:
        return 2.0
    cosine = math.fsum(a * b for a, b in zip(left, right)) / norms
    return 1.0 - max(-1.0, min(1.0, cosine))


def ensure_embedding(value: Any) -> list[float] | None:
    """Coerce a stored JSON array (or pgvector value) to floats; ``None`` if it is not one."""

    if value is None:
        return None
    try:
        return list(map(float, value))
    except (TypeError, ValueError):
        return None


def _unit_length(vector: list[float]) -> list[float]:
    norm = _l2_norm(vector)
    return [value / norm for value in vector] if norm else vector


def _l2_norm(vector: list[float]) -> float:
    return math.sqrt(math.fsum(value * value for value in vector))
