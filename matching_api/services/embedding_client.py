from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from matching_api.core.config import settings

logger = structlog.get_logger(__name__)


class EmbeddingClientError(RuntimeError):
    pass


class EmbeddingClientTimeout(EmbeddingClientError):
    pass


class EmbeddingClientHTTPError(EmbeddingClientError):
    def __init__(self, *, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


def _safe_truncate(s: str, n: int = 500) -> str:
    s = s or ""
    if len(s) <= n:
        return s
    return s[:n] + "…"


class EmbeddingClient:
    """Calls an OpenAI-compatible ``POST {base_url}/embeddings`` endpoint."""

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        model: str,
        timeout_s: float = 20.0,
        http: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = (base_url or "").rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self._http = http

    @classmethod
    def from_settings(cls) -> "EmbeddingClient":
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.embedding_api_base,
            model=settings.embedding_model,
            timeout_s=settings.embedding_timeout_s,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str]) -> httpx.Response:
        if self._http is not None:
            return self._http.post(url, json=payload, headers=headers, timeout=self.timeout_s)
        with httpx.Client(timeout=self.timeout_s) as client:
            return client.post(url, json=payload, headers=headers)

    def embed(self, text: str) -> list[float]:
        if not self.api_key:
            raise EmbeddingClientError("Missing OPENAI_API_KEY")

        payload = {"model": self.model, "input": text, "encoding_format": "float"}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        started = time.perf_counter()

        try:
            r = self._post(f"{self.base_url}/embeddings", payload, headers)
        except httpx.TimeoutException as exc:
            raise EmbeddingClientTimeout(f"embedding request timed out after {self.timeout_s}s") from exc
        except httpx.HTTPError as exc:
            raise EmbeddingClientError(f"embedding request failed: {exc}") from exc

        if r.status_code >= 400:
            raise EmbeddingClientHTTPError(
                status_code=r.status_code, message=_safe_truncate(r.text)
            )

        try:
            raw = r.json()["data"][0]["embedding"]
            if not isinstance(raw, list) or not raw:
                raise TypeError("embedding is not a non-empty list")
            vector = [float(x) for x in raw]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise EmbeddingClientError("malformed embedding response") from exc

        logger.debug(
            "embedding_created",
            model=self.model,
            dims=len(vector),
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
        return vector
