from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

import requests

from .core.constants import GENERATION_API_URL, GENERATION_API_VERSION, GENERATION_TIMEOUT_SECONDS
from .core.errors import GenerationEmpty, GenerationFailure
from .core.types import ReportRequest

logger = logging.getLogger(__name__)


def _api_key_from_env() -> Optional[str]:
    return os.environ.get("GENERATION_API_KEY") or os.environ.get("ANTHROPIC_API_KEY")


def extract_report_text(result: Any) -> str:
    """Return the text of the first content segment of a messages response."""
    content = result.get("content") if isinstance(result, Mapping) else None
    if not isinstance(content, list) or not content:
        raise GenerationEmpty("Failed to generate report")
    first = content[0]
    text = first.get("text") if isinstance(first, Mapping) else None
    if not isinstance(text, str):
        raise GenerationEmpty("Failed to generate report")
    return text


class GenerationClient:
    """Posts report requests to the text-generation service."""

    def __init__(
        self,
        url: str = GENERATION_API_URL,
        *,
        api_key: Optional[str] = None,
        api_version: str = GENERATION_API_VERSION,
        timeout: float = GENERATION_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.api_key = api_key if api_key is not None else _api_key_from_env()
        self.api_version = api_version
        self.timeout = timeout
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "anthropic-version": self.api_version,
        }
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def generate(self, request: ReportRequest) -> str:
        try:
            response = self._session.post(
                self.url,
                json=request.to_payload(),
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("generation request failed: %s", exc)
            raise GenerationFailure(f"Analysis error: {exc}") from exc

        if not response.ok:
            detail = response.text[:500]
            logger.warning(
                "generation service returned an error",
                extra={"status_code": response.status_code, "detail": detail},
            )
            raise GenerationFailure(f"Analysis error: generation service returned HTTP {response.status_code}")

        try:
            result = response.json()
        except ValueError as exc:
            raise GenerationFailure("Analysis error: generation service returned invalid JSON") from exc

        text = extract_report_text(result)
        logger.info("generation service responded", extra={"model": request.model, "chars": len(text)})
        return text

    __call__ = generate


__all__ = ["GenerationClient", "extract_report_text"]
