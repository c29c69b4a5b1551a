"""Generation clients consumed by the round controller.

Two implementations share the `GenerationClient` contract: the direct client
calls the upstream provider in-process, the proxy client talks to a
`POST /generate` endpoint over HTTP. Neither retries; retry policy belongs to
the caller.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

import requests

from models.generation_models import GenerationResult
from services.generation.upstream_provider import UpstreamImageProvider
from utils.errors import UnexpectedError, UpstreamError, ValidationError
from utils.media_validation import build_data_uri, parse_data_uri

LOGGER = logging.getLogger(__name__)


class GenerationClient(Protocol):
    async def generate(self, prompt_text: str) -> GenerationResult: ...


class DirectGenerationClient:
    """Turn prompts into data URIs using the upstream provider directly."""

    def __init__(self, provider: UpstreamImageProvider) -> None:
        if provider is None:
            raise ValueError("Upstream image provider is required.")
        self.provider = provider

    async def generate(self, prompt_text: str) -> GenerationResult:
        image = await self.provider.generate(prompt_text)
        return GenerationResult(image_ref=build_data_uri(image.content, image.content_type), seed=image.seed)


class ProxyGenerationClient:
    """Call a remote `/generate` endpoint and map its status codes to errors."""

    def __init__(self, endpoint_url: str, timeout: float = 60.0, session: Optional[requests.Session] = None) -> None:
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, prompt_text: str) -> GenerationResult:
        try:
            response = self.session.post(self.endpoint_url, json={"prompt": prompt_text}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise UpstreamError("Image generation service is unreachable.") from exc

        payload = self._json(response)
        error = str(payload.get("error") or "Image generation failed")
        if response.status_code == 400:
            raise ValidationError(error)
        if response.status_code == 502:
            raise UpstreamError(error, status_code=502)
        if not response.ok:
            raise UnexpectedError(error)

        image_ref = payload.get("imageBase64")
        if not image_ref or not isinstance(image_ref, str):
            raise UpstreamError("No image returned")
        # Anything but a base64 data URI would be read as a local path by the decoder.
        try:
            parse_data_uri(image_ref)
        except ValueError as exc:
            raise UpstreamError("Generation response is not an image data URI") from exc
        try:
            seed = int(payload.get("seed"))
        except (TypeError, ValueError) as exc:
            raise UpstreamError("Generation response is missing a seed") from exc
        return GenerationResult(image_ref=image_ref, seed=seed)

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            LOGGER.warning("Non-JSON response from generation endpoint (HTTP %s)", response.status_code)
            return {}
        return data if isinstance(data, dict) else {}

    async def generate(self, prompt_text: str) -> GenerationResult:
        return await asyncio.to_thread(self._post, prompt_text)
