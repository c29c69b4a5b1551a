"""HTTP client for the third-party text-to-image provider."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional
from urllib.parse import quote

import requests

from models.generation_models import GeneratedImage
from utils.errors import UpstreamError
from utils.media_validation import DEFAULT_IMAGE_TYPE
from utils.settings import DEFAULT_UPSTREAM_URL

LOGGER = logging.getLogger(__name__)
MAX_SEED = 9_999_999
USER_AGENT = "PromptMatchGame/1.0"


class UpstreamImageProvider:
    """Render a prompt into image bytes with a fresh random seed per call.

    Args:
        base_url: Provider endpoint; the URL-quoted prompt is appended to its path.
        width: Output width requested from the provider.
        height: Output height requested from the provider.
        timeout: Request timeout in seconds.
        rng: Random source for seeds, injectable for tests.
        session: Optional `requests.Session` for connection reuse.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_UPSTREAM_URL,
        width: int = 512,
        height: int = 512,
        timeout: float = 60.0,
        rng: Optional[random.Random] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.width = width
        self.height = height
        self.timeout = timeout
        self.rng = rng or random.Random()
        self.session = session or requests.Session()

    def build_url(self, prompt: str) -> str:
        return self.base_url + quote(prompt, safe="")

    def fetch(self, prompt: str) -> GeneratedImage:
        """Blocking request to the provider.

        Raises:
            UpstreamError: If the provider is unreachable or responds with a non-2xx status.
        """
        seed = self.rng.randint(0, MAX_SEED)
        params = {
            "width": str(self.width),
            "height": str(self.height),
            "seed": str(seed),
            "nologo": "true",
        }
        headers = {"Accept": DEFAULT_IMAGE_TYPE, "User-Agent": USER_AGENT}
        try:
            response = self.session.get(self.build_url(prompt), params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            LOGGER.warning("Image provider unreachable: %s", exc)
            raise UpstreamError("Failed to reach the AI image provider.") from exc

        if not response.ok:
            LOGGER.warning("Image provider returned HTTP %s", response.status_code)
            raise UpstreamError("Failed to generate image from AI provider.", status_code=response.status_code)

        content_type = response.headers.get("content-type") or DEFAULT_IMAGE_TYPE
        return GeneratedImage(content=response.content, content_type=content_type, seed=seed)

    async def generate(self, prompt: str) -> GeneratedImage:
        """Run `fetch` in a worker thread so the event loop keeps ticking."""
        return await asyncio.to_thread(self.fetch, prompt)
