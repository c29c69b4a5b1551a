import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from services.generation.upstream_provider import UpstreamImageProvider
from utils.errors import UpstreamError, ValidationError
from utils.media_validation import build_data_uri, validate_prompt

LOGGER = logging.getLogger(__name__)


async def generate_image(request: Request) -> JSONResponse:
    """Proxy a prompt to the upstream provider and return the image as a data URI.

    Args:
        request: FastAPI Request carrying a JSON body `{"prompt": str}`.

    Returns:
        `JSONResponse` with `imageBase64` and `seed` on success, or an
        `error` body with status 400 (bad prompt), 502 (provider failure)
        or 500 (anything else).
    """
    provider: UpstreamImageProvider = request.app.state.image_provider
    min_length = request.app.state.settings.min_prompt_length
    try:
        body = await request.json()
        prompt = validate_prompt(body.get("prompt") if isinstance(body, dict) else None, min_length)
        image = await provider.generate(prompt)
    except ValidationError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except UpstreamError as exc:
        LOGGER.warning("Upstream generation failed (status %s)", exc.status_code)
        return JSONResponse({"error": "Failed to generate image from AI provider."}, status_code=502)
    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.exception("Generation error")
        return JSONResponse({"error": "Unexpected server error while generating image."}, status_code=500)

    return JSONResponse({"imageBase64": build_data_uri(image.content, image.content_type), "seed": image.seed})
