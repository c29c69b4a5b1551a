from fastapi import APIRouter, Request

from controllers.generate_controller import generate_image

router = APIRouter()


@router.post("/generate")
async def post_generate(request: Request):
    """Render a prompt with the upstream provider; errors come back as `{"error": ...}`."""
    return await generate_image(request)
