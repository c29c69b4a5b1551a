from fastapi import APIRouter, HTTPException, Request

from controllers.reference_controller import get_reference_image, list_references

router = APIRouter(prefix="/references", tags=["references"])


@router.get("")
async def list_references_route(request: Request):
    try:
        return await list_references(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{reference_id}/image")
async def get_reference_image_route(request: Request, reference_id: str):
    """Return the artwork file for the specified reference id."""
    try:
        return await get_reference_image(request, reference_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
