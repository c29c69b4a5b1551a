from pathlib import Path
from typing import Any, Dict, List

from fastapi import HTTPException, Request
from fastapi.responses import FileResponse

from controllers.round_controller import serialize_reference
from services.game.reference_catalog import ReferenceCatalog


async def list_references(request: Request) -> List[Dict[str, Any]]:
    """Return every catalog entry without revealing which one a round uses."""
    catalog: ReferenceCatalog = request.app.state.catalog
    return [serialize_reference(reference) for reference in catalog]


async def get_reference_image(request: Request, reference_id: str) -> FileResponse:
    """Controller to stream the artwork file for a reference scene.

    Raises:
        HTTPException(404) if the reference id is unknown or its artwork file is missing.
    """
    catalog: ReferenceCatalog = request.app.state.catalog
    try:
        reference = catalog.get(reference_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    path = Path(reference.image_ref)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Reference artwork not available")
    return FileResponse(path)
