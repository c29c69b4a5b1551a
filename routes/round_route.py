"""FastAPI routes for timed prompt matching rounds."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.round_controller import close_round, create_round, get_round, restart_round, submit_prompt

router = APIRouter(prefix="/rounds", tags=["rounds"])


class PromptPayload(BaseModel):
	text: str


@router.post("")
async def create_round_route(request: Request):
	try:
		return await create_round(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{round_id}")
async def get_round_route(request: Request, round_id: str):
	try:
		return await get_round(request, round_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{round_id}/prompts")
async def submit_prompt_route(request: Request, round_id: str, payload: PromptPayload):
	"""Generate, score and record one prompt for the round."""
	try:
		return await submit_prompt(request, round_id, payload.text)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{round_id}/restart")
async def restart_round_route(request: Request, round_id: str):
	try:
		return await restart_round(request, round_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{round_id}")
async def close_round_route(request: Request, round_id: str):
	try:
		return await close_round(request, round_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
