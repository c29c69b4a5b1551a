"""Round lifecycle helpers for the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from models.round_models import Attempt, ReferenceImage, RoundState, SubmissionStatus
from services.game.controller import RoundController
from services.game.round_store import RoundStore

# Failed pipeline error kind -> HTTP status
FAILURE_STATUS = {
	"validation": 400,
	"upstream": 502,
	"decode": 422,
	"unexpected": 500,
}


def format_time(seconds: int) -> str:
	return f"{seconds // 60}:{seconds % 60:02d}"


def serialize_reference(reference: Optional[ReferenceImage]) -> Optional[Dict[str, Any]]:
	if reference is None:
		return None
	return {
		"id": reference.id,
		"title": reference.title,
		"description": reference.description,
		"prompt_hints": list(reference.prompt_hints),
		"image_url": f"/references/{reference.id}/image",
	}


def serialize_attempt(attempt: Attempt) -> Dict[str, Any]:
	return {
		"prompt": attempt.prompt_text,
		"image": attempt.generated_image_ref,
		"score": attempt.score,
		"sequence_index": attempt.sequence_index,
		"seed": attempt.seed,
	}


def serialize_round(round_id: str, state: RoundState) -> Dict[str, Any]:
	"""Return the JSON view of a round."""
	return {
		"round_id": round_id,
		"status": state.status.value,
		"remaining_seconds": state.remaining_seconds,
		"remaining_display": format_time(state.remaining_seconds),
		"reference": serialize_reference(state.reference),
		"attempts": [serialize_attempt(attempt) for attempt in state.attempts],
		"current_score": state.current_score,
		"best_score": state.best_score,
		"pending": state.pending_pipeline,
		"last_error": state.last_error,
	}


def _lookup(request: Request, round_id: str) -> RoundController:
	store: RoundStore = request.app.state.round_store
	try:
		return store.get(round_id)
	except KeyError as exc:  # pragma: no cover - translated to HTTP
		raise HTTPException(status_code=404, detail=str(exc)) from exc


async def create_round(request: Request) -> Dict[str, Any]:
	"""Create a new round and start its timer."""
	store: RoundStore = request.app.state.round_store
	round_id, controller = store.create()
	return serialize_round(round_id, controller.state)


async def get_round(request: Request, round_id: str) -> Dict[str, Any]:
	controller = _lookup(request, round_id)
	return serialize_round(round_id, controller.state)


async def submit_prompt(request: Request, round_id: str, text: str) -> Dict[str, Any]:
	"""Run the generate/score pipeline for one prompt."""
	controller = _lookup(request, round_id)
	outcome = await controller.submit_prompt(text)

	if outcome.status in (SubmissionStatus.REJECTED, SubmissionStatus.DISCARDED):
		raise HTTPException(status_code=409, detail=outcome.reason)
	if outcome.status is SubmissionStatus.FAILED:
		raise HTTPException(status_code=FAILURE_STATUS.get(outcome.error_kind, 500), detail=outcome.reason)

	return {
		"round": serialize_round(round_id, controller.state),
		"attempt": serialize_attempt(outcome.attempt),
	}


async def restart_round(request: Request, round_id: str) -> Dict[str, Any]:
	"""Restart a round with a different reference."""
	controller = _lookup(request, round_id)
	state = controller.restart()
	return serialize_round(round_id, state)


async def close_round(request: Request, round_id: str) -> Dict[str, Any]:
	store: RoundStore = request.app.state.round_store
	try:
		await store.close(round_id)
	except KeyError as exc:  # pragma: no cover - translated to HTTP
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {"round_id": round_id, "closed": True}
