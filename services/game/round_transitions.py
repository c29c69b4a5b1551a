"""Pure round state transitions: every function maps (state, event) -> state."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

from models.round_models import Attempt, ReferenceImage, RoundState, RoundStatus


def idle_state(duration: int) -> RoundState:
    return RoundState(status=RoundStatus.IDLE, remaining_seconds=duration)


def start_round(state: RoundState, reference: ReferenceImage, duration: int) -> RoundState:
    """Enter `playing` with a fresh timer, no attempts and a zero best score."""
    return RoundState(
        status=RoundStatus.PLAYING,
        remaining_seconds=duration,
        reference=reference,
        epoch=state.epoch + 1,
    )


def tick(state: RoundState) -> RoundState:
    if state.status is not RoundStatus.PLAYING:
        return state
    remaining = max(0, state.remaining_seconds - 1)
    status = RoundStatus.FINISHED if remaining == 0 else RoundStatus.PLAYING
    return replace(state, remaining_seconds=remaining, status=status)


def rejection_reason(state: RoundState, text: Any, min_length: int) -> Optional[str]:
    """Return why a submission must be rejected, or None when it may proceed."""
    if state.status is not RoundStatus.PLAYING:
        return "Round is not in progress."
    if state.pending_pipeline:
        return "A prompt is already being generated."
    if not isinstance(text, str) or len(text.strip()) < min_length:
        return f"Prompt must be at least {min_length} characters."
    return None


def begin_pipeline(state: RoundState) -> RoundState:
    return replace(state, pending_pipeline=True, last_error=None)


def record_attempt(state: RoundState, prompt_text: str, image_ref: str, score: int, seed: Optional[int]) -> RoundState:
    """Prepend a new attempt and release the pipeline."""
    attempt = Attempt(
        prompt_text=prompt_text,
        generated_image_ref=image_ref,
        score=score,
        sequence_index=len(state.attempts),
        seed=seed,
    )
    return replace(
        state,
        attempts=(attempt,) + state.attempts,
        best_score=max(state.best_score, score),
        pending_pipeline=False,
        last_error=None,
    )


def fail_pipeline(state: RoundState, message: str) -> RoundState:
    return replace(state, pending_pipeline=False, last_error=message)


def release_pipeline(state: RoundState) -> RoundState:
    return replace(state, pending_pipeline=False)
