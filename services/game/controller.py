"""Round lifecycle: timer, prompt submission and the generate/score pipeline."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from models.round_models import RoundState, RoundStatus, SubmissionOutcome, SubmissionStatus
from services.game import round_transitions as transitions
from services.game.reference_catalog import RandomSource, ReferenceCatalog
from services.game.ticker import RoundTicker
from services.generation.generation_client import GenerationClient
from services.scoring.scoring_engine import ScoringEngine
from utils.errors import DecodeError, UnexpectedError, UpstreamError, ValidationError

LOGGER = logging.getLogger(__name__)

GENERIC_FAILURE = "Unexpected error occurred"

_ERROR_KINDS = (
    (ValidationError, "validation"),
    (UpstreamError, "upstream"),
    (DecodeError, "decode"),
    (UnexpectedError, "unexpected"),
)


class RoundController:
    """Own one round's state and drive it through idle -> playing -> finished.

    The state is replaced, never mutated, through the pure functions in
    `round_transitions`. At most one generate/score pipeline runs at a time;
    the timer keeps ticking while it is in flight.

    Args:
        catalog: Reference scenes to draw from.
        generation_client: Turns prompts into generated image references.
        scoring_engine: Scores a generated image against the reference.
        rng: Random source for reference selection.
        duration_seconds: Round length in ticks.
        tick_interval: Real seconds per tick; None disables the automatic timer
            so `tick()` must be driven by the caller.
        min_prompt_length: Minimum trimmed prompt length accepted.
    """

    def __init__(
        self,
        catalog: ReferenceCatalog,
        generation_client: GenerationClient,
        scoring_engine: ScoringEngine,
        *,
        rng: Optional[RandomSource] = None,
        duration_seconds: int = 60,
        tick_interval: Optional[float] = 1.0,
        min_prompt_length: int = 4,
    ) -> None:
        if not 1 <= duration_seconds <= 60:
            raise ValueError("Round duration must be between 1 and 60 seconds.")
        self.catalog = catalog
        self.generation_client = generation_client
        self.scoring_engine = scoring_engine
        self.rng = rng or random.Random()
        self.duration_seconds = duration_seconds
        self.tick_interval = tick_interval
        self.min_prompt_length = min_prompt_length
        self._state = transitions.idle_state(duration_seconds)
        self._ticker: Optional[RoundTicker] = None

    @property
    def state(self) -> RoundState:
        return self._state

    def start(self) -> RoundState:
        """Begin the first round with a random reference."""
        if self._state.status is not RoundStatus.IDLE:
            raise RuntimeError("Round already started; use restart().")
        return self._begin(self.catalog.pick_random(self.rng))

    def restart(self) -> RoundState:
        """Begin a new round with a reference different from the current one."""
        current = self._state.reference
        reference = self.catalog.pick_random(self.rng, exclude_id=current.id if current else None)
        return self._begin(reference)

    def _begin(self, reference) -> RoundState:
        self._stop_ticker()
        self._state = transitions.start_round(self._state, reference, self.duration_seconds)
        LOGGER.info("Round %d started with reference '%s'", self._state.epoch, reference.id)
        if self.tick_interval is not None:
            epoch = self._state.epoch
            self._ticker = RoundTicker(self.tick_interval, lambda: self._scheduled_tick(epoch))
            self._ticker.start()
        return self._state

    def tick(self) -> RoundState:
        """Advance the countdown by one second; no-op unless playing."""
        before = self._state
        self._state = transitions.tick(before)
        if before.status is RoundStatus.PLAYING and self._state.status is RoundStatus.FINISHED:
            LOGGER.info(
                "Round %d finished with %d attempts, best score %d",
                self._state.epoch,
                len(self._state.attempts),
                self._state.best_score,
            )
            self._stop_ticker()
        return self._state

    def _scheduled_tick(self, epoch: int) -> bool:
        if epoch != self._state.epoch:
            return False
        self.tick()
        return self._state.status is RoundStatus.PLAYING

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def close(self) -> None:
        """Cancel the round timer and wait for it to stop."""
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            await ticker.aclose()

    async def submit_prompt(self, text: str) -> SubmissionOutcome:
        """Generate an image for `text`, score it and record the attempt.

        Rejected submissions return immediately without touching state or the network.
        """
        reason = transitions.rejection_reason(self._state, text, self.min_prompt_length)
        if reason is not None:
            LOGGER.debug("Prompt rejected: %s", reason)
            return SubmissionOutcome.rejected(reason)

        epoch = self._state.epoch
        reference = self._state.reference
        self._state = transitions.begin_pipeline(self._state)
        try:
            result = await self.generation_client.generate(text)
            score = await asyncio.to_thread(self.scoring_engine.score, reference.image_ref, result.image_ref)
        except (ValidationError, UpstreamError, DecodeError, UnexpectedError) as exc:
            LOGGER.warning("Prompt pipeline failed: %s", exc)
            return self._fail(epoch, str(exc), _error_kind(exc))
        except Exception:
            LOGGER.exception("Unexpected error in prompt pipeline")
            return self._fail(epoch, GENERIC_FAILURE, "unexpected")
        else:
            if epoch != self._state.epoch:
                LOGGER.info("Discarding result for round %d after restart", epoch)
                return SubmissionOutcome(status=SubmissionStatus.DISCARDED, reason="Round was restarted.")
            self._state = transitions.record_attempt(self._state, text, result.image_ref, score, result.seed)
            return SubmissionOutcome(status=SubmissionStatus.RECORDED, attempt=self._state.attempts[0])
        finally:
            if epoch == self._state.epoch and self._state.pending_pipeline:
                self._state = transitions.release_pipeline(self._state)

    def _fail(self, epoch: int, message: str, error_kind: str) -> SubmissionOutcome:
        if epoch == self._state.epoch:
            self._state = transitions.fail_pipeline(self._state, message)
        return SubmissionOutcome.failed(message, error_kind)


def _error_kind(exc: Exception) -> str:
    for error_type, kind in _ERROR_KINDS:
        if isinstance(exc, error_type):
            return kind
    return "unexpected"
