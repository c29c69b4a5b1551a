"""Round domain models for the prompt matching game."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class RoundStatus(str, Enum):
	IDLE = "idle"
	PLAYING = "playing"
	FINISHED = "finished"


@dataclass(frozen=True)
class ReferenceImage:
	"""A target scene the participant tries to recreate by prompting."""

	id: str
	title: str
	description: str
	image_ref: str
	prompt_hints: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Attempt:
	"""One completed prompt, generated image and score."""

	prompt_text: str
	generated_image_ref: str
	score: int
	sequence_index: int
	seed: Optional[int] = None

	def __post_init__(self) -> None:
		if not 0 <= self.score <= 100:
			raise ValueError(f"Score {self.score} is outside 0..100")


@dataclass(frozen=True)
class RoundState:
	"""Immutable snapshot of a round, replaced wholesale on every transition.

	Attributes:
		status: Lifecycle state of the round.
		remaining_seconds: Countdown value, frozen once the round finishes.
		reference: Current reference scene; None only before the first start.
		attempts: Recorded attempts, most recent first.
		best_score: Highest score recorded this round.
		pending_pipeline: True while a generate and score cycle is in flight.
		epoch: Incremented on every start or restart to identify the round instance.
		last_error: User-visible message of the most recent pipeline failure.
	"""

	status: RoundStatus
	remaining_seconds: int
	reference: Optional[ReferenceImage] = None
	attempts: Tuple[Attempt, ...] = ()
	best_score: int = 0
	pending_pipeline: bool = False
	epoch: int = 0
	last_error: Optional[str] = None

	@property
	def current_score(self) -> Optional[int]:
		return self.attempts[0].score if self.attempts else None


class SubmissionStatus(str, Enum):
	RECORDED = "recorded"
	REJECTED = "rejected"
	FAILED = "failed"
	DISCARDED = "discarded"


@dataclass(frozen=True)
class SubmissionOutcome:
	"""Result of a single `submit_prompt` call."""

	status: SubmissionStatus
	attempt: Optional[Attempt] = None
	reason: Optional[str] = None
	error_kind: Optional[str] = None

	@classmethod
	def rejected(cls, reason: str) -> "SubmissionOutcome":
		return cls(status=SubmissionStatus.REJECTED, reason=reason)

	@classmethod
	def failed(cls, reason: str, error_kind: str) -> "SubmissionOutcome":
		return cls(status=SubmissionStatus.FAILED, reason=reason, error_kind=error_kind)
