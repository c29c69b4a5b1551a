"""Simple in-memory store for live rounds."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, List, Tuple
from uuid import uuid4

from models.round_models import RoundStatus
from services.game.controller import RoundController

LOGGER = logging.getLogger(__name__)

DEFAULT_RETENTION_SECONDS = 300.0


class RoundStore:
	"""Create, look up and close round controllers by id.

	Finished rounds stay readable until they go `retention_seconds` without
	being looked up; creating a round evicts them.
	"""

	def __init__(
		self,
		factory: Callable[[], RoundController],
		retention_seconds: float = DEFAULT_RETENTION_SECONDS,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		self._factory = factory
		self._retention = retention_seconds
		self._clock = clock
		self._rounds: Dict[str, RoundController] = {}
		self._last_seen: Dict[str, float] = {}

	def __len__(self) -> int:
		return len(self._rounds)

	def create(self) -> Tuple[str, RoundController]:
		"""Create and start a new round."""
		self.prune()
		round_id = uuid4().hex
		controller = self._factory()
		controller.start()
		self._rounds[round_id] = controller
		self._last_seen[round_id] = self._clock()
		return round_id, controller

	def get(self, round_id: str) -> RoundController:
		"""Return a round or raise KeyError if missing."""
		controller = self._rounds.get(round_id)
		if controller is None:
			raise KeyError(f"Round {round_id} not found")
		self._last_seen[round_id] = self._clock()
		return controller

	def prune(self) -> List[str]:
		"""Forget finished rounds not looked up within the retention window."""
		cutoff = self._clock() - self._retention
		expired = [
			round_id
			for round_id, controller in self._rounds.items()
			if controller.state.status is RoundStatus.FINISHED and self._last_seen[round_id] <= cutoff
		]
		for round_id in expired:
			# Finished rounds have already stopped their ticker.
			self._rounds.pop(round_id)
			self._last_seen.pop(round_id, None)
		if expired:
			LOGGER.info("Evicted %d finished rounds", len(expired))
		return expired

	async def close(self, round_id: str) -> None:
		"""Stop a round's timer and forget it."""
		controller = self._rounds.pop(round_id, None)
		if controller is None:
			raise KeyError(f"Round {round_id} not found")
		self._last_seen.pop(round_id, None)
		await controller.close()

	async def close_all(self) -> None:
		rounds = list(self._rounds.values())
		self._rounds.clear()
		self._last_seen.clear()
		await asyncio.gather(*(controller.close() for controller in rounds))
