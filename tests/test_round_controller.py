"""Round controller behaviour: timer, submissions and the generate/score pipeline."""

import asyncio
import random

import pytest

from models.round_models import RoundStatus, SubmissionStatus
from services.game.controller import GENERIC_FAILURE, RoundController
from utils.errors import DecodeError, UpstreamError

from conftest import FakeGenerationClient, FirstChoice, FixedScoringEngine


def _controller(catalog, client=None, engine=None, **kwargs):
    kwargs.setdefault("rng", FirstChoice())
    kwargs.setdefault("tick_interval", None)
    return RoundController(catalog, client or FakeGenerationClient(), engine or FixedScoringEngine(), **kwargs)


def test_start_enters_playing_with_full_timer(catalog):
    controller = _controller(catalog)
    assert controller.state.status is RoundStatus.IDLE

    state = controller.start()

    assert state.status is RoundStatus.PLAYING
    assert state.remaining_seconds == 60
    assert state.reference.id == "city"
    assert state.attempts == ()
    assert state.best_score == 0
    assert state.pending_pipeline is False


def test_start_twice_requires_restart(catalog):
    controller = _controller(catalog)
    controller.start()
    with pytest.raises(RuntimeError):
        controller.start()


def test_ticks_decrease_by_one_until_finished(catalog):
    controller = _controller(catalog, duration_seconds=5)
    controller.start()
    remaining = [controller.tick().remaining_seconds for _ in range(5)]

    assert remaining == [4, 3, 2, 1, 0]
    assert controller.state.status is RoundStatus.FINISHED
    assert controller.tick().remaining_seconds == 0
    assert controller.state.status is RoundStatus.FINISHED


def test_restart_never_repeats_the_current_reference(catalog):
    controller = _controller(catalog, rng=random.Random(5))
    controller.start()
    for _ in range(50):
        previous = controller.state.reference.id
        assert controller.restart().reference.id != previous


def test_restart_resets_round_from_finished(catalog):
    async def scenario():
        controller = _controller(catalog, duration_seconds=1)
        controller.start()
        await controller.submit_prompt("glowing city skyline")
        controller.tick()
        assert controller.state.status is RoundStatus.FINISHED

        state = controller.restart()
        assert state.status is RoundStatus.PLAYING
        assert state.remaining_seconds == 1
        assert state.attempts == ()
        assert state.best_score == 0

    asyncio.run(scenario())


def test_successful_prompt_records_attempt(catalog):
    client = FakeGenerationClient(image_ref="X", seed=42)
    engine = FixedScoringEngine(63)
    controller = _controller(catalog, client, engine)
    controller.start()

    outcome = asyncio.run(controller.submit_prompt("glowing city skyline"))

    assert outcome.status is SubmissionStatus.RECORDED
    state = controller.state
    assert len(state.attempts) == 1
    attempt = state.attempts[0]
    assert (attempt.prompt_text, attempt.generated_image_ref, attempt.score, attempt.seed) == (
        "glowing city skyline",
        "X",
        63,
        42,
    )
    assert attempt.sequence_index == 0
    assert state.best_score == 63
    assert state.pending_pipeline is False
    assert engine.calls == [("/refs/city.jpg", "X")]


def test_short_prompt_is_rejected_without_network_call(catalog):
    client = FakeGenerationClient()
    controller = _controller(catalog, client)
    controller.start()
    before = controller.state

    outcome = asyncio.run(controller.submit_prompt("abc"))

    assert outcome.status is SubmissionStatus.REJECTED
    assert client.prompts == []
    assert controller.state is before


def test_prompt_before_start_is_rejected(catalog):
    client = FakeGenerationClient()
    controller = _controller(catalog, client)
    outcome = asyncio.run(controller.submit_prompt("glowing city skyline"))
    assert outcome.status is SubmissionStatus.REJECTED
    assert client.prompts == []


def test_second_prompt_while_pending_is_rejected(catalog):
    async def scenario():
        client = FakeGenerationClient()
        client.gate = asyncio.Event()
        controller = _controller(catalog, client)
        controller.start()

        first = asyncio.create_task(controller.submit_prompt("glowing city skyline"))
        await asyncio.sleep(0)
        assert controller.state.pending_pipeline is True

        second = await controller.submit_prompt("misty forest at dawn")
        assert second.status is SubmissionStatus.REJECTED
        assert client.prompts == ["glowing city skyline"]

        client.gate.set()
        assert (await first).status is SubmissionStatus.RECORDED
        assert len(controller.state.attempts) == 1

    asyncio.run(scenario())


def test_best_score_is_max_and_attempts_shift(catalog):
    async def scenario():
        engine = FixedScoringEngine()
        controller = _controller(catalog, engine=engine)
        controller.start()
        for value, prompt in ((40, "first prompt"), (70, "second prompt"), (55, "third prompt")):
            engine.value = value
            await controller.submit_prompt(prompt)
        return controller.state

    state = asyncio.run(scenario())
    assert [a.score for a in state.attempts] == [55, 70, 40]
    assert [a.sequence_index for a in state.attempts] == [2, 1, 0]
    assert state.best_score == 70


def test_timer_expiry_mid_pipeline_still_records_result(catalog):
    async def scenario():
        client = FakeGenerationClient()
        client.gate = asyncio.Event()
        controller = _controller(catalog, client, duration_seconds=2)
        controller.start()

        pending = asyncio.create_task(controller.submit_prompt("glowing city skyline"))
        await asyncio.sleep(0)
        controller.tick()
        controller.tick()
        assert controller.state.status is RoundStatus.FINISHED

        late = await controller.submit_prompt("another try here")
        assert late.status is SubmissionStatus.REJECTED

        client.gate.set()
        outcome = await pending
        assert outcome.status is SubmissionStatus.RECORDED
        assert controller.state.status is RoundStatus.FINISHED
        assert [a.prompt_text for a in controller.state.attempts] == ["glowing city skyline"]
        assert controller.state.pending_pipeline is False

    asyncio.run(scenario())


def test_result_from_before_restart_is_discarded(catalog):
    async def scenario():
        client = FakeGenerationClient()
        client.gate = asyncio.Event()
        controller = _controller(catalog, client)
        controller.start()

        pending = asyncio.create_task(controller.submit_prompt("glowing city skyline"))
        await asyncio.sleep(0)
        controller.restart()
        assert controller.state.pending_pipeline is False

        client.gate.set()
        outcome = await pending
        assert outcome.status is SubmissionStatus.DISCARDED
        assert controller.state.attempts == ()

    asyncio.run(scenario())


@pytest.mark.parametrize(
    "error, kind",
    [
        (UpstreamError("Failed to generate image from AI provider.", 503), "upstream"),
        (DecodeError("Decoded bytes are not a supported image format"), "decode"),
    ],
)
def test_known_failures_leave_round_playing(catalog, error, kind):
    controller = _controller(catalog, FakeGenerationClient(error=error))
    controller.start()

    outcome = asyncio.run(controller.submit_prompt("glowing city skyline"))

    assert outcome.status is SubmissionStatus.FAILED
    assert outcome.error_kind == kind
    state = controller.state
    assert state.status is RoundStatus.PLAYING
    assert state.pending_pipeline is False
    assert state.attempts == ()
    assert state.last_error == str(error)


def test_unexpected_failure_is_generic_and_releases_pipeline(catalog):
    controller = _controller(catalog, FakeGenerationClient(error=RuntimeError("socket exploded")))
    controller.start()

    outcome = asyncio.run(controller.submit_prompt("glowing city skyline"))

    assert outcome.status is SubmissionStatus.FAILED
    assert outcome.error_kind == "unexpected"
    assert outcome.reason == GENERIC_FAILURE
    assert controller.state.pending_pipeline is False

    # retry is permitted after a failure
    controller.generation_client.error = None
    assert asyncio.run(controller.submit_prompt("glowing city skyline")).status is SubmissionStatus.RECORDED


def test_scheduled_timer_finishes_the_round(catalog):
    async def scenario():
        controller = _controller(catalog, duration_seconds=3, tick_interval=0.01)
        controller.start()
        for _ in range(200):
            if controller.state.status is RoundStatus.FINISHED:
                break
            await asyncio.sleep(0.01)
        await controller.close()
        return controller.state

    state = asyncio.run(scenario())
    assert state.status is RoundStatus.FINISHED
    assert state.remaining_seconds == 0


def test_restart_cancels_the_previous_timer(catalog):
    async def scenario():
        controller = _controller(catalog, duration_seconds=60, tick_interval=0.01)
        controller.start()
        await asyncio.sleep(0.05)
        controller.restart()
        after_restart = controller.state.remaining_seconds
        await controller.close()
        await asyncio.sleep(0.05)
        return after_restart, controller.state.remaining_seconds

    after_restart, later = asyncio.run(scenario())
    assert after_restart == 60
    assert later == 60
