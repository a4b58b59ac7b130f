"""Generation pipeline: chords, then solo, then one merged response.

State machine::

    START → CHORDS_IN_FLIGHT → CHORDS_DONE → SOLO_IN_FLIGHT → SOLO_DONE → RESPONDED
      └──────────────┴──────────────┴──────────────┴─────────────┴──→ FAILED(stage, cause)

The solo stage consumes the chord stage's flattened output, so the two
backend calls are strictly sequential.  Each run records exactly one metrics
row, whether it succeeds or fails; failure rows carry whatever timing and
size were gathered before the failure.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum

from genjazz.contracts.gateway_types import GENERATION_FAILED_LABEL, MIDI_FIELD, ErrorBodyDict
from genjazz.core.errors import (
    BackendError,
    GatewayError,
    PipelineCancelled,
    StageValidationError,
)
from genjazz.services.backend_client import json_size_bytes
from genjazz.services.chords_stage import ChordsStage, ChordStageOutput
from genjazz.services.metrics_log import MetricsRecord, MetricsRecorder
from genjazz.services.solo_stage import SoloStage, SoloStageOutput

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    START = "start"
    CHORDS_IN_FLIGHT = "chords_in_flight"
    CHORDS_DONE = "chords_done"
    SOLO_IN_FLIGHT = "solo_in_flight"
    SOLO_DONE = "solo_done"
    RESPONDED = "responded"
    FAILED = "failed"


class Stage(str, Enum):
    CHORDS = "chords"
    SOLO = "solo"
    MERGE = "merge"


_ALLOWED: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.START: frozenset({PipelineState.CHORDS_IN_FLIGHT}),
    PipelineState.CHORDS_IN_FLIGHT: frozenset({PipelineState.CHORDS_DONE}),
    PipelineState.CHORDS_DONE: frozenset({PipelineState.SOLO_IN_FLIGHT}),
    PipelineState.SOLO_IN_FLIGHT: frozenset({PipelineState.SOLO_DONE}),
    PipelineState.SOLO_DONE: frozenset({PipelineState.RESPONDED}),
    PipelineState.RESPONDED: frozenset(),
    PipelineState.FAILED: frozenset(),
}


class InvalidTransition(RuntimeError):
    pass


# Stage a cancellation is charged to, keyed by the state it interrupted.
_IN_FLIGHT_STAGE: dict[PipelineState, Stage] = {
    PipelineState.START: Stage.CHORDS,
    PipelineState.CHORDS_IN_FLIGHT: Stage.CHORDS,
    PipelineState.CHORDS_DONE: Stage.SOLO,
    PipelineState.SOLO_IN_FLIGHT: Stage.SOLO,
}


@dataclass(frozen=True)
class PipelineFailure:
    stage: Stage
    cause: Exception

    @property
    def label(self) -> str:
        if isinstance(self.cause, GatewayError):
            return self.cause.label
        return "internal_error"


@dataclass
class PipelineRun:
    """Mutable per-request state; discarded once the response is sent."""

    state: PipelineState = PipelineState.START
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.START])
    chords: ChordStageOutput | None = None
    solo: SoloStageOutput | None = None
    response: dict[str, object] | None = None
    response_size_bytes: int | None = None
    failure: PipelineFailure | None = None

    def advance(self, new_state: PipelineState) -> None:
        if new_state is PipelineState.FAILED:
            if self.state in (PipelineState.RESPONDED, PipelineState.FAILED):
                raise InvalidTransition(f"cannot fail from terminal state {self.state.value}")
        elif new_state not in _ALLOWED[self.state]:
            raise InvalidTransition(f"{self.state.value} → {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def fail(self, stage: Stage, cause: Exception) -> None:
        self.advance(PipelineState.FAILED)
        self.failure = PipelineFailure(stage=stage, cause=cause)


@dataclass(frozen=True)
class PipelineOutcome:
    run: PipelineRun
    record: MetricsRecord

    @property
    def ok(self) -> bool:
        return self.run.state is PipelineState.RESPONDED

    @property
    def response(self) -> dict[str, object]:
        if self.run.response is None:
            raise RuntimeError("pipeline did not produce a response")
        return self.run.response

    @property
    def failure(self) -> PipelineFailure | None:
        return self.run.failure


def merge_response(
    chords: ChordStageOutput, solo: SoloStageOutput
) -> dict[str, object]:
    """Every chord-backend field, plus the MIDI and both stage timings."""
    return {
        **chords.result,
        MIDI_FIELD: solo.midi,
        "time_ms_chords": chords.elapsed_ms,
        "time_ms_improvisor": solo.elapsed_ms,
    }


def _details_from_body(body: object) -> str | None:
    if body is None or body == "":
        return None
    if isinstance(body, str):
        return body
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def failure_details(cause: BaseException | None) -> str:
    """Upstream body when present, else the error message, else a generic one."""
    if isinstance(cause, BackendError):
        details = _details_from_body(cause.upstream_body)
        if details:
            return details
    message = cause.message if isinstance(cause, GatewayError) else str(cause or "")
    return message or "Unknown error"


def error_body(failure: PipelineFailure | None) -> ErrorBodyDict:
    return ErrorBodyDict(
        error=GENERATION_FAILED_LABEL,
        details=failure_details(failure.cause if failure else None),
    )


def build_metrics_record(run: PipelineRun) -> MetricsRecord:
    """Metrics row for a finished run, partial when the run failed."""
    time_ms_chords: int | None = None
    size_bytes_chords: int | None = None
    info_chords: str | None = None
    time_ms_solo: int | None = None
    size_bytes_solo: int | None = None
    info_solo: str | None = None

    if run.chords is not None:
        time_ms_chords = run.chords.elapsed_ms
        size_bytes_chords = run.chords.size_bytes
        info_chords = run.chords.info
    if run.solo is not None:
        time_ms_solo = run.solo.elapsed_ms
        size_bytes_solo = run.solo.size_bytes
        info_solo = run.solo.info

    failure = run.failure
    if failure is not None:
        cause = failure.cause
        elapsed = getattr(cause, "elapsed_ms", None)
        size = getattr(cause, "size_bytes", None)
        info = f"error:{failure.label}"
        if failure.stage is Stage.CHORDS:
            time_ms_chords, size_bytes_chords, info_chords = elapsed, size, info
        elif failure.stage is Stage.SOLO:
            time_ms_solo, size_bytes_solo, info_solo = elapsed, size, info

    return MetricsRecord(
        time_ms_chords=time_ms_chords,
        time_ms_solo=time_ms_solo,
        info_chords=info_chords,
        info_solo=info_solo,
        size_bytes_chords=size_bytes_chords,
        size_bytes_solo=size_bytes_solo,
        size_bytes_response=run.response_size_bytes,
    )


class GenerationPipeline:
    """Drives one chords→solo run per request.

    Stateless between runs: every call to ``run`` gets its own
    ``PipelineRun``, so concurrent requests share nothing but the
    append-only metrics log.
    """

    def __init__(
        self,
        chords_stage: ChordsStage,
        solo_stage: SoloStage,
        recorder: MetricsRecorder | None = None,
    ):
        self.chords_stage = chords_stage
        self.solo_stage = solo_stage
        self.recorder = recorder

    async def run(
        self, style: str | None = None, tempo: int | float | None = None
    ) -> PipelineOutcome:
        run = PipelineRun()
        try:
            await self._execute(run, style, tempo)
        except asyncio.CancelledError:
            self._cancel(run)
            raise
        finally:
            record = build_metrics_record(run)
            self._record(record)
        return PipelineOutcome(run=run, record=record)

    async def _execute(
        self, run: PipelineRun, style: str | None, tempo: int | float | None
    ) -> None:
        run.advance(PipelineState.CHORDS_IN_FLIGHT)
        try:
            run.chords = await self.chords_stage.run()
        except Exception as exc:
            self._fail(run, Stage.CHORDS, exc)
            return
        run.advance(PipelineState.CHORDS_DONE)

        run.advance(PipelineState.SOLO_IN_FLIGHT)
        try:
            run.solo = await self.solo_stage.run(run.chords.flattened, style, tempo)
        except Exception as exc:
            self._fail(run, Stage.SOLO, exc)
            return
        run.advance(PipelineState.SOLO_DONE)

        try:
            response = merge_response(run.chords, run.solo)
            run.response_size_bytes = json_size_bytes(response)
        except (TypeError, ValueError) as exc:
            self._fail(run, Stage.MERGE, exc)
            return
        run.response = response
        run.advance(PipelineState.RESPONDED)
        logger.info(
            f"✅ Generated MIDI: chords {run.chords.elapsed_ms}ms "
            f"({run.chords.info}), solo {run.solo.elapsed_ms}ms ({run.solo.info})"
        )

    def _fail(self, run: PipelineRun, stage: Stage, exc: Exception) -> None:
        run.fail(stage, exc)
        if isinstance(exc, (BackendError, StageValidationError)):
            logger.error(f"❌ Pipeline failed at {stage.value} stage ({run.failure.label}): {exc}")
        else:
            logger.exception(f"❌ Unexpected error in {stage.value} stage: {exc}")

    def _cancel(self, run: PipelineRun) -> None:
        if run.state in (PipelineState.RESPONDED, PipelineState.FAILED):
            return
        stage = _IN_FLIGHT_STAGE.get(run.state, Stage.MERGE)
        run.fail(stage, PipelineCancelled())
        logger.warning(f"⚠️ Pipeline cancelled during {stage.value} stage")

    def _record(self, record: MetricsRecord) -> None:
        if self.recorder is None:
            return
        try:
            self.recorder.record(record)
        except Exception as exc:
            logger.warning(f"⚠️ Metrics recording failed: {exc}")
