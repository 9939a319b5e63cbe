from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from .state_store import is_step_completed, mark_step_completed

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single idempotent step."""

    step_id: str
    title: str

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


# Called as on_step(index, total, step, skipped) before each step.
StepCallback = Callable[[int, int, Step, bool], None]


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    skipped_steps: List[str]


def run_pipeline(
    *,
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
    on_step: Optional[StepCallback] = None,
) -> PipelineResult:
    """Run steps in order with resume/idempotency semantics.

    Steps flagged ``always_run`` (checks and reporting) run on every pass,
    even when recorded as completed.
    """

    known = {s.step_id for s in steps}
    for name, value in (("start_at", start_at), ("stop_after", stop_after)):
        if value is not None and value not in known:
            raise ValueError(f"Unknown step for {name}: {value}")

    ran: List[str] = []
    skipped: List[str] = []

    started = start_at is None
    total = len(steps)

    for index, step in enumerate(steps, start=1):
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                continue

        state.setdefault("execution", {})["current_step"] = step.step_id

        always = bool(getattr(step, "always_run", False))
        skip = (not force) and (not always) and is_step_completed(state, step.step_id)

        if on_step is not None:
            on_step(index, total, step, skip)

        if skip:
            logger.info("Skipping step %s (already completed)", step.step_id)
            skipped.append(step.step_id)
        else:
            logger.info("Running step %s", step.step_id)
            state = step.run(state)
            mark_step_completed(state, step.step_id)
            ran.append(step.step_id)

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    state.setdefault("execution", {})["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, skipped_steps=skipped)
