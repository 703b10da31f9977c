from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from javelin.core.result import Err, Ok, Result

S = TypeVar("S")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class StepAdvance[S]:
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish[S]:
    session: S


@dataclass(frozen=True, slots=True)
class StepFailed[E]:
    """A handler failed; state names where the run stopped."""

    state: str
    cause: E


type StepOutcome[S] = StepAdvance[S] | StepFinish[S]
type StepHandler[S, E] = Callable[[S], Result[StepOutcome[S], E]]
type GetStep[S] = Callable[[S], str]
type OnEnter[S] = Callable[[str, S], None]


def advance[S](session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def finish[S](session: S) -> StepFinish[S]:
    return StepFinish(session=session)


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S, E]],
    on_enter: OnEnter[S] | None = None,
) -> Result[S, StepFailed[E]]:
    """Run handlers until one finishes or fails.

    No rollback: a failure leaves every earlier step's effects in place and
    returns the failing step name with its cause.
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            raise LookupError(f"no handler for state: {step}")

        if on_enter is not None:
            on_enter(step, current)

        outcome = handler(current)
        if isinstance(outcome, Err):
            return Err(StepFailed(state=step, cause=outcome.error))

        if isinstance(outcome.value, StepFinish):
            return Ok(outcome.value.session)

        current = outcome.value.session
