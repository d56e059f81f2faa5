from datetime import date

from phasetrack.engine.clock import days_between
from phasetrack.models.enums import Phase
from phasetrack.models.user import UserProgressState
from phasetrack.protocol import (
    PHASE_SEQUENCE,
    POSTTEST_PHASES,
    expected_offsets,
    training_day_offset,
)


def baseline_offset(state: UserProgressState, today: date) -> int | None:
    """Days since the baseline date, or None before the pretest is done."""
    if state.baseline_date is None:
        return None
    return days_between(state.baseline_date, today)


def can_proceed(state: UserProgressState, phase: Phase, today: date) -> bool:
    """Whether the user may act on ``phase`` today. Pure in (state, today)."""
    if not state.account_active:
        return False

    # Pretest has no temporal gate
    if phase == Phase.PRETEST:
        return True

    if state.completed or state.baseline_date is None:
        return False

    if phase != state.current_phase:
        return False

    offset = baseline_offset(state, today)

    if phase == Phase.TRAINING:
        return offset == training_day_offset(state.training_day)

    if phase in POSTTEST_PHASES:
        return offset >= expected_offsets(phase)

    return False


def late_training_window(state: UserProgressState, today: date, training_day: int | None = None) -> bool:
    """Catch-up rule for a user who has fallen behind the training calendar.

    Open while the user is still in training, the calendar offset has moved
    past the current day counter, and the window of the submitted day has
    opened. Does not replace ``can_proceed``; the exact-day gate stays strict.
    """
    if not state.account_active or state.completed:
        return False
    if state.current_phase != Phase.TRAINING or state.baseline_date is None:
        return False

    offset = baseline_offset(state, today)
    if offset <= training_day_offset(state.training_day):
        return False
    day = training_day if training_day is not None else state.training_day
    return offset >= training_day_offset(day)


def eligibility(state: UserProgressState, today: date) -> dict[Phase, bool]:
    return {phase: can_proceed(state, phase, today) for phase in PHASE_SEQUENCE}
