import logging
from datetime import date

from phasetrack.engine.gate import baseline_offset, can_proceed, late_training_window
from phasetrack.exceptions import OutOfWindowError, UnknownActivityError
from phasetrack.models.enums import Phase
from phasetrack.models.user import ActivityCompletionEvent, ActivityKey, UserProgressState
from phasetrack.protocol import (
    TRAINING_DAYS,
    has_completed_unit,
    next_phase,
    training_day_offset,
    validate_activity_key,
)

logger = logging.getLogger(__name__)


def resolve_key(event: ActivityCompletionEvent) -> ActivityKey:
    """Build and validate the completion key for an event."""
    try:
        key = event.activity_key
    except ValueError as e:
        raise UnknownActivityError(
            f"Invalid activity for {event.phase.value}: {e}",
            key=f"{event.phase.value}_{event.activity_type.value}",
        ) from e
    return validate_activity_key(key)


def _advance(state: UserProgressState, key: ActivityKey, today: date) -> dict:
    """Field updates once the unit of work containing ``key`` is complete."""
    phase = key.phase

    if phase == Phase.PRETEST:
        if state.current_phase != Phase.PRETEST:
            return {}
        updates: dict = {"current_phase": Phase.TRAINING, "training_day": 1}
        if state.baseline_date is None:
            updates["baseline_date"] = today
        return updates

    if phase == Phase.TRAINING:
        if key.training_day == TRAINING_DAYS:
            return {"current_phase": Phase.POSTTEST1}
        return {"training_day": min(state.training_day + 1, TRAINING_DAYS)}

    successor = next_phase(phase)
    if successor is None:
        return {"completed": True}
    return {"current_phase": successor}


def record_activity_completion(
    state: UserProgressState,
    event: ActivityCompletionEvent,
    today: date,
) -> UserProgressState:
    """Apply one activity completion and return the resulting state.

    The input state is never modified. Replaying an activity that is
    already complete returns the state unchanged. Raises OutOfWindowError
    when the activity is not open for the user today and
    UnknownActivityError when the event does not match the protocol.
    """
    key = resolve_key(event)

    if not state.account_active:
        raise OutOfWindowError(
            f"Account {state.user_id} is suspended", phase=event.phase.value
        )

    if state.has_completed(key):
        logger.debug("Replay of completed activity %s for %s", key.key, state.user_id)
        return state

    offset = baseline_offset(state, today)
    allowed = can_proceed(state, event.phase, today)
    if event.phase == Phase.TRAINING:
        # A day can never be submitted before its own window opens
        if allowed:
            allowed = offset >= training_day_offset(key.training_day)
        else:
            allowed = late_training_window(state, today, key.training_day)
    # The pretest stays open but only counts while the user is still in it
    if allowed and event.phase == Phase.PRETEST and state.current_phase != Phase.PRETEST:
        allowed = False

    if not allowed:
        raise OutOfWindowError(
            f"{event.phase.value} is not available for {state.user_id} today "
            f"(phase={state.current_phase.value}, day={state.training_day}, offset={offset})",
            phase=event.phase.value,
            offset=offset,
        )

    completed = state.completed_activities | {key}
    updated = state.model_copy(update={"completed_activities": completed})

    if not has_completed_unit(updated, key.phase, key.training_day):
        return updated

    updates = _advance(updated, key, today)
    if not updates:
        return updated

    result = updated.model_copy(update=updates)
    logger.info(
        "User %s: %s complete -> phase=%s day=%d baseline=%s completed=%s",
        state.user_id,
        key.key,
        result.current_phase.value,
        result.training_day,
        result.baseline_date,
        result.completed,
    )
    return result
