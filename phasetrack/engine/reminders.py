from datetime import date

from phasetrack.engine.gate import baseline_offset
from phasetrack.models.enums import Phase, TemplateKind
from phasetrack.models.results import ReminderRequest
from phasetrack.models.user import UserProgressState
from phasetrack.protocol import TRAINING_DAYS, expected_offsets


def plan_reminder(
    state: UserProgressState, today: date, followup_posttests: bool = False
) -> ReminderRequest | None:
    """Decide which reminder, if any, a user should get today.

    Training reminders follow the calendar (offset 0..3 -> day offset+1),
    not the user's day counter. Offset 4 gets the posttest1 reminder. With
    ``followup_posttests`` the later posttests are announced on the day
    their window opens, for users sitting in that phase.
    """
    if not state.account_active or state.completed:
        return None

    offset = baseline_offset(state, today)
    if offset is None:
        return None

    if 0 <= offset < TRAINING_DAYS:
        return ReminderRequest(
            user_id=state.user_id,
            email=state.email,
            template=TemplateKind.TRAINING_REMINDER,
            phase=Phase.TRAINING,
            training_day=offset + 1,
            offset=offset,
        )

    if offset == TRAINING_DAYS:
        return ReminderRequest(
            user_id=state.user_id,
            email=state.email,
            template=TemplateKind.POSTTEST_REMINDER,
            phase=Phase.POSTTEST1,
            offset=offset,
        )

    if followup_posttests:
        for phase in (Phase.POSTTEST2, Phase.POSTTEST3):
            if state.current_phase == phase and offset == expected_offsets(phase):
                return ReminderRequest(
                    user_id=state.user_id,
                    email=state.email,
                    template=TemplateKind.POSTTEST_REMINDER,
                    phase=phase,
                    offset=offset,
                )

    return None
