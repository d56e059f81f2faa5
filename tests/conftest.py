from datetime import date, datetime, timedelta

import pytest

from phasetrack.engine.progression import record_activity_completion
from phasetrack.models.enums import ActivityType, Phase
from phasetrack.models.user import ActivityCompletionEvent, ActivityKey, UserProgressState
from phasetrack.protocol import required_activities
from phasetrack.storage.memory import InMemoryStorage


BASELINE = date(2025, 1, 1)


# ── Helpers ─────────────────────────────────────────────────────────


def make_state(
    user_id: str = "user-1",
    current_phase: Phase = Phase.PRETEST,
    training_day: int = 1,
    baseline_date: date | None = None,
    completed_keys: list[str] | None = None,
    account_active: bool = True,
    completed: bool = False,
) -> UserProgressState:
    return UserProgressState(
        user_id=user_id,
        email=f"{user_id}@example.org",
        speaker="spk01",
        current_phase=current_phase,
        training_day=training_day,
        baseline_date=baseline_date,
        completed_activities=completed_keys or [],
        account_active=account_active,
        completed=completed,
        created_at=datetime(2024, 12, 20),
    )


def make_event(
    phase: Phase,
    activity: ActivityType,
    training_day: int | None = None,
    user_id: str = "user-1",
) -> ActivityCompletionEvent:
    return ActivityCompletionEvent(
        user_id=user_id, phase=phase, activity_type=activity, training_day=training_day
    )


def phase_keys(phase: Phase, training_day: int | None = None) -> list[str]:
    return [
        ActivityKey(phase=phase, activity_type=a, training_day=training_day).key
        for a in required_activities(phase)
    ]


def complete_phase(
    state: UserProgressState, phase: Phase, today: date, training_day: int | None = None
) -> UserProgressState:
    for activity in sorted(required_activities(phase), key=lambda a: a.value):
        state = record_activity_completion(
            state, make_event(phase, activity, training_day, state.user_id), today
        )
    return state


def days_after(n: int, start: date = BASELINE) -> date:
    return start + timedelta(days=n)


# ── Fixtures ────────────────────────────────────────────────────────


@pytest.fixture
def new_user() -> UserProgressState:
    return make_state()


@pytest.fixture
def training_user() -> UserProgressState:
    """Pretest done on BASELINE, training day 1 pending."""
    return make_state(
        current_phase=Phase.TRAINING,
        baseline_date=BASELINE,
        completed_keys=phase_keys(Phase.PRETEST),
    )


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()
