"""Study protocol: phase ordering, required activities and day offsets.

Declared once at import and never mutated. Everything that needs to know
what a phase requires or when it opens reads it from here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from phasetrack.exceptions import UnknownActivityError
from phasetrack.models.enums import ActivityType, Phase, StimulusKind
from phasetrack.models.protocol import PhaseDefinition, StimulusPattern
from phasetrack.models.user import ActivityKey

if TYPE_CHECKING:
    from phasetrack.models.user import UserProgressState


TRAINING_DAYS = 4

_LISTENING_TESTS = frozenset(
    {
        ActivityType.COMPREHENSION_1,
        ActivityType.COMPREHENSION_2,
        ActivityType.EFFORT_1,
        ActivityType.INTELLIGIBILITY_1,
    }
)

PHASE_DEFINITIONS: dict[Phase, PhaseDefinition] = {
    Phase.PRETEST: PhaseDefinition(
        phase=Phase.PRETEST,
        order=0,
        next_phase=Phase.TRAINING,
        required_activities=_LISTENING_TESTS | {ActivityType.DEMOGRAPHICS},
        expected_offsets=0,
        notes="Entry point; completing it sets the baseline date",
    ),
    Phase.TRAINING: PhaseDefinition(
        phase=Phase.TRAINING,
        order=1,
        next_phase=Phase.POSTTEST1,
        required_activities=frozenset({ActivityType.TRAINING_SESSION}),
        expected_offsets=(1, 2, 3, 4),
        notes="Required activities apply per training day",
    ),
    Phase.POSTTEST1: PhaseDefinition(
        phase=Phase.POSTTEST1,
        order=2,
        next_phase=Phase.POSTTEST2,
        required_activities=_LISTENING_TESTS,
        expected_offsets=12,
    ),
    Phase.POSTTEST2: PhaseDefinition(
        phase=Phase.POSTTEST2,
        order=3,
        next_phase=Phase.POSTTEST3,
        required_activities=_LISTENING_TESTS,
        expected_offsets=35,
    ),
    Phase.POSTTEST3: PhaseDefinition(
        phase=Phase.POSTTEST3,
        order=4,
        next_phase=None,
        required_activities=_LISTENING_TESTS,
        expected_offsets=90,
        notes="Three-month follow-up",
    ),
}

PHASE_SEQUENCE: list[Phase] = sorted(PHASE_DEFINITIONS, key=lambda p: PHASE_DEFINITIONS[p].order)

POSTTEST_PHASES = frozenset({Phase.POSTTEST1, Phase.POSTTEST2, Phase.POSTTEST3})

# Stimulus file names stored per speaker in the blob store
STIMULUS_PATTERNS: dict[StimulusKind, StimulusPattern] = {
    StimulusKind.COMPREHENSION: StimulusPattern(
        code="Comp", has_version=True, template="{speaker}_Comp_{version:02d}_{sentence:02d}"
    ),
    StimulusKind.EFFORT: StimulusPattern(
        code="EFF", has_version=False, template="{speaker}_EFF{sentence:02d}"
    ),
    StimulusKind.INTELLIGIBILITY: StimulusPattern(
        code="Int", has_version=False, template="{speaker}_Int{sentence:02d}"
    ),
    StimulusKind.TRAINING: StimulusPattern(
        code="Trn", has_version=True, template="{speaker}_Trn_{version:02d}_{sentence:02d}"
    ),
}


def next_phase(phase: Phase) -> Phase | None:
    return PHASE_DEFINITIONS[phase].next_phase


def required_activities(phase: Phase) -> frozenset[ActivityType]:
    return PHASE_DEFINITIONS[phase].required_activities


def expected_offsets(phase: Phase) -> int | tuple[int, ...]:
    return PHASE_DEFINITIONS[phase].expected_offsets


def phase_order(phase: Phase) -> int:
    return PHASE_DEFINITIONS[phase].order


def training_day_offset(day: int) -> int:
    """Expected offset from baseline for a training day (1-based)."""
    offsets = expected_offsets(Phase.TRAINING)
    if not 1 <= day <= len(offsets):
        raise UnknownActivityError(f"Training day {day} is outside 1..{len(offsets)}")
    return offsets[day - 1]


def unit_keys(phase: Phase, training_day: int | None = None) -> frozenset[ActivityKey]:
    """Keys that make up one unit of work: a whole phase, or one training day."""
    return frozenset(
        ActivityKey(phase=phase, activity_type=a, training_day=training_day)
        for a in required_activities(phase)
    )


def validate_activity_key(key: ActivityKey) -> ActivityKey:
    if key.activity_type not in required_activities(key.phase):
        raise UnknownActivityError(
            f"{key.activity_type.value} is not an activity of {key.phase.value}",
            key=key.key,
        )
    if key.training_day is not None and key.training_day > TRAINING_DAYS:
        raise UnknownActivityError(f"Unknown training day in {key.key}", key=key.key)
    return key


def parse_activity_key(raw: str) -> ActivityKey:
    try:
        key = ActivityKey.parse(raw)
    except ValueError as e:
        raise UnknownActivityError(f"Unrecognized activity key {raw!r}: {e}", key=raw) from e
    return validate_activity_key(key)


def has_completed_unit(
    state: UserProgressState, phase: Phase, training_day: int | None = None
) -> bool:
    return unit_keys(phase, training_day) <= state.completed_activities


def has_completed_phase(state: UserProgressState, phase: Phase) -> bool:
    if phase == Phase.TRAINING:
        return all(
            has_completed_unit(state, phase, day) for day in range(1, TRAINING_DAYS + 1)
        )
    return has_completed_unit(state, phase)


def completed_activities_for(state: UserProgressState, phase: Phase) -> list[ActivityKey]:
    return sorted(
        (k for k in state.completed_activities if k.phase == phase),
        key=lambda k: k.key,
    )
