"""Tests for phasetrack.protocol: phase table and activity keys."""

import pytest

from phasetrack.exceptions import UnknownActivityError
from phasetrack.models.enums import ActivityType, Phase
from phasetrack.models.user import ActivityKey
from phasetrack.protocol import (
    PHASE_DEFINITIONS,
    PHASE_SEQUENCE,
    completed_activities_for,
    expected_offsets,
    has_completed_phase,
    next_phase,
    parse_activity_key,
    phase_order,
    required_activities,
    training_day_offset,
)

from tests.conftest import make_state, phase_keys


class TestPhaseTable:
    def test_all_phases_defined(self):
        assert set(PHASE_DEFINITIONS) == set(Phase)

    def test_sequence_order(self):
        assert PHASE_SEQUENCE == [
            Phase.PRETEST,
            Phase.TRAINING,
            Phase.POSTTEST1,
            Phase.POSTTEST2,
            Phase.POSTTEST3,
        ]

    def test_successors(self):
        assert next_phase(Phase.PRETEST) == Phase.TRAINING
        assert next_phase(Phase.TRAINING) == Phase.POSTTEST1
        assert next_phase(Phase.POSTTEST1) == Phase.POSTTEST2
        assert next_phase(Phase.POSTTEST2) == Phase.POSTTEST3
        assert next_phase(Phase.POSTTEST3) is None

    def test_successor_always_later(self):
        for phase in Phase:
            successor = next_phase(phase)
            if successor is not None:
                assert phase_order(successor) == phase_order(phase) + 1

    def test_offsets(self):
        assert expected_offsets(Phase.PRETEST) == 0
        assert expected_offsets(Phase.TRAINING) == (1, 2, 3, 4)
        assert expected_offsets(Phase.POSTTEST1) == 12
        assert expected_offsets(Phase.POSTTEST2) == 35
        assert expected_offsets(Phase.POSTTEST3) == 90

    def test_training_day_offset(self):
        assert [training_day_offset(d) for d in range(1, 5)] == [1, 2, 3, 4]

    def test_training_day_offset_out_of_range(self):
        with pytest.raises(UnknownActivityError):
            training_day_offset(5)

    def test_required_activities(self):
        assert ActivityType.DEMOGRAPHICS in required_activities(Phase.PRETEST)
        assert required_activities(Phase.TRAINING) == {ActivityType.TRAINING_SESSION}
        assert ActivityType.DEMOGRAPHICS not in required_activities(Phase.POSTTEST2)
        assert len(required_activities(Phase.POSTTEST3)) == 4

    def test_definitions_are_frozen(self):
        with pytest.raises(Exception):
            PHASE_DEFINITIONS[Phase.POSTTEST1].expected_offsets = 1


class TestActivityKeys:
    def test_key_format(self):
        key = ActivityKey(phase=Phase.POSTTEST1, activity_type=ActivityType.EFFORT_1)
        assert key.key == "posttest1_EFFORT_1"

    def test_training_key_format(self):
        key = ActivityKey(
            phase=Phase.TRAINING, activity_type=ActivityType.TRAINING_SESSION, training_day=3
        )
        assert key.key == "training_TRAINING_SESSION_3"

    def test_parse_round_trip(self):
        for raw in ("pretest_COMPREHENSION_2", "training_TRAINING_SESSION_4"):
            assert parse_activity_key(raw).key == raw

    @pytest.mark.parametrize(
        "raw",
        [
            "pretest",
            "pretest_NOT_A_TEST",
            "posttest9_EFFORT_1",
            "pretest_TRAINING_SESSION",
            "training_TRAINING_SESSION",
            "training_TRAINING_SESSION_7",
            "training_EFFORT_1_2",
        ],
    )
    def test_parse_rejects_unknown(self, raw):
        with pytest.raises(UnknownActivityError):
            parse_activity_key(raw)

    def test_state_rejects_unknown_persisted_key(self):
        with pytest.raises(ValueError):
            make_state(completed_keys=["pretest_SOMETHING_ELSE"])

    def test_state_serializes_keys_as_strings(self):
        state = make_state(completed_keys=["pretest_EFFORT_1", "pretest_DEMOGRAPHICS"])
        dumped = state.model_dump(mode="json")
        assert dumped["completed_activities"] == ["pretest_DEMOGRAPHICS", "pretest_EFFORT_1"]


class TestPhaseCompletion:
    def test_pretest_incomplete(self):
        state = make_state(completed_keys=["pretest_DEMOGRAPHICS"])
        assert not has_completed_phase(state, Phase.PRETEST)

    def test_pretest_complete(self):
        state = make_state(completed_keys=phase_keys(Phase.PRETEST))
        assert has_completed_phase(state, Phase.PRETEST)

    def test_training_needs_all_days(self):
        keys = [k for d in (1, 2, 3) for k in phase_keys(Phase.TRAINING, d)]
        assert not has_completed_phase(make_state(completed_keys=keys), Phase.TRAINING)
        keys += phase_keys(Phase.TRAINING, 4)
        assert has_completed_phase(make_state(completed_keys=keys), Phase.TRAINING)

    def test_completed_activities_for_phase(self):
        state = make_state(
            completed_keys=phase_keys(Phase.PRETEST) + ["training_TRAINING_SESSION_1"]
        )
        training = completed_activities_for(state, Phase.TRAINING)
        assert [k.key for k in training] == ["training_TRAINING_SESSION_1"]
        assert len(completed_activities_for(state, Phase.PRETEST)) == 5
