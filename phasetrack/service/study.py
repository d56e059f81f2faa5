"""Participant-facing operations: registration, submissions, eligibility."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from phasetrack.engine import clock
from phasetrack.engine.gate import eligibility, late_training_window
from phasetrack.engine.progression import record_activity_completion
from phasetrack.exceptions import (
    ConcurrentUpdateError,
    OutOfWindowError,
    PersistenceError,
    UnknownActivityError,
    UserNotFoundError,
)
from phasetrack.models.demographics import DemographicsForm
from phasetrack.models.enums import ActivityType, Phase, SubmissionError
from phasetrack.models.results import EligibilityReport, SubmissionResult
from phasetrack.models.user import (
    ActivityCompletionEvent,
    ResponseRecord,
    StimulusResponse,
    UserProgressState,
)
from phasetrack.storage.base import StorageBackend

logger = logging.getLogger(__name__)

MAX_RETRIES = 3

# Stimulus id of the response row that carries a submitted demographics form
DEMOGRAPHICS_RECORD_ID = "demographics"


def _state_result(state: UserProgressState) -> SubmissionResult:
    return SubmissionResult(
        accepted=True,
        current_phase=state.current_phase,
        training_day=state.training_day,
        baseline_date=state.baseline_date,
        completed=state.completed,
    )


def _rejection(
    error: SubmissionError, message: str, state: UserProgressState | None = None
) -> SubmissionResult:
    result = SubmissionResult(accepted=False, error=error, message=message)
    if state is not None:
        result = result.model_copy(
            update={
                "current_phase": state.current_phase,
                "training_day": state.training_day,
                "baseline_date": state.baseline_date,
                "completed": state.completed,
            }
        )
    return result


def _response_records(
    event: ActivityCompletionEvent, state: UserProgressState
) -> list[ResponseRecord]:
    records = [
        ResponseRecord(
            user_id=state.user_id,
            phase=event.phase,
            training_day=event.training_day,
            activity_type=event.activity_type,
            stimulus_id=r.stimulus_id,
            response=r.response,
            rating=r.rating,
            correct=r.correct,
        )
        for r in event.responses
    ]
    if event.demographics is not None:
        records.append(
            ResponseRecord(
                user_id=state.user_id,
                phase=event.phase,
                activity_type=event.activity_type,
                stimulus_id=DEMOGRAPHICS_RECORD_ID,
                response=event.demographics.model_dump_json(),
            )
        )
    return records


class StudyService:
    def __init__(self, storage: StorageBackend, timezone: str = clock.DEFAULT_TIMEZONE):
        self._storage = storage
        self._timezone = timezone

    def _today(self, today: date | None) -> date:
        return today if today is not None else clock.today(self._timezone)

    def _load(self, user_id: str) -> UserProgressState:
        state = self._storage.get_progress(user_id)
        if state is None:
            raise UserNotFoundError(user_id)
        return state

    def register_user(self, user_id: str, email: str, speaker: str) -> UserProgressState:
        state = UserProgressState(user_id=user_id, email=email, speaker=speaker)
        self._storage.create_progress(state)
        logger.info("Registered user %s (speaker=%s)", user_id, speaker)
        return state

    def get_progress(self, user_id: str) -> UserProgressState:
        return self._load(user_id)

    def submit_activity(
        self,
        user_id: str,
        phase: Phase | str,
        activity_type: ActivityType | str,
        training_day: int | None = None,
        responses: Iterable[StimulusResponse | dict] = (),
        today: date | None = None,
        demographics: DemographicsForm | dict | None = None,
    ) -> SubmissionResult:
        """Record one completed activity and advance the user's progress.

        Business-rule failures come back as a rejected SubmissionResult.
        PersistenceError is raised when the state could not be stored.
        """
        try:
            event = ActivityCompletionEvent(
                user_id=user_id,
                phase=phase,
                activity_type=activity_type,
                training_day=training_day,
                responses=list(responses),
                demographics=demographics,
            )
        except ValueError as e:
            logger.warning("Rejected malformed submission from %s: %s", user_id, e)
            return _rejection(SubmissionError.UNKNOWN_ACTIVITY, str(e))

        return self.record(event, today=today)

    def record(self, event: ActivityCompletionEvent, today: date | None = None) -> SubmissionResult:
        current_day = self._today(today)
        state: UserProgressState | None = None

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                state = self._load(event.user_id)
                new_state = record_activity_completion(state, event, current_day)
            except UserNotFoundError as e:
                return _rejection(SubmissionError.USER_NOT_FOUND, str(e))
            except UnknownActivityError as e:
                logger.warning("Unknown activity from %s: %s", event.user_id, e)
                return _rejection(SubmissionError.UNKNOWN_ACTIVITY, str(e), state)
            except OutOfWindowError as e:
                logger.info("Out-of-window submission from %s: %s", event.user_id, e)
                return _rejection(SubmissionError.OUT_OF_WINDOW, str(e), state)

            # Replays change nothing and record nothing
            if new_state is state:
                return _state_result(state)

            records = _response_records(event, state)
            try:
                stored = self._storage.commit_progress(new_state, state.version, records)
            except ConcurrentUpdateError:
                logger.warning(
                    "Attempt %d/%d: concurrent update for %s, retrying",
                    attempt,
                    MAX_RETRIES,
                    event.user_id,
                )
                continue
            except UserNotFoundError as e:
                logger.info("User %s was removed during submission", event.user_id)
                return _rejection(SubmissionError.USER_NOT_FOUND, str(e))
            except PersistenceError:
                logger.exception("Failed to persist progress for %s", event.user_id)
                raise
            return _state_result(stored)

        logger.error("Gave up on %s after %d concurrent updates", event.user_id, MAX_RETRIES)
        raise PersistenceError(
            f"Could not commit progress for {event.user_id} after {MAX_RETRIES} attempts",
            event.user_id,
        )

    def get_demographics(self, user_id: str) -> DemographicsForm | None:
        """Latest demographics form submitted by the user, if any."""
        self._load(user_id)
        forms = [
            r for r in self._storage.list_responses(user_id) if r.stimulus_id == DEMOGRAPHICS_RECORD_ID
        ]
        if not forms:
            return None
        latest = max(forms, key=lambda r: r.sort_key)
        return DemographicsForm.model_validate_json(latest.response)

    def get_eligibility(self, user_id: str, today: date | None = None) -> EligibilityReport:
        current_day = self._today(today)
        state = self._load(user_id)
        return EligibilityReport(
            user_id=user_id,
            as_of=current_day,
            phases=eligibility(state, current_day),
            late_training=late_training_window(state, current_day),
        )
