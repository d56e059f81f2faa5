"""Admin operations over stored progress: listing, suspension, deletion, stats, export rows."""

import logging
from collections import Counter

from phasetrack.exceptions import ConcurrentUpdateError, PersistenceError, UserNotFoundError
from phasetrack.models.results import (
    PhaseCount,
    ResponseExportRow,
    StudyStats,
    UserExportRow,
)
from phasetrack.models.user import UserProgressState
from phasetrack.protocol import PHASE_SEQUENCE
from phasetrack.service.study import MAX_RETRIES
from phasetrack.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class AdminOperations:
    def __init__(self, storage: StorageBackend):
        self._storage = storage

    def list_users(self) -> list[UserProgressState]:
        return sorted(self._storage.list_progress(), key=lambda s: s.created_at, reverse=True)

    def get_user(self, user_id: str) -> UserProgressState:
        state = self._storage.get_progress(user_id)
        if state is None:
            raise UserNotFoundError(user_id)
        return state

    def delete_user(self, user_id: str) -> None:
        if not self._storage.delete_user(user_id):
            raise UserNotFoundError(user_id)
        logger.info("Admin deleted user %s", user_id)

    def set_account_active(self, user_id: str, active: bool) -> UserProgressState:
        for attempt in range(1, MAX_RETRIES + 1):
            state = self.get_user(user_id)
            if state.account_active == active:
                return state
            try:
                stored = self._storage.commit_progress(
                    state.model_copy(update={"account_active": active}), state.version
                )
            except ConcurrentUpdateError:
                logger.warning("Attempt %d/%d: %s changed while toggling", attempt, MAX_RETRIES, user_id)
                continue
            logger.info("User %s %s", user_id, "activated" if active else "suspended")
            return stored
        raise PersistenceError(f"Could not update account status for {user_id}", user_id)

    def toggle_account_active(self, user_id: str) -> UserProgressState:
        state = self.get_user(user_id)
        return self.set_account_active(user_id, not state.account_active)

    def stats(self) -> StudyStats:
        states = self._storage.list_progress()
        by_phase = Counter(s.current_phase for s in states)
        return StudyStats(
            total_users=len(states),
            users_by_phase=[PhaseCount(phase=p, count=by_phase[p]) for p in PHASE_SEQUENCE],
            completed_users=sum(1 for s in states if s.completed),
            active_users=sum(1 for s in states if s.account_active),
        )

    def export_user_rows(self) -> list[UserExportRow]:
        return [
            UserExportRow(
                user_id=s.user_id,
                email=s.email,
                current_phase=s.current_phase,
                training_day=s.training_day,
                baseline_date=s.baseline_date,
                completed=s.completed,
                account_active=s.account_active,
                created_at=s.created_at,
            )
            for s in self.list_users()
        ]

    def export_response_rows(self) -> list[ResponseExportRow]:
        emails = {s.user_id: s.email for s in self._storage.list_progress()}
        return [
            ResponseExportRow(
                user_id=r.user_id,
                email=emails.get(r.user_id),
                phase=r.phase,
                training_day=r.training_day,
                activity_type=r.activity_type.value,
                stimulus_id=r.stimulus_id,
                response=r.response,
                rating=r.rating,
                correct=r.correct,
                recorded_at=r.recorded_at,
            )
            for r in self._storage.list_responses()
        ]
