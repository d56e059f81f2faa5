import threading
from collections.abc import Sequence

from phasetrack.exceptions import ConcurrentUpdateError, DuplicateUserError, UserNotFoundError
from phasetrack.models.user import ResponseRecord, UserProgressState
from phasetrack.storage.base import StorageBackend


class InMemoryStorage(StorageBackend):
    """Process-local backend for tests and local runs. One lock guards all users."""

    def __init__(self):
        self._lock = threading.Lock()
        self._progress: dict[str, UserProgressState] = {}
        self._responses: dict[str, list[ResponseRecord]] = {}

    def get_progress(self, user_id: str) -> UserProgressState | None:
        with self._lock:
            state = self._progress.get(user_id)
            return state.model_copy(deep=True) if state else None

    def create_progress(self, state: UserProgressState) -> None:
        with self._lock:
            if state.user_id in self._progress:
                raise DuplicateUserError(state.user_id)
            self._progress[state.user_id] = state.model_copy(deep=True)

    def commit_progress(
        self,
        state: UserProgressState,
        expected_version: int,
        responses: Sequence[ResponseRecord] = (),
    ) -> UserProgressState:
        with self._lock:
            current = self._progress.get(state.user_id)
            if current is None:
                raise UserNotFoundError(state.user_id)
            if current.version != expected_version:
                raise ConcurrentUpdateError(state.user_id, expected_version)
            stored = state.model_copy(update={"version": expected_version + 1}, deep=True)
            self._progress[state.user_id] = stored
            self._responses.setdefault(state.user_id, []).extend(
                r.model_copy(deep=True) for r in responses
            )
            return stored.model_copy(deep=True)

    def list_progress(self) -> list[UserProgressState]:
        with self._lock:
            return [s.model_copy(deep=True) for s in self._progress.values()]

    def delete_user(self, user_id: str) -> bool:
        with self._lock:
            self._responses.pop(user_id, None)
            return self._progress.pop(user_id, None) is not None

    def list_responses(self, user_id: str | None = None) -> list[ResponseRecord]:
        with self._lock:
            if user_id is not None:
                records = list(self._responses.get(user_id, []))
            else:
                records = [r for rs in self._responses.values() for r in rs]
        return sorted(records, key=lambda r: (r.user_id, r.sort_key))
