from abc import ABC, abstractmethod
from collections.abc import Sequence

from phasetrack.models.user import ResponseRecord, UserProgressState


class StorageBackend(ABC):
    @abstractmethod
    def get_progress(self, user_id: str) -> UserProgressState | None: ...

    @abstractmethod
    def create_progress(self, state: UserProgressState) -> None:
        """Insert a new record. Raises DuplicateUserError if the user exists."""

    @abstractmethod
    def commit_progress(
        self,
        state: UserProgressState,
        expected_version: int,
        responses: Sequence[ResponseRecord] = (),
    ) -> UserProgressState:
        """Write state and responses in one all-or-nothing step.

        The write only applies if the stored version still equals
        ``expected_version``; otherwise ConcurrentUpdateError. Returns the
        stored state with its version bumped.
        """

    @abstractmethod
    def list_progress(self) -> list[UserProgressState]: ...

    @abstractmethod
    def delete_user(self, user_id: str) -> bool:
        """Delete a user's progress and every response they recorded."""

    @abstractmethod
    def list_responses(self, user_id: str | None = None) -> list[ResponseRecord]: ...
