from __future__ import annotations


class PhaseTrackError(Exception):
    """Base class for study-progression errors."""


class OutOfWindowError(PhaseTrackError):
    """Raised when an activity is submitted outside its eligible day."""

    def __init__(self, message: str, phase: str | None = None, offset: int | None = None):
        super().__init__(message)
        self.phase = phase
        self.offset = offset


class UnknownActivityError(PhaseTrackError, ValueError):
    """Raised when a phase/activity combination is not part of the protocol."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class UserNotFoundError(PhaseTrackError):
    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class DuplicateUserError(PhaseTrackError):
    def __init__(self, user_id: str):
        super().__init__(f"User already exists: {user_id}")
        self.user_id = user_id


class PersistenceError(PhaseTrackError):
    """Raised when the state store could not complete a write. Nothing was applied."""

    def __init__(self, message: str, user_id: str | None = None):
        super().__init__(message)
        self.user_id = user_id


class ConcurrentUpdateError(PersistenceError):
    """Raised when a conditional write lost the race for a user's record."""

    def __init__(self, user_id: str, expected_version: int):
        super().__init__(
            f"Progress for {user_id} changed since version {expected_version}",
            user_id=user_id,
        )
        self.expected_version = expected_version


class NotificationDeliveryError(PhaseTrackError):
    def __init__(self, message: str, user_id: str | None = None):
        super().__init__(message)
        self.user_id = user_id


class StimulusNotFoundError(PhaseTrackError):
    def __init__(self, speaker: str, name: str):
        super().__init__(f"Stimulus {name} not found for speaker {speaker}")
        self.speaker = speaker
        self.name = name
