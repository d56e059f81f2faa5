from datetime import UTC, date, datetime

from pydantic import BaseModel, Field

from phasetrack.models.enums import Phase, SubmissionError, TemplateKind


class SubmissionResult(BaseModel):
    accepted: bool
    error: SubmissionError | None = None
    message: str = ""
    current_phase: Phase | None = None
    training_day: int | None = None
    baseline_date: date | None = None
    completed: bool = False


class EligibilityReport(BaseModel):
    user_id: str
    as_of: date
    phases: dict[Phase, bool]
    late_training: bool = False  # behind the calendar but still allowed to submit


class ReminderRequest(BaseModel):
    user_id: str
    email: str
    template: TemplateKind
    phase: Phase
    training_day: int | None = None
    offset: int

    @property
    def params(self) -> dict:
        params: dict = {"user_id": self.user_id, "phase": self.phase.value}
        if self.training_day is not None:
            params["day"] = self.training_day
        return params


class ReminderSweepReport(BaseModel):
    run_date: date
    scanned: int = 0
    sent: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class PhaseCount(BaseModel):
    phase: Phase
    count: int


class StudyStats(BaseModel):
    total_users: int
    users_by_phase: list[PhaseCount]
    completed_users: int
    active_users: int


class UserExportRow(BaseModel):
    user_id: str
    email: str
    current_phase: Phase
    training_day: int
    baseline_date: date | None
    completed: bool
    account_active: bool
    created_at: datetime


class ResponseExportRow(BaseModel):
    user_id: str
    email: str | None
    phase: Phase
    training_day: int | None
    activity_type: str
    stimulus_id: str
    response: str
    rating: int | None
    correct: bool | None
    recorded_at: datetime
