from datetime import UTC, date, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from phasetrack.models.demographics import DemographicsForm
from phasetrack.models.enums import ActivityType, Phase


class ActivityKey(BaseModel):
    """Composite completion key: ``{phase}_{activity}`` or ``{phase}_{activity}_{day}``."""

    model_config = ConfigDict(frozen=True)

    phase: Phase
    activity_type: ActivityType
    training_day: int | None = Field(default=None, ge=1, le=4)

    @model_validator(mode="after")
    def _check_training_day(self) -> "ActivityKey":
        if self.phase == Phase.TRAINING and self.training_day is None:
            raise ValueError("training activities need a training_day")
        if self.phase != Phase.TRAINING and self.training_day is not None:
            raise ValueError(f"training_day is not allowed for {self.phase.value}")
        return self

    @property
    def key(self) -> str:
        base = f"{self.phase.value}_{self.activity_type.value}"
        if self.training_day is not None:
            return f"{base}_{self.training_day}"
        return base

    @classmethod
    def parse(cls, raw: str) -> "ActivityKey":
        phase, _, rest = raw.partition("_")
        if not rest:
            raise ValueError(f"malformed activity key: {raw!r}")
        if phase == Phase.TRAINING.value:
            activity, _, day = rest.rpartition("_")
            if not activity or not day.isdigit():
                raise ValueError(f"malformed training activity key: {raw!r}")
            return cls(phase=phase, activity_type=activity, training_day=int(day))
        return cls(phase=phase, activity_type=rest)

    def __str__(self) -> str:
        return self.key


class UserProgressState(BaseModel):
    user_id: str
    email: str
    speaker: str
    current_phase: Phase = Phase.PRETEST
    training_day: int = Field(default=1, ge=1, le=4)
    baseline_date: date | None = None
    completed_activities: frozenset[ActivityKey] = Field(default_factory=frozenset)
    account_active: bool = True
    completed: bool = False
    version: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("completed_activities", mode="before")
    @classmethod
    def _parse_keys(cls, value):
        # Persisted form is a list of key strings; unknown keys are rejected here
        from phasetrack.protocol import validate_activity_key

        if value is None:
            return frozenset()
        keys = []
        for item in value:
            key = ActivityKey.parse(item) if isinstance(item, str) else ActivityKey.model_validate(item)
            keys.append(validate_activity_key(key))
        return frozenset(keys)

    @field_serializer("completed_activities")
    def _dump_keys(self, keys: frozenset[ActivityKey]) -> list[str]:
        return sorted(k.key for k in keys)

    def has_completed(self, key: ActivityKey) -> bool:
        return key in self.completed_activities


class StimulusResponse(BaseModel):
    stimulus_id: str = Field(min_length=1)
    response: str
    rating: int | None = Field(default=None, ge=1, le=100)
    correct: bool | None = None


class ActivityCompletionEvent(BaseModel):
    user_id: str
    phase: Phase
    activity_type: ActivityType
    training_day: int | None = Field(default=None, ge=1, le=4)
    responses: list[StimulusResponse] = Field(default_factory=list)
    demographics: DemographicsForm | None = None

    @model_validator(mode="after")
    def _check_demographics(self) -> "ActivityCompletionEvent":
        if self.demographics is not None and self.activity_type != ActivityType.DEMOGRAPHICS:
            raise ValueError("a demographics form only accompanies the DEMOGRAPHICS activity")
        return self

    @property
    def activity_key(self) -> ActivityKey:
        return ActivityKey(
            phase=self.phase,
            activity_type=self.activity_type,
            training_day=self.training_day,
        )


class ResponseRecord(BaseModel):
    record_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    phase: Phase
    training_day: int | None = None
    activity_type: ActivityType
    stimulus_id: str
    response: str
    rating: int | None = None
    correct: bool | None = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def sort_key(self) -> str:
        return f"{self.recorded_at.isoformat()}#{self.record_id}"
