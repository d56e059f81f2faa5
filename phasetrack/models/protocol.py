from pydantic import BaseModel, ConfigDict, Field

from phasetrack.models.enums import ActivityType, Phase


class PhaseDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: Phase
    order: int = Field(ge=0)
    next_phase: Phase | None = None  # None for the final follow-up
    required_activities: frozenset[ActivityType]
    # Training carries one offset per day; every other phase a single minimum
    expected_offsets: tuple[int, ...] | int
    notes: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.next_phase is None


class StimulusPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    has_version: bool
    template: str  # str.format template over speaker, version, sentence
