from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, model_validator

YesNoUnknown = Literal["Yes", "No", "Unknown"]


class HearingThreshold(BaseModel):
    frequency: Literal[250, 500, 1000, 2000, 4000, 8000]
    left_ear: float | None = Field(default=None, ge=-10, le=120)
    right_ear: float | None = Field(default=None, ge=-10, le=120)


class CpibAnswers(BaseModel):
    """Communicative Participation Item Bank, short form.

    Each answer is 0 (very much) to 3 (not at all); unanswered items score 0.
    """

    talking_known_people: int | None = Field(default=None, ge=0, le=3)
    communicating_quickly: int | None = Field(default=None, ge=0, le=3)
    talking_unknown_people: int | None = Field(default=None, ge=0, le=3)
    communicating_community: int | None = Field(default=None, ge=0, le=3)
    asking_questions: int | None = Field(default=None, ge=0, le=3)
    communicating_small_group: int | None = Field(default=None, ge=0, le=3)
    long_conversation: int | None = Field(default=None, ge=0, le=3)
    detailed_information: int | None = Field(default=None, ge=0, le=3)
    fast_moving_conversation: int | None = Field(default=None, ge=0, le=3)
    persuading_others: int | None = Field(default=None, ge=0, le=3)

    @property
    def total_score(self) -> int:
        return sum(v for v in self.model_dump().values() if v is not None)


class ResearchData(BaseModel):
    hearing_screening_completed: bool | None = None
    hearing_thresholds: list[HearingThreshold] = Field(default_factory=list)
    notes: str | None = None


class DemographicsForm(BaseModel):
    date_of_birth: date
    ethnicity: Literal["Hispanic or Latino", "Not Hispanic or Latino", "Prefer not to answer"]
    race: Literal[
        "American Indian or Alaska Native",
        "Asian",
        "Black or African American",
        "Native Hawaiian or Other Pacific Islander",
        "White",
        "Multiple races",
        "Prefer not to answer",
    ]
    sex_assigned_at_birth: Literal["Male", "Female", "Prefer not to answer"]
    is_english_primary: bool
    cognitive_impairment: YesNoUnknown
    hearing_loss: YesNoUnknown
    hearing_aids: bool
    relationship_to_partner: Literal["Spouse/Partner", "Child", "Sibling", "Friend", "Other"]
    relationship_other: str | None = None
    communication_frequency: Literal[
        "Daily", "Several Days Per Week", "Weekly", "Monthly", "Less than Monthly"
    ]
    cpib: CpibAnswers
    form_completed_by: Literal["Participant", "Research Personnel"]
    research_data: ResearchData = Field(default_factory=ResearchData)

    @model_validator(mode="after")
    def _check_conditional_fields(self) -> "DemographicsForm":
        if self.date_of_birth > date.today():
            raise ValueError("date_of_birth is in the future")
        if self.relationship_to_partner == "Other" and not (self.relationship_other or "").strip():
            raise ValueError("relationship_other is required when relationship is Other")
        if (
            self.form_completed_by == "Research Personnel"
            and self.research_data.hearing_screening_completed is None
        ):
            raise ValueError("research personnel must record hearing_screening_completed")
        return self

    @property
    def cpib_total_score(self) -> int:
        return self.cpib.total_score
