"""Round Schemas: Pydantic models with field-level validation for round endpoints.

Invariants:
    - Request field names match the existing client contract (camelCase aliases)
    - Arrow contents are NOT validated here; core.scoring_rules owns zone/range rules
    - ParticipantAdd requires exactly one of email (member) or name (non-member)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from quiver.core.domain_types import ScoringSystem


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Weather(_CamelModel):
    """Free-form conditions recorded with a round."""
    conditions: str | None = Field(None, max_length=200)
    temperature: float | None = None
    wind_speed: float | None = Field(None, alias="windSpeed")


class ParticipantRef(BaseModel):
    user: UUID


class RoundCreate(_CamelModel):
    """Round creation. Scoring system may be omitted when a course is given."""
    name: str = Field(min_length=1, max_length=200)
    scoring_system: ScoringSystem | None = Field(None, alias="scoringSystem")
    course: UUID | None = None
    club: UUID | None = None
    event: UUID | None = None
    date: datetime | None = None
    participants: list[ParticipantRef] = Field(default_factory=list)
    non_member_participants: list[str] = Field(
        default_factory=list, alias="nonMemberParticipants",
    )
    notes: str | None = Field(None, max_length=5000)
    weather: Weather | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v

    @model_validator(mode="after")
    def require_system_or_course(self):
        if self.scoring_system is None and self.course is None:
            raise ValueError("scoringSystem is required when no course is given")
        return self


class RoundUpdate(_CamelModel):
    """Partial update. Unset fields are left untouched."""
    name: str | None = Field(None, min_length=1, max_length=200)
    scoring_system: ScoringSystem | None = Field(None, alias="scoringSystem")
    date: datetime | None = None
    notes: str | None = Field(None, max_length=5000)
    weather: Weather | None = None
    scorer: UUID | None = None

    def to_changes(self) -> dict:
        """snake_case change set for Round.apply_update()."""
        data = self.model_dump(exclude_unset=True)
        changes = {
            key: data[key]
            for key in ("name", "scoring_system", "date", "notes")
            if key in data
        }
        if "weather" in data:
            changes["weather"] = (
                self.weather.model_dump(by_alias=True) if self.weather else None
            )
        if "scorer" in data:
            changes["scorer_id"] = data["scorer"]
        return changes


class ParticipantAdd(BaseModel):
    """Add a registered user by email, or a non-member by name."""
    email: str | None = Field(None, max_length=320)
    name: str | None = Field(None, max_length=200)

    @model_validator(mode="after")
    def require_email_or_name(self):
        if not self.email and not (self.name and self.name.strip()):
            raise ValueError(
                "Provide either an email for registered users "
                "or a name for non-member participants",
            )
        if self.email and self.name:
            raise ValueError("Provide email or name, not both")
        return self


class ScoreSubmit(_CamelModel):
    """One target's arrows for one participant."""
    participant_id: UUID = Field(alias="participantId")
    target_number: int = Field(ge=1, alias="targetNumber")
    arrows: list[dict] = Field(min_length=1)
    is_non_member: bool = Field(False, alias="isNonMember")
