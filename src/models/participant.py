"""Participant model linking a meeting to a principal or a visitor."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from src.models.base import BaseEntity


class Participant(BaseEntity):
    """A person attending a meeting.

    Participants are either:
    - Principals (employees, hosts) referenced by principal_id
    - External visitors identified by name and contact details
    """

    meeting_id: UUID | None = Field(
        default=None,
        description="Meeting this participant belongs to (set on persistence)",
    )
    principal_id: UUID | None = Field(
        default=None,
        description="Internal principal, if the participant is not a visitor",
    )
    visitor_name: str | None = Field(
        default=None,
        max_length=200,
        description="External visitor name",
    )
    visitor_email: str | None = Field(default=None, description="Visitor email")
    visitor_phone: str | None = Field(default=None, description="Visitor phone")
    visitor_company: str | None = Field(default=None, description="Visitor company")
    is_primary: bool = Field(
        default=False,
        description="The person the meeting is fundamentally for",
    )
    is_organizer: bool = Field(default=False, description="Meeting organizer flag")
    check_in_time: datetime | None = Field(default=None)
    check_out_time: datetime | None = Field(default=None)

    @field_validator("visitor_name")
    @classmethod
    def visitor_name_not_blank(cls, v: str | None) -> str | None:
        """Reject whitespace-only visitor names."""
        if v is not None and not v.strip():
            msg = "Visitor name cannot be empty or whitespace"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def principal_or_visitor(self) -> "Participant":
        """A participant is exactly one of principal or visitor."""
        if (self.principal_id is None) == (self.visitor_name is None):
            msg = "Participant needs either principal_id or visitor_name"
            raise ValueError(msg)
        return self

    @property
    def is_visitor(self) -> bool:
        """Check if this participant is an external visitor."""
        return self.principal_id is None
