"""Meeting room reference data."""

from pydantic import Field

from src.models.base import BaseEntity


class MeetingRoom(BaseEntity):
    """A bookable room for internal meetings."""

    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=20, description="Short code, e.g. CR-3A")
    capacity: int = Field(gt=0, description="Maximum number of attendees")
    floor_number: int = Field(description="Floor the room is on")
    building: str | None = Field(default=None, max_length=100)
    equipment: set[str] = Field(
        default_factory=set,
        description="Capabilities such as projector or whiteboard",
    )
    is_active: bool = Field(default=True)

    @property
    def display_location(self) -> str:
        """Location string stored on meetings booked in this room."""
        return f"{self.name} - Floor {self.floor_number}"
