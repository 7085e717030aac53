"""ESI response models for the character location and ship endpoints."""

from pydantic import BaseModel, Field


class Location(BaseModel):
    """Represents a character's current location from ESI."""

    solar_system_id: int = Field(
        ..., description="Solar system ID where character is located"
    )
    station_id: int | None = Field(None, description="Station ID if docked")
    structure_id: int | None = Field(
        None, description="Structure ID if docked at player structure"
    )


class Ship(BaseModel):
    """Represents the ship a character is currently flying."""

    ship_name: str = Field(
        ..., description="Player-given ship name, sometimes wrapped as u'...'"
    )
    ship_type_id: int = Field(..., description="Type ID of the ship class")
    ship_item_id: int = Field(..., description="Item ID of this ship instance")
