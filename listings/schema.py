"""Pydantic model for catalog listings with SMS-friendly text rendering."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Listing(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    city: str
    price: int = Field(gt=0)  # monthly rent
    distance_to_campus_minutes: int = Field(ge=0)
    bedrooms: int = Field(ge=0)
    description: str = ""
    url: Optional[str] = None

    def to_sms_line(self, index: int) -> str:
        """Render one numbered line for the results text message."""
        line = (
            f"{index}) {self.title} - {self.city} - {self.bedrooms}BR - "
            f"${self.price}/mo - {self.distance_to_campus_minutes} mins to campus. "
            f"{self.description}"
        )
        if self.url:
            line += f" {self.url}"
        return line
