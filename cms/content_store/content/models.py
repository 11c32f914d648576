"""
Input models for content repositories.

Collaborators build these from request data; validation failures surface
as pydantic.ValidationError before anything touches the store.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field

from pydantic import BaseModel, Field, model_validator

from ..lifecycle import EventStatus


class TickerItemInput(BaseModel):
    """News ticker item."""

    text: str = Field(..., min_length=1)
    link: str = Field(default="")
    active: bool = Field(default=True)
    sort_order: int = Field(default=0)


class EventInput(BaseModel):
    """Event fields as submitted by an admin.

    status is optional; when omitted on update the stored status is kept.
    """

    name: str = Field(..., min_length=1)
    date: dt.date
    end_date: dt.date | None = None
    venue: str = Field(default="")
    description: str = Field(default="")
    cover_image: str = Field(default="", description="Path of an already stored image")
    registration_open: bool = Field(default=False)
    is_paid: bool = Field(default=False)
    price: float = Field(default=0, ge=0)
    registration_link: str = Field(default="")
    status: EventStatus | None = None

    @model_validator(mode="after")
    def _end_not_before_start(self) -> EventInput:
        if self.end_date is not None and self.end_date < self.date:
            raise ValueError("end_date must not be before date")
        return self


class PopupInput(BaseModel):
    """Site popup."""

    event_name: str = Field(..., min_length=1)
    image: str = Field(default="", description="Path of an already stored image")
    description: str = Field(default="")
    layout: str = Field(default="center")
    button_text: str = Field(default="Learn More")
    button_link: str = Field(default="")
    active: bool = Field(default=False)


@dataclass
class EventDeletion:
    """Files left behind by a deleted event, for the caller to remove.

    Attributes:
        event_id: Deleted event
        cover_image: Cover image path ("" if none)
        gallery_paths: Image paths of the deleted gallery rows
    """

    event_id: int
    cover_image: str
    gallery_paths: list[str] = field(default_factory=list)

    @property
    def all_paths(self) -> list[str]:
        paths = [self.cover_image] if self.cover_image else []
        return paths + self.gallery_paths
