"""User-visible notifications."""

from __future__ import annotations

from pycourier.models._base import CourierBaseModel


class Alert(CourierBaseModel):
    """A message the host UI should show to the courier."""

    title: str
    message: str
