"""Base model shared by pycourier value types.

Every model is frozen: values crossing a module seam (commands, events,
stops) are never mutated in place, a changed value is a new instance.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CourierBaseModel(BaseModel):
    """Frozen base for pycourier models.

    Unknown keys are ignored so provider payloads and bridge messages can
    carry extra fields without breaking validation.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
