"""Persisted user options."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

MAJOR_REVISION = 0
MINOR_REVISION = 3


class Options(BaseModel):
    """Versioned options record shared by the interactive front ends.

    Instances are frozen, so comparing against the last saved record tells
    whether anything changed.
    """

    model_config = ConfigDict(frozen=True)

    major_revision: int = MAJOR_REVISION
    minor_revision: int = Field(default=MINOR_REVISION, ge=0)
    fahrenheit: bool = True
    output: Optional[str] = Field(default=None, description="HTML chart output filename.")

    def toggled_units(self) -> "Options":
        return self.model_copy(update={"fahrenheit": not self.fahrenheit})
