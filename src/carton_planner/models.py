from __future__ import annotations

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BufferUnit(str, Enum):
    """Unit a buffer magnitude is expressed in."""

    INCH = "inch"
    CM = "cm"


class InnerMaterial(str, Enum):
    """Packaging used for the inner carton."""

    BOX = "Box"
    POLY_BAG = "Poly Bag"


_UNIT_ALIASES = {
    "inch": BufferUnit.INCH,
    "inches": BufferUnit.INCH,
    "in": BufferUnit.INCH,
    "cm": BufferUnit.CM,
    "centimetre": BufferUnit.CM,
    "centimeter": BufferUnit.CM,
    "centimetres": BufferUnit.CM,
    "centimeters": BufferUnit.CM,
}

_MATERIAL_ALIASES = {
    "box": InnerMaterial.BOX,
    "poly bag": InnerMaterial.POLY_BAG,
    "polybag": InnerMaterial.POLY_BAG,
    "poly_bag": InnerMaterial.POLY_BAG,
}


class BoxDimensions(BaseModel):
    """Outer dimensions of a unit, inner carton or master carton (inches)."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(gt=0, description="Width in inches")
    depth: float = Field(gt=0, description="Depth in inches")
    height: float = Field(gt=0, description="Height in inches")


class ArrangementResult(BaseModel):
    """Grid arrangement chosen by the solver and the outer box it produces."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(gt=0, description="Outer width in inches")
    depth: float = Field(gt=0, description="Outer depth in inches")
    height: float = Field(gt=0, description="Outer height in inches")
    volume_cubic_feet: float = Field(gt=0, description="width * depth * height / 1728")
    counts: Tuple[int, int, int] = Field(description="Units along (width, depth, height)")

    @property
    def dimensions(self) -> BoxDimensions:
        return BoxDimensions(width=self.width, depth=self.depth, height=self.height)


class CalculationOptions(BaseModel):
    """Caller-supplied settings for one calculation run."""

    model_config = ConfigDict(frozen=True)

    force_all: bool = Field(default=False, description="Process every visible record, ignoring the selection")
    inner_buffer: float = Field(default=0.0, ge=0, description="Inner carton clearance per axis")
    inner_buffer_unit: BufferUnit = Field(default=BufferUnit.INCH)
    master_buffer: float = Field(default=0.0, ge=0, description="Master carton clearance per axis")
    master_buffer_unit: BufferUnit = Field(default=BufferUnit.INCH)
    inner_material: InnerMaterial = Field(default=InnerMaterial.BOX)

    @field_validator("inner_buffer_unit", "master_buffer_unit", mode="before")
    @classmethod
    def _normalise_unit(cls, value):
        if isinstance(value, str):
            return _UNIT_ALIASES.get(value.strip().lower(), value)
        return value

    @field_validator("inner_material", mode="before")
    @classmethod
    def _normalise_material(cls, value):
        if isinstance(value, str):
            return _MATERIAL_ALIASES.get(value.strip().lower(), value)
        return value


class RunSummary(BaseModel):
    """Aggregate counters for one calculation run."""

    total: int = Field(default=0, ge=0, description="Records requested")
    processed: int = Field(default=0, ge=0, description="Records that reached a terminal branch")
    failed: int = Field(default=0, ge=0, description="Records whose processing raised")
