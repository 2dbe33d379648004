"""Weight measurement model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Measurement:
    """A weight value together with its unit, e.g. ``12.34 g``."""

    value: float
    unit: str

    def __post_init__(self) -> None:
        if not self.unit.isalpha():
            raise ValueError(f"Unit must be alphabetic, got {self.unit!r}")

    def __str__(self) -> str:
        return f"{self.value} {self.unit}"

    def to_dict(self) -> dict:
        return {"value": self.value, "unit": self.unit}
