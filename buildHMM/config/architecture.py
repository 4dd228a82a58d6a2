from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class ArchitectureStrategy(str, Enum):
    """How consensus (match) columns are assigned."""

    FAST = "fast"
    """Columns with a residue fraction of at least ``symfrac``."""

    HAND = "hand"
    """Columns marked in the reference annotation (RF) line."""


class ArchitectureConfig(BaseModel):
    """Model construction parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: ArchitectureStrategy = ArchitectureStrategy.FAST
    """Strategy used to infer the model architecture."""

    symfrac: float = 0.5
    """With the fast strategy, a column is a consensus column if the
    weighted fraction of residues (as opposed to gaps) is at least this
    value."""

    @field_validator("symfrac")
    def validate_fraction(cls, v: float, info) -> float:
        if not 0 <= v <= 1:
            raise ValueError(f"{info.field_name} must be in the range [0, 1].")
        return v
