from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class WeightingStrategy(str, Enum):
    """Relative sequence weighting algorithms."""

    NONE = "none"
    GIVEN = "given"
    PB = "pb"
    GSC = "gsc"
    BLOSUM = "blosum"


class WeightingConfig(BaseModel):
    """Relative weighting parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: WeightingStrategy = WeightingStrategy.GSC
    """Relative weighting algorithm. ``none`` sets all weights to 1,
    ``given`` keeps the weights found in the alignment file, ``pb`` uses
    the position-based (Henikoff) weights, ``gsc`` the
    Gerstein/Sonnhammer/Chothia tree weights and ``blosum`` the BLOSUM
    cluster weights."""

    pbswitch: int = 1000
    """Alignments with at least this many sequences are always weighted
    with the position-based algorithm (unless the strategy is ``none`` or
    ``given``), since the other algorithms scale quadratically with the
    number of sequences. ``-1`` disables the switch."""

    wid: float = 0.62
    """Identity threshold for the BLOSUM weighting clusters."""

    @field_validator("wid")
    def validate_fraction(cls, v: float, info) -> float:
        if not 0 <= v <= 1:
            raise ValueError(f"{info.field_name} must be in the range [0, 1].")
        return v

    @field_validator("pbswitch")
    def validate_pbswitch(cls, v: int) -> int:
        if v != -1 and v < 1:
            raise ValueError("pbswitch must be -1 or a positive integer.")
        return v
