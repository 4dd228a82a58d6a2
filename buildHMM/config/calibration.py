from pydantic import BaseModel, ConfigDict, field_validator


class CalibrationConfig(BaseModel):
    """E-value calibration parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    EvL: int = 100
    """Length of the random sequences used to fit the MSV and Viterbi
    Gumbel location."""

    EvN: int = 200
    """Number of random sequences used to fit the MSV and Viterbi Gumbel
    location."""

    EfL: int = 100
    """Length of the random sequences used to fit the Forward tail."""

    EfN: int = 200
    """Number of random sequences used to fit the Forward tail."""

    Eft: float = 0.04
    """Tail mass used to fit the Forward exponential tail."""

    @field_validator("EvL", "EvN", "EfL", "EfN")
    def validate_positive(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be greater than 0.")
        return v

    @field_validator("Eft")
    def validate_tail_mass(cls, v: float) -> float:
        if not 0 < v < 1:
            raise ValueError("Eft must be in the range (0, 1).")
        return v
