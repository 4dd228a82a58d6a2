from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class EffectiveNumberStrategy(str, Enum):
    """Strategies for the effective sequence number."""

    NONE = "none"
    SET = "set"
    CLUSTER = "cluster"
    ENTROPY = "entropy"


class EffectiveNumberConfig(BaseModel):
    """Effective sequence number parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy: EffectiveNumberStrategy = EffectiveNumberStrategy.ENTROPY
    """``none`` uses the number of sequences, ``set`` a fixed value
    (``eset``), ``cluster`` the number of single-linkage clusters at
    ``eid`` identity and ``entropy`` the value that reaches a target mean
    relative entropy per match state."""

    eset: float | None = None
    """Effective sequence number used with the ``set`` strategy."""

    re_target: float = -1.0
    """Target mean relative entropy per match state in bits. A negative
    value means that a length dependent default is computed."""

    eX: float = 6.0
    """Offset (in bits) of the length dependent default target."""

    eid: float = 0.62
    """Identity threshold of the single-linkage clusters."""

    @field_validator("eid")
    def validate_fraction(cls, v: float, info) -> float:
        if not 0 <= v <= 1:
            raise ValueError(f"{info.field_name} must be in the range [0, 1].")
        return v

    @model_validator(mode="after")
    def validate_eset(self) -> "EffectiveNumberConfig":
        if self.strategy == EffectiveNumberStrategy.SET:
            if self.eset is None or self.eset < 0:
                raise ValueError(
                    "eset must be set to a value >= 0 when the effective "
                    "sequence number strategy is 'set'."
                )
        return self
