from pydantic import BaseModel, ConfigDict, field_validator

from .architecture import ArchitectureConfig
from .calibration import CalibrationConfig
from .effective_number import EffectiveNumberConfig
from .input_output import InputOutputConfig
from .score_system import ScoreSystemConfig
from .weighting import WeightingConfig


class Configuration(BaseModel):
    """A configuration for buildHMM controlling every policy choice made
    while a profile HMM is constructed and calibrated. See the nested
    configuration groups for details on each set of parameters.

    Configurations are immutable. Use ``model_copy(update=...)`` to derive
    a modified configuration.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Nested configuration groups
    input_output: InputOutputConfig = InputOutputConfig()
    """Input/output and general control parameters."""

    architecture: ArchitectureConfig = ArchitectureConfig()
    """Model construction parameters."""

    weighting: WeightingConfig = WeightingConfig()
    """Relative weighting parameters."""

    effective_number: EffectiveNumberConfig = EffectiveNumberConfig()
    """Effective sequence number parameters."""

    calibration: CalibrationConfig = CalibrationConfig()
    """E-value calibration parameters."""

    score_system: ScoreSystemConfig = ScoreSystemConfig()
    """Scoring system used for single sequence queries."""

    seed: int = 0
    """Random number seed for the calibration. 0 means that an arbitrary
    seed is chosen and the results are not reproducible. Any other value
    reseeds the generator before each calibration, which makes the results
    reproducible."""

    @field_validator("seed")
    @classmethod
    def validate_seed(cls, v: int) -> int:
        if v < 0:
            raise ValueError("seed must be non-negative.")
        return v
