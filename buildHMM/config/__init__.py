"""Configuration modules for buildHMM."""

from .architecture import ArchitectureConfig, ArchitectureStrategy
from .weighting import WeightingConfig, WeightingStrategy
from .effective_number import EffectiveNumberConfig, EffectiveNumberStrategy
from .calibration import CalibrationConfig
from .score_system import ScoreSystemConfig
from .input_output import InputOutputConfig
from .config import Configuration

__all__ = [
    "ArchitectureConfig",
    "ArchitectureStrategy",
    "WeightingConfig",
    "WeightingStrategy",
    "EffectiveNumberConfig",
    "EffectiveNumberStrategy",
    "CalibrationConfig",
    "ScoreSystemConfig",
    "InputOutputConfig",
    "Configuration",
]
