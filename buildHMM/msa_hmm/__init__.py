from .SequenceDataset import AlignedDataset, SequenceDataset
from .ScoreSystem import ScoreSystem
from .Calibration import RandomSource
from .build import Builder, BuildRequest, BuildResult
