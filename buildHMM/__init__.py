from ._version import __version__
from .config import Configuration
from .errors import (AllocationError, BuildError, ConfigurationError,
                     ErrorKind, FormatError, MatrixNotFoundError,
                     NoResultError, NumericalError)
from .hmm import Alphabet, AlphabetType, Background, PHMM
from .msa_hmm import (AlignedDataset, Builder, BuildRequest, BuildResult,
                      ScoreSystem, SequenceDataset)
