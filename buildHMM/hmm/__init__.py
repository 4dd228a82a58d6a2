from .alphabet import Alphabet, AlphabetType
from .background import Background
from .phmm import PHMM, EvalueParameters, PHMMFlags
from .prior import DirichletMixture, PHMMPrior
from .profile import OptimizedProfile, Profile
from .trace import StateType, Trace
