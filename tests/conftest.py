import pytest

from buildHMM.hmm import Alphabet, PHMM, PHMMPrior
from buildHMM.hmm.phmm import TDD, TDM, TII, TIM, TMD, TMI, TMM


def _make_model(M : int = 3) -> PHMM:
    alphabet = Alphabet.dna()
    hmm = PHMM.zeros(M, alphabet)
    hmm.t[:, TMM] = 10.
    hmm.t[:, TMI] = 1.
    hmm.t[:, TMD] = 1.
    hmm.t[:, TIM] = 2.
    hmm.t[:, TII] = 1.
    hmm.t[:, TDM] = 2.
    hmm.t[:, TDD] = 1.
    for k in range(1, M+1):
        hmm.mat[k, (k-1) % 4] = 10.
    PHMMPrior.laplace(alphabet).estimate(hmm)
    return hmm


@pytest.fixture
def make_model():
    """Factory of small parameterized DNA models. Match state k prefers
    residue (k-1) mod 4."""
    return _make_model
