import math

import numpy as np

from buildHMM.hmm.background import Background
from buildHMM.hmm.phmm import PHMM, TDD, TDM, TII, TIM, TMD, TMI, TMM


# Log probabilities of delete-delete transitions are floored at this value
# so that their prefix sums stay finite.
DD_FLOOR = -1000.


def _log(p: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore"):
        return np.log(p)


class Profile:
    """ A log-odds search profile in local multihit mode.

    Scores are in nats. All arrays are indexed by node ``0..M`` and node 0
    holds ``-inf`` for non-existing states.

    Attributes:
        msc: Match scores of shape ``(M+1, K)``.
        isc: Insert scores of shape ``(M+1, K)``. Inserts score as
            background, i.e. 0.
        tBM: Local entry scores into each match state.
    """

    def __init__(self, M: int, K: int) -> None:
        self.M = M
        self.K = K
        self.L = 0
        self.msc = np.full((M+1, K), -np.inf)
        self.isc = np.zeros((M+1, K))
        self.tMM = np.full(M+1, -np.inf)
        self.tMI = np.full(M+1, -np.inf)
        self.tMD = np.full(M+1, -np.inf)
        self.tIM = np.full(M+1, -np.inf)
        self.tII = np.full(M+1, -np.inf)
        self.tDM = np.full(M+1, -np.inf)
        self.tDD = np.full(M+1, DD_FLOOR)
        self.tBM = np.full(M+1, -np.inf)
        self.e_c = self.e_j = math.log(0.5)
        self.set_length(350)

    @classmethod
    def configure(cls, hmm: PHMM, bg: Background, L: int) -> "Profile":
        """ Configures a local multihit profile from a parameterized model.

        Args:
            hmm: A model with probability parameters.
            bg: The null model.
            L: Expected target sequence length.
        """
        gm = cls(hmm.M, hmm.alphabet.K)
        gm.msc[1:] = _log(hmm.mat[1:] / bg.f[np.newaxis])
        t = hmm.t
        gm.tMM[:] = _log(t[:, TMM])
        gm.tMI[:] = _log(t[:, TMI])
        gm.tMD[:] = _log(t[:, TMD])
        gm.tIM[:] = _log(t[:, TIM])
        gm.tII[:] = _log(t[:, TII])
        gm.tDM[:] = _log(t[:, TDM])
        gm.tDD[:] = np.maximum(_log(t[:, TDD]), DD_FLOOR)
        # local entry is weighted by match occupancy
        mocc, _ = hmm.occupancy()
        k = np.arange(1, hmm.M+1)
        Z = np.sum(mocc[1:] * (hmm.M - k + 1))
        gm.tBM[1:] = _log(mocc[1:] / Z)
        gm.set_length(L)
        return gm

    def set_length(self, L: int) -> None:
        """Sets the target length model of the N, C and J states."""
        self.L = L
        self.n_loop = self.c_loop = self.j_loop = math.log(L / (L + 3.))
        self.n_move = self.c_move = self.j_move = math.log(3. / (L + 3.))

    def match_scores(self, x: np.ndarray) -> np.ndarray:
        """Match scores of residues ``x`` with shape ``(len(x), M+1)``."""
        return self.msc[:, x].T

    def insert_scores(self, x: np.ndarray) -> np.ndarray:
        return self.isc[:, x].T

    def msv_scores(self, x: np.ndarray) -> np.ndarray:
        return self.match_scores(x)


class OptimizedProfile:
    """ A residue-major rendition of a profile.

    Match scores are stored in single precision and, for the MSV filter,
    quantized to unsigned bytes in units of 1/3 bit.
    """

    def __init__(self, gm: Profile) -> None:
        self.M = gm.M
        self.K = gm.K
        self.rsc = np.ascontiguousarray(gm.msc.T, dtype=np.float32)
        self.risc = np.ascontiguousarray(gm.isc.T, dtype=np.float32)
        for name in ("tMM", "tMI", "tMD", "tIM", "tII", "tDM", "tDD", "tBM"):
            setattr(self, name, getattr(gm, name).copy())
        self.e_c = gm.e_c
        self.e_j = gm.e_j

        self.scale = 3. / math.log(2.)
        finite = gm.msc[1:][np.isfinite(gm.msc[1:])]
        self.bias = self.scale * float(finite.max()) if finite.size else 0.
        with np.errstate(invalid="ignore"):
            q = np.round(self.bias - self.scale * self.rsc)
        q = np.nan_to_num(q, nan=255., posinf=255.)
        q[:, 0] = 255.
        self.rbv = np.clip(q, 0, 255).astype(np.uint8)
        # uniform local entry of the MSV filter
        self.tbm = math.log(2. / (self.M * (self.M + 1.)))
        self.set_length(gm.L)

    @classmethod
    def from_profile(cls, gm: Profile) -> "OptimizedProfile":
        return cls(gm)

    set_length = Profile.set_length

    def match_scores(self, x: np.ndarray) -> np.ndarray:
        return self.rsc[x]

    def insert_scores(self, x: np.ndarray) -> np.ndarray:
        return self.risc[x]

    def msv_scores(self, x: np.ndarray) -> np.ndarray:
        """Dequantized byte scores of residues ``x``."""
        sc = (self.bias - self.rbv[x].astype(np.float64)) / self.scale
        sc[:, 0] = -np.inf
        return sc
