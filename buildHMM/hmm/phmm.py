import copy
import enum
import time
from dataclasses import dataclass, field

import numpy as np

from buildHMM.hmm.alphabet import Alphabet
from buildHMM.hmm.background import Background


# Transition indices of a node. Node 0 is the begin node (B->M1, B->I0, B->D1).
TMM, TMI, TMD, TIM, TII, TDM, TDD = range(7)
NTRANSITIONS = 7


class PHMMFlags(enum.IntFlag):
    """Optional annotation present on a model."""
    DESC = enum.auto()
    ACC = enum.auto()
    RF = enum.auto()
    CONS = enum.auto()
    GA = enum.auto()
    TC = enum.auto()
    NC = enum.auto()
    STATS = enum.auto()
    COMPO = enum.auto()
    CHKSUM = enum.auto()
    SINGLE = enum.auto()


@dataclass
class EvalueParameters:
    """Calibrated score distribution parameters.

    The MSV and Viterbi scores follow a Gumbel distribution with location
    ``mu`` and slope ``lambda``, the high scoring tail of the Forward
    scores an exponential with location ``tau`` and slope ``lambda``.
    """
    msv_mu: float
    msv_lambda: float
    viterbi_mu: float
    viterbi_lambda: float
    forward_tau: float
    forward_lambda: float


@dataclass
class PHMM:
    """A profile HMM with ``M`` nodes over an alphabet of size ``K``.

    Depending on the stage of construction, the emission and transition
    arrays hold weighted counts or probabilities.

    Attributes:
        M (int): Number of match states.
        alphabet (Alphabet): The emission alphabet.
        t (np.ndarray): Transitions of shape ``(M+1, 7)`` in the order
            MM MI MD IM II DM DD.
        mat (np.ndarray): Match emissions of shape ``(M+1, K)``. Row 0 is
            unused.
        ins (np.ndarray): Insert emissions of shape ``(M+1, K)``.
    """
    M: int
    alphabet: Alphabet
    t: np.ndarray
    mat: np.ndarray
    ins: np.ndarray
    nseq: int = 0
    eff_nseq: float = 0.
    name: str | None = None
    accession: str | None = None
    description: str | None = None
    rf: str | None = None
    consensus: str | None = None
    ctime: str | None = None
    checksum: int | None = None
    compo: np.ndarray | None = None
    cutoffs: dict[str, tuple[float, float]] = field(default_factory=dict)
    flags: PHMMFlags = PHMMFlags(0)
    evparam: EvalueParameters | None = None

    @classmethod
    def zeros(cls, M: int, alphabet: Alphabet) -> "PHMM":
        """Creates a model with all counts set to zero."""
        if M < 1:
            raise ValueError("A model requires at least one match state.")
        return cls(
            M=M,
            alphabet=alphabet,
            t=np.zeros((M+1, NTRANSITIONS)),
            mat=np.zeros((M+1, alphabet.K)),
            ins=np.zeros((M+1, alphabet.K)),
        )

    def copy(self) -> "PHMM":
        return copy.deepcopy(self)

    def scale(self, factor: float) -> None:
        """Multiplies all counts by ``factor``."""
        self.t *= factor
        self.mat *= factor
        self.ins *= factor

    def occupancy(self) -> tuple[np.ndarray, np.ndarray]:
        """Computes the probability that a local path (entering at M1)
        uses each match and each insert state.

        Returns:
            Match and insert occupancy, both of shape ``(M+1,)``.
        """
        t = self.t
        mocc = np.zeros(self.M+1)
        iocc = np.zeros(self.M+1)
        mocc[1] = t[0, TMI] + t[0, TMM]
        for k in range(2, self.M+1):
            mocc[k] = mocc[k-1] * (t[k-1, TMM] + t[k-1, TMI]) \
                + (1. - mocc[k-1]) * t[k-1, TDM]
        iocc[0] = t[0, TMI] / t[0, TIM]
        for k in range(1, self.M+1):
            iocc[k] = mocc[k] * t[k, TMI] / t[k, TIM]
        return mocc, iocc

    def set_composition(self) -> None:
        """Sets the mean residue composition of the model."""
        mocc, iocc = self.occupancy()
        compo = mocc[1:] @ self.mat[1:] + iocc @ self.ins
        self.compo = compo / compo.sum()
        self.flags |= PHMMFlags.COMPO

    def set_consensus(self) -> None:
        """Sets the consensus line. Residues with a probability above a
        threshold are upper case, all others lower case."""
        threshold = 0.9 if self.alphabet.is_nucleic else 0.5
        best = np.argmax(self.mat[1:], axis=1)
        probs = self.mat[np.arange(1, self.M+1), best]
        self.consensus = "".join(
            self.alphabet.symbols[b] if p >= threshold
            else self.alphabet.symbols[b].lower()
            for b, p in zip(best, probs)
        )
        self.flags |= PHMMFlags.CONS

    def set_ctime(self) -> None:
        self.ctime = time.asctime()

    def mean_match_relative_entropy(self, bg: Background) -> float:
        """Mean relative entropy (bits) of the match emissions with respect
        to the background frequencies."""
        p = self.mat[1:]
        with np.errstate(divide="ignore", invalid="ignore"):
            terms = np.where(p > 0, p * np.log2(p / bg.f[np.newaxis]), 0.)
        return float(np.sum(terms) / self.M)

    def validate(self, tol: float = 1e-4) -> None:
        """Checks that all distributions of a parameterized model sum to 1.

        Raises:
            ValueError: If a distribution is not normalized.
        """
        checks = {
            "match emissions": self.mat[1:].sum(axis=1),
            "insert emissions": self.ins.sum(axis=1),
            "match transitions": self.t[:, TMM:TMD+1].sum(axis=1),
            "insert transitions": self.t[:, TIM:TII+1].sum(axis=1),
            "delete transitions": self.t[:, TDM:TDD+1].sum(axis=1),
        }
        for name, sums in checks.items():
            if not np.allclose(sums, 1., atol=tol):
                raise ValueError(f"The {name} of the model are not normalized.")
