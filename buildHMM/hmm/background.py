import math
from dataclasses import dataclass, field

import numpy as np

from buildHMM.hmm.alphabet import Alphabet, AlphabetType


# Amino acid background frequencies in the order of AMINO_SYMBOLS.
AMINO_BACKGROUND = np.array([
    8.34333437e-02, 5.19266823e-02, 4.93510863e-02, 4.65871696e-02,
    2.24936164e-02, 5.06824822e-02, 6.29644485e-02, 4.72142352e-02,
    3.34919201e-02, 5.26777168e-02, 7.33173001e-02, 6.35075307e-02,
    3.52617111e-02, 3.60992714e-02, 3.46065678e-02, 7.21237089e-02,
    6.52571875e-02, 1.77631364e-02, 3.39407154e-02, 6.65086610e-02,
])


@dataclass
class Background:
    """Null model: i.i.d. residues with frequencies ``f`` and a geometric
    length distribution with continuation probability ``p1``.
    """

    alphabet: Alphabet
    f: np.ndarray
    p1: float = 350. / 351.
    _length: int = field(default=350, repr=False)

    @classmethod
    def for_alphabet(cls, alphabet: Alphabet) -> "Background":
        if alphabet.type == AlphabetType.AMINO:
            f = AMINO_BACKGROUND / AMINO_BACKGROUND.sum()
        else:
            f = np.full(alphabet.K, 1. / alphabet.K)
        return cls(alphabet, f)

    def set_length(self, L: int) -> None:
        """Sets the mean of the null length distribution to ``L``."""
        self._length = L
        self.p1 = L / (L + 1.)

    def null_score(self, L: int) -> float:
        """Log probability (nats) of a length ``L`` sequence under the
        length model of the null model."""
        return L * math.log(self.p1) + math.log(1. - self.p1)

    def copy(self) -> "Background":
        return Background(self.alphabet, self.f.copy(), self.p1, self._length)
