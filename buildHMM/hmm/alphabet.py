import enum
from typing import Mapping

import numpy as np


class AlphabetType(enum.Enum):
    AMINO = "amino"
    DNA = "dna"
    RNA = "rna"
    OTHER = "other"


# Canonical amino acids in the order used throughout the package.
AMINO_SYMBOLS = "ARNDCQEGHILKMFPSTWYV"

AMINO_DEGENERATE = {
    "B": "ND",
    "Z": "QE",
    "J": "IL",
    "U": "C",
    "O": "K",
    "X": AMINO_SYMBOLS,
}

NUCLEIC_DEGENERATE = {
    "R": "AG",
    "Y": "CT",
    "M": "AC",
    "K": "GT",
    "S": "CG",
    "W": "AT",
    "H": "ACT",
    "B": "CGT",
    "V": "ACG",
    "D": "AGT",
    "N": "ACGT",
}

GAP_SYMBOLS = "-._~"


class Alphabet:
    """A biological sequence alphabet.

    Digital codes ``0..K-1`` are the canonical residues, followed by the
    degenerate symbols and finally a single gap code. Every code maps to a
    row of the degeneracy matrix that lists the canonical residues it
    stands for (the gap row is all zeros).
    """

    def __init__(
        self,
        symbols: str,
        degenerate: Mapping[str, str] | None = None,
        type: AlphabetType = AlphabetType.OTHER,
    ) -> None:
        symbols = symbols.upper()
        if len(set(symbols)) != len(symbols) or len(symbols) == 0:
            raise ValueError("Alphabet symbols must be unique and non-empty.")
        degenerate = dict(degenerate or {})
        for sym, members in degenerate.items():
            if sym in symbols or any(m not in symbols for m in members):
                raise ValueError(f"Invalid degenerate symbol {sym}.")
        self.type = type
        self.symbols = symbols
        self.degenerate_symbols = "".join(degenerate.keys())
        self.K = len(symbols)
        self.Kp = self.K + len(degenerate) + 1
        self.gap_code = self.Kp - 1
        self.all_symbols = self.symbols + self.degenerate_symbols + "-"

        self.degeneracy = np.zeros((self.Kp, self.K))
        self.degeneracy[:self.K] = np.eye(self.K)
        for i, members in enumerate(degenerate.values()):
            for m in members:
                self.degeneracy[self.K + i, symbols.index(m)] = 1

        self._code = np.full(256, -1, dtype=np.int16)
        for i, c in enumerate(self.all_symbols[:-1]):
            self._code[ord(c)] = i
            self._code[ord(c.lower())] = i
        for c in GAP_SYMBOLS:
            self._code[ord(c)] = self.gap_code

    @classmethod
    def amino(cls) -> "Alphabet":
        return cls(AMINO_SYMBOLS, AMINO_DEGENERATE, AlphabetType.AMINO)

    @classmethod
    def dna(cls) -> "Alphabet":
        return cls("ACGT", NUCLEIC_DEGENERATE, AlphabetType.DNA)

    @classmethod
    def rna(cls) -> "Alphabet":
        degenerate = {
            k: v.replace("T", "U") for k, v in NUCLEIC_DEGENERATE.items()
        }
        return cls("ACGU", degenerate, AlphabetType.RNA)

    @classmethod
    def from_name(cls, name: str) -> "Alphabet":
        """Returns one of the standard alphabets by name."""
        constructors = {"amino": cls.amino, "dna": cls.dna, "rna": cls.rna}
        if name not in constructors:
            raise ValueError(f"Unknown alphabet {name}.")
        return constructors[name]()

    @property
    def is_nucleic(self) -> bool:
        return self.type in (AlphabetType.DNA, AlphabetType.RNA)

    def encode(self, seq: str) -> np.ndarray:
        """Converts a text sequence into digital codes.

        Raises:
            ValueError: If the sequence contains a symbol that is not part
                of the alphabet.
        """
        raw = np.frombuffer(seq.encode("ascii"), dtype=np.uint8)
        codes = self._code[raw]
        if np.any(codes < 0):
            bad = sorted({seq[i] for i in np.flatnonzero(codes < 0)})
            raise ValueError(
                f"Found unknown character(s) {bad} in sequence. "
                f"Allowed symbols are: {self.all_symbols}"
            )
        return codes.astype(np.uint8)

    def decode(self, codes: np.ndarray) -> str:
        return "".join(self.all_symbols[c] for c in codes)

    def is_canonical(self, codes: np.ndarray) -> np.ndarray:
        return np.asarray(codes) < self.K

    def is_residue(self, codes: np.ndarray) -> np.ndarray:
        return np.asarray(codes) != self.gap_code

    def __eq__(self, other) -> bool:
        if not isinstance(other, Alphabet):
            return NotImplemented
        return (
            self.type == other.type
            and self.all_symbols == other.all_symbols
            and np.array_equal(self.degeneracy, other.degeneracy)
        )

    def __hash__(self) -> int:
        return hash((self.type, self.all_symbols))

    def __repr__(self) -> str:
        return f"Alphabet({self.type.value}, {self.symbols})"
