import logging
import os
import sys
from dataclasses import dataclass

import numpy as np
from Bio.Align import substitution_matrices
from scipy.optimize import brentq

from buildHMM.errors import FormatError, MatrixNotFoundError
from buildHMM.hmm.alphabet import Alphabet

logger = logging.getLogger(__name__)

MAX_BRACKET_ITERATIONS = 100


@dataclass
class ScoreSystem:
    """ A substitution score system for single sequence queries.

    Attributes:
        alphabet: The alphabet the matrix is defined over.
        S: Symmetric score matrix of shape ``(K, K)``.
        Q: Conditional probabilities ``Q[a, b] = P(b | a)``.
        f: Background frequencies implied by the matrix.
        lam: Scale of the matrix, ``S = log(P/(f f)) / lam``.
        popen: Gap open probability.
        pextend: Gap extend probability.
        name: Name or path of the matrix.
    """
    alphabet: Alphabet
    S: np.ndarray
    Q: np.ndarray
    f: np.ndarray
    lam: float
    popen: float
    pextend: float
    name: str

    @classmethod
    def load(
        cls,
        alphabet : Alphabet,
        mxfile : str | None = None,
        env : str | None = None,
        popen : float = 0.02,
        pextend : float = 0.4,
    ) -> "ScoreSystem":
        """
        Reads a score matrix and converts it to conditional probabilities.

        Args:
            alphabet: Alphabet of the model.
            mxfile: Matrix file in NCBI format. ``None`` selects BLOSUM62
                for amino acids and NUC.4.4 for nucleotides. ``-`` reads
                from standard input.
            env: Environment variable with a colon-separated list of
                directories that are searched for ``mxfile``.
            popen: Gap open probability.
            pextend: Gap extend probability.

        Raises:
            MatrixNotFoundError: If the file can not be found or opened.
            FormatError: If the matrix can not be read, is not symmetric
                or has no probabilistic basis.
        """
        if mxfile is None:
            name = "NUC.4.4" if alphabet.is_nucleic else "BLOSUM62"
            matrix = substitution_matrices.load(name)
        else:
            name = mxfile
            matrix = _read_matrix(mxfile, env)
        S = _restrict_to_alphabet(matrix, alphabet, name)
        if not np.allclose(S, S.T):
            raise FormatError("Matrix isn't symmetric")
        try:
            Q, f, lam = probify(S)
        except (ValueError, RuntimeError, np.linalg.LinAlgError) as err:
            raise FormatError(
                "Yu/Altschul method failed to backcalculate probabilistic "
                "basis of score matrix"
            ) from err
        logger.debug("Score matrix %s has lambda %.4f.", name, lam)
        return cls(alphabet, S, Q, f, lam, popen, pextend, name)


def _read_matrix(mxfile : str, env : str | None):
    if mxfile == "-":
        try:
            return substitution_matrices.read(sys.stdin)
        except Exception as err:
            raise FormatError(
                f"Failed to read matrix from {mxfile}:\n{err}"
            ) from err
    path = _find_file(mxfile, env)
    if path is None:
        raise MatrixNotFoundError(
            f"Failed to find or open matrix file {mxfile}"
        )
    try:
        with open(path, "rt", encoding="utf-8") as handle:
            return substitution_matrices.read(handle)
    except OSError as err:
        raise MatrixNotFoundError(
            f"Failed to find or open matrix file {mxfile}"
        ) from err
    except Exception as err:
        raise FormatError(
            f"Failed to read matrix from {mxfile}:\n{err}"
        ) from err


def _find_file(filename : str, env : str | None) -> str | None:
    """Looks for a file in the working directory, then in the directories
    listed in the environment variable ``env``."""
    if os.path.isfile(filename):
        return filename
    if env is not None and env in os.environ:
        for directory in os.environ[env].split(":"):
            candidate = os.path.join(directory, filename)
            if directory and os.path.isfile(candidate):
                return candidate
    return None


def _restrict_to_alphabet(matrix, alphabet : Alphabet, name : str) -> np.ndarray:
    letters = matrix.alphabet
    symbols = []
    for c in alphabet.symbols:
        if c not in letters and c == "U" and "T" in letters:
            c = "T"
        if c not in letters:
            raise FormatError(
                f"Failed to read matrix from {name}:\n"
                f"residue {c} is missing from the matrix"
            )
        symbols.append(c)
    return np.array(
        [[matrix[a, b] for b in symbols] for a in symbols], dtype=np.float64
    )


def _inverse_sum(S : np.ndarray, lam : float) -> float:
    try:
        return float(np.sum(np.linalg.inv(np.exp(lam * S)))) - 1.
    except np.linalg.LinAlgError:
        return np.nan


def probify(S : np.ndarray) -> tuple[np.ndarray, np.ndarray, float]:
    """
    Recovers the implicit probabilistic basis of a symmetric score matrix
    with the Yu/Altschul method: ``lam`` is the positive root of
    ``sum(inv(exp(lam * S))) = 1``.

    Returns:
        The conditional probability matrix ``Q`` (rows sum to 1), the
        implied background frequencies and ``lam``.

    Raises:
        ValueError: If no valid solution is found.
    """
    smax = np.max(S)
    if smax <= 0:
        raise ValueError("Score matrix has no positive score.")
    lo = hi = 1. / smax
    for _ in range(MAX_BRACKET_ITERATIONS):
        if _inverse_sum(S, hi) < 0:
            break
        lo, hi = hi, hi * 2.
    else:
        raise ValueError("Failed to bracket lambda from above.")
    for _ in range(MAX_BRACKET_ITERATIONS):
        if _inverse_sum(S, lo) > 0:
            break
        hi, lo = lo, lo / 2.
    else:
        raise ValueError("Failed to bracket lambda from below.")
    lam = brentq(lambda x: _inverse_sum(S, x), lo, hi, xtol=1e-12)

    Y = np.exp(lam * S)
    Yinv = np.linalg.inv(Y)
    fa = np.sum(Yinv, axis=1)
    fb = np.sum(Yinv, axis=0)
    if np.any(fa <= 0) or np.any(fb <= 0):
        raise ValueError("Implied background frequencies are not positive.")
    Q = fb[np.newaxis, :] * Y
    if not np.allclose(np.sum(Q, axis=1), 1., atol=1e-6):
        raise ValueError("Conditional probabilities are not normalized.")
    return Q, fb, lam
