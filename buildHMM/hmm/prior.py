from dataclasses import dataclass

import numpy as np
from scipy.special import gammaln, logsumexp

from buildHMM.hmm.alphabet import Alphabet, AlphabetType
from buildHMM.hmm.background import Background
from buildHMM.hmm.phmm import PHMM, TDD, TDM, TII, TIM, TMD, TMI, TMM


class DirichletMixture:
    """ A mixture of Dirichlet distributions used as a prior for a
    categorical distribution.

    Args:
        q (np.ndarray): Mixture coefficients of shape ``(n,)``.
        alpha (np.ndarray): Concentration parameters of shape ``(n, K)``.
    """

    def __init__(self, q, alpha) -> None:
        self.q = np.asarray(q, dtype=np.float64)
        self.alpha = np.atleast_2d(np.asarray(alpha, dtype=np.float64))
        if self.q.shape[0] != self.alpha.shape[0]:
            raise ValueError(
                "Number of mixture coefficients and components differ."
            )
        if np.any(self.alpha <= 0):
            raise ValueError("Dirichlet parameters must be positive.")
        self.q = self.q / self.q.sum()

    @property
    def K(self) -> int:
        return self.alpha.shape[1]

    def posterior_mean(self, counts: np.ndarray) -> np.ndarray:
        """ Computes the mean posterior probability parameters given
        observed counts.

        Args:
            counts: Counts of shape ``(..., K)``.

        Returns:
            Probability vectors with the same shape as ``counts``.
        """
        counts = np.asarray(counts, dtype=np.float64)
        if counts.shape[-1] != self.K:
            raise ValueError(
                f"Expected counts over {self.K} symbols, "
                f"got {counts.shape[-1]}."
            )
        c = counts[..., np.newaxis, :]  # (..., 1, K)
        a = self.alpha  # (n, K)
        # log probability of the counts under each component
        log_lik = _log_beta(c + a) - _log_beta(a)
        log_w = np.log(self.q) + log_lik
        w = np.exp(log_w - logsumexp(log_w, axis=-1, keepdims=True))
        means = (c + a) / np.sum(c + a, axis=-1, keepdims=True)
        return np.sum(w[..., np.newaxis] * means, axis=-2)


def _log_beta(a: np.ndarray) -> np.ndarray:
    return np.sum(gammaln(a), axis=-1) - gammaln(np.sum(a, axis=-1))


@dataclass
class PHMMPrior:
    """ Priors for all distributions of a profile HMM.

    Attributes:
        tm: Prior on the match transitions (MM, MI, MD).
        ti: Prior on the insert transitions (IM, II).
        td: Prior on the delete transitions (DM, DD).
        em: Prior on the match emissions.
        ei: Prior on the insert emissions.
    """
    tm: DirichletMixture
    ti: DirichletMixture
    td: DirichletMixture
    em: DirichletMixture
    ei: DirichletMixture

    @classmethod
    def amino(cls, bg: Background | None = None) -> "PHMMPrior":
        """ Transition priors with the single component Dirichlet parameters
        of HMMER's default protein prior. The match emission prior is not a
        trained amino acid mixture: it has two components shaped like the
        background, so it shrinks towards background frequencies without
        modelling residue substitution groups.
        """
        bg = bg or Background.for_alphabet(Alphabet.amino())
        return cls(
            tm=DirichletMixture([1.], [[0.7939, 0.0278, 0.0135]]),
            ti=DirichletMixture([1.], [[0.1551, 0.1331]]),
            td=DirichletMixture([1.], [[0.9002, 0.5630]]),
            # a broad and a sharp component, both shaped like the background
            em=DirichletMixture([0.3, 0.7], [20. * bg.f, 1. * bg.f]),
            ei=DirichletMixture([1.], [1000. * bg.f]),
        )

    @classmethod
    def nucleic(cls, K: int = 4) -> "PHMMPrior":
        return cls(
            tm=DirichletMixture([1.], [[0.7939, 0.0278, 0.0135]]),
            ti=DirichletMixture([1.], [[0.1551, 0.1331]]),
            td=DirichletMixture([1.], [[0.9002, 0.5630]]),
            em=DirichletMixture([0.3, 0.7], [np.ones(K), np.full(K, 0.1)]),
            ei=DirichletMixture([1.], [np.full(K, 1000. / K)]),
        )

    @classmethod
    def laplace(cls, alphabet: Alphabet) -> "PHMMPrior":
        """Plus-one pseudocounts everywhere."""
        return cls(
            tm=DirichletMixture([1.], [np.ones(3)]),
            ti=DirichletMixture([1.], [np.ones(2)]),
            td=DirichletMixture([1.], [np.ones(2)]),
            em=DirichletMixture([1.], [np.ones(alphabet.K)]),
            ei=DirichletMixture([1.], [np.ones(alphabet.K)]),
        )

    @classmethod
    def for_alphabet(cls, alphabet: Alphabet) -> "PHMMPrior":
        if alphabet.type == AlphabetType.AMINO:
            return cls.amino(Background.for_alphabet(alphabet))
        if alphabet.type in (AlphabetType.DNA, AlphabetType.RNA):
            return cls.nucleic(alphabet.K)
        return cls.laplace(alphabet)

    def estimate(self, hmm: PHMM) -> None:
        """ Replaces the counts of ``hmm`` with mean posterior probability
        parameters.

        Raises:
            ValueError: If the prior does not match the model's alphabet.
        """
        if self.em.K != hmm.alphabet.K or self.ei.K != hmm.alphabet.K:
            raise ValueError(
                f"Prior is defined over {self.em.K} symbols, but the model "
                f"alphabet has {hmm.alphabet.K}."
            )
        M = hmm.M
        t = hmm.t
        t[:, TMM:TMD+1] = self.tm.posterior_mean(t[:, TMM:TMD+1])
        t[:, TIM:TII+1] = self.ti.posterior_mean(t[:, TIM:TII+1])
        t[:, TDM:TDD+1] = self.td.posterior_mean(t[:, TDM:TDD+1])

        # there is no D0 state
        t[0, TDM] = 1.
        t[0, TDD] = 0.
        # the last node has no D(M+1) state
        t[M, TMD] = 0.
        t[M, TMM:TMI+1] /= t[M, TMM:TMI+1].sum()
        t[M, TDM] = 1.
        t[M, TDD] = 0.

        hmm.mat[1:] = self.em.posterior_mean(hmm.mat[1:])
        hmm.mat[0] = 0.
        hmm.mat[0, 0] = 1.
        hmm.ins[:] = self.ei.posterior_mean(hmm.ins)
