import logging

from scipy.optimize import brentq

from buildHMM.hmm.background import Background
from buildHMM.hmm.phmm import PHMM
from buildHMM.hmm.prior import PHMMPrior

logger = logging.getLogger(__name__)

# smallest effective sequence number considered, relative to nseq
MIN_FRACTION = 1e-6


def relative_entropy_at(
    hmm : PHMM, bg : Background, prior : PHMMPrior, eff_nseq : float
) -> float:
    """
    Mean match relative entropy (bits) of the model obtained by scaling
    the counts of ``hmm`` to ``eff_nseq`` sequences and applying the prior.
    ``hmm`` itself is left untouched.
    """
    h = hmm.copy()
    h.scale(eff_nseq / hmm.nseq)
    prior.estimate(h)
    return h.mean_match_relative_entropy(bg)


def entropy_weight(
    hmm : PHMM,
    bg : Background,
    prior : PHMMPrior,
    etarget : float,
    xtol : float = 1e-4,
) -> float:
    """
    Finds the effective sequence number for which the parameterized model
    has a mean match relative entropy of ``etarget`` bits. Fewer effective
    sequences let the prior dominate, which lowers the relative entropy.

    Args:
        hmm: A model of weighted counts for ``hmm.nseq`` sequences.
        bg: Null model.
        prior: Prior used for parameterization.
        etarget: Target relative entropy in bits.
        xtol: Absolute tolerance of the solver.

    Returns:
        The effective sequence number, in ``(0, nseq]``.

    Raises:
        ValueError, RuntimeError: If the solver fails.
    """
    nseq = float(hmm.nseq)
    if relative_entropy_at(hmm, bg, prior, nseq) <= etarget:
        return nseq
    low = nseq * MIN_FRACTION
    f_low = relative_entropy_at(hmm, bg, prior, low) - etarget
    if f_low >= 0:
        logger.debug(
            "Target relative entropy %.3f not reachable, using %g sequences.",
            etarget, low
        )
        return low
    return brentq(
        lambda n: relative_entropy_at(hmm, bg, prior, n) - etarget,
        low, nseq, xtol=xtol,
    )
