import logging
import math

import numpy as np
from scipy import stats

from buildHMM.config.calibration import CalibrationConfig
from buildHMM.hmm import dp
from buildHMM.hmm.background import Background
from buildHMM.hmm.phmm import PHMM, EvalueParameters, PHMMFlags
from buildHMM.hmm.profile import OptimizedProfile, Profile

logger = logging.getLogger(__name__)


class RandomSource:
    """ Random number generator of a builder.

    A seed of 0 selects an arbitrary seed; results are then not
    reproducible. Any other seed turns on reseeding: the generator is
    reset to its seed before each calibration, so that every model is
    calibrated with the same random sequences.
    """

    def __init__(self, seed : int = 0) -> None:
        if seed < 0:
            raise ValueError("seed must be non-negative.")
        self.reseeding = seed != 0
        if seed == 0:
            seed = int(np.random.SeedSequence().entropy % (2**32 - 1)) + 1
        self.seed = seed
        self.generator = np.random.default_rng(seed)

    def reseed(self) -> None:
        self.generator = np.random.default_rng(self.seed)

    def random_sequences(self, bg : Background, n : int, L : int) -> np.ndarray:
        """Samples ``n`` i.i.d. sequences of length ``L`` from the null
        model."""
        return self.generator.choice(bg.alphabet.K, size=(n, L), p=bg.f)


def calibrate_lambda(hmm : PHMM, bg : Background) -> float:
    """Predicted slope of the score distributions, from the mean match
    relative entropy."""
    H = max(hmm.mean_match_relative_entropy(bg), 1e-3)
    return math.log(2.) + 1.44 / (hmm.M * H)


def fit_gumbel_location(scores : np.ndarray, lam : float) -> float:
    """Maximum likelihood Gumbel location for a known slope."""
    loc, _ = stats.gumbel_r.fit(scores, fscale=1. / lam)
    return float(loc)


def calibrate_model(
    hmm : PHMM,
    bg : Background,
    rng : RandomSource,
    config : CalibrationConfig | None = None,
) -> tuple[Profile, OptimizedProfile]:
    """
    Determines the E-value parameters of a parameterized model by scoring
    random sequences. The parameters are stored in ``hmm.evparam``.

    Args:
        hmm: A model with probability parameters.
        bg: Null model. Its length model is not changed.
        rng: Random source. Reseeded first if reseeding is on.
        config: Sample sizes and the Forward tail mass.

    Returns:
        The search profile and the optimized profile, both configured for
        sequences of length ``EvL``.
    """
    config = config or CalibrationConfig()
    if rng.reseeding:
        rng.reseed()
    bg = bg.copy()

    gm = Profile.configure(hmm, bg, config.EvL)
    om = OptimizedProfile.from_profile(gm)
    lam = calibrate_lambda(hmm, bg)

    bg.set_length(config.EvL)
    om.set_length(config.EvL)
    x = rng.random_sequences(bg, config.EvN, config.EvL)
    msv_mu = fit_gumbel_location(dp.msv(om, bg, x), lam)
    x = rng.random_sequences(bg, config.EvN, config.EvL)
    vit_mu = fit_gumbel_location(dp.viterbi(om, bg, x), lam)

    bg.set_length(config.EfL)
    om.set_length(config.EfL)
    x = rng.random_sequences(bg, config.EfN, config.EfL)
    gmu = fit_gumbel_location(dp.forward(om, bg, x), lam)
    tau = stats.gumbel_r.ppf(1. - config.Eft, loc=gmu, scale=1. / lam) \
        + math.log(config.Eft) / lam
    om.set_length(config.EvL)

    hmm.evparam = EvalueParameters(
        msv_mu=msv_mu,
        msv_lambda=lam,
        viterbi_mu=vit_mu,
        viterbi_lambda=lam,
        forward_tau=float(tau),
        forward_lambda=lam,
    )
    hmm.flags |= PHMMFlags.STATS
    logger.debug(
        "Calibrated %s: lambda %.4f, MSV mu %.3f, Viterbi mu %.3f, "
        "Forward tau %.3f.",
        hmm.name, lam, msv_mu, vit_mu, tau
    )
    return gm, om
