import logging
import math
from dataclasses import dataclass

import numpy as np
from Bio.SeqRecord import SeqRecord

from buildHMM.config import (ArchitectureStrategy, Configuration,
                             EffectiveNumberStrategy, WeightingStrategy)
from buildHMM.errors import (AllocationError, BuildError, ConfigurationError,
                             FormatError, NoResultError, NumericalError)
from buildHMM.hmm.alphabet import Alphabet, AlphabetType
from buildHMM.hmm.background import Background
from buildHMM.hmm.phmm import PHMM, PHMMFlags
from buildHMM.hmm.prior import PHMMPrior
from buildHMM.hmm.profile import OptimizedProfile, Profile
from buildHMM.hmm.trace import Trace
from buildHMM.msa_hmm import Weighting
from buildHMM.msa_hmm.Calibration import RandomSource, calibrate_model
from buildHMM.msa_hmm.Clustering import single_linkage
from buildHMM.msa_hmm.EntropyWeight import entropy_weight
from buildHMM.msa_hmm.MSA2HMM import fast_model_maker, hand_model_maker
from buildHMM.msa_hmm.ScoreSystem import ScoreSystem
from buildHMM.msa_hmm.SeqModel import seq_model, single_trace
from buildHMM.msa_hmm.SequenceDataset import AlignedDataset
from buildHMM.msa_hmm.TraceAlign import make_post_msa

logger = logging.getLogger(__name__)

# Lower bounds of the default target relative entropy (bits per position).
ETARGET_AMINO = 0.59
ETARGET_DNA = 0.62
ETARGET_OTHER = 1.0


@dataclass
class BuildRequest:
    """Selects the optional products of a build."""
    hmm: bool = True
    traces: bool = False
    profile: bool = False
    optimized_profile: bool = False
    post_msa: bool = False


@dataclass
class BuildResult:
    """Products of a build. Products that were not requested are None."""
    hmm: PHMM | None = None
    traces: list[Trace] | None = None
    profile: Profile | None = None
    optimized_profile: OptimizedProfile | None = None
    post_msa: AlignedDataset | None = None


class Builder:
    """ Builds calibrated profile HMMs from alignments or single sequences.

    A builder owns its configuration, random source, prior and, once set,
    a score system for single sequence queries. It is not thread safe.

    Args:
        alphabet: Alphabet of all inputs.
        config: Build configuration. Defaults are used if None.

    Raises:
        AllocationError: If a component can not be allocated.
    """

    def __init__(
        self, alphabet : Alphabet, config : Configuration | None = None
    ) -> None:
        self.alphabet = alphabet
        self.config = config if config is not None else Configuration()
        try:
            self.rng = RandomSource(self.config.seed)
            self.prior = PHMMPrior.for_alphabet(alphabet)
        except MemoryError as err:
            raise AllocationError("failed to allocate builder") from err
        self.score_system: ScoreSystem | None = None

    def set_score_system(
        self,
        mxfile : str | None = None,
        env : str | None = None,
        popen : float | None = None,
        pextend : float | None = None,
    ) -> None:
        """
        Initializes the score system used by :meth:`build_single`.
        Arguments that are None are taken from the configuration. The
        previous score system is kept if this call fails.

        Raises:
            MatrixNotFoundError: If the matrix file can not be found.
            FormatError: If the matrix can not be read, is not symmetric or
                can not be converted to probabilities.
            AllocationError: On allocation failure.
        """
        defaults = self.config.score_system
        try:
            score_system = ScoreSystem.load(
                self.alphabet,
                mxfile if mxfile is not None else defaults.mxfile,
                env if env is not None else defaults.env,
                popen if popen is not None else defaults.popen,
                pextend if pextend is not None else defaults.pextend,
            )
        except MemoryError as err:
            raise AllocationError("failed to allocate score system") from err
        self.score_system = score_system

    def build(
        self,
        data : AlignedDataset,
        bg : Background,
        request : BuildRequest | None = None,
    ) -> BuildResult:
        """
        Builds a model from an alignment. The relative weights of ``data``
        are replaced according to the weighting strategy.

        Args:
            data: The alignment.
            bg: Null model.
            request: Optional products. By default only the model.

        Raises:
            BuildError: Or one of its subclasses on any failure. Nothing
                is returned in that case.
        """
        request = request or BuildRequest()
        if data.alphabet != self.alphabet:
            raise ConfigurationError(
                f"Alignment alphabet {data.alphabet} does not match the "
                f"builder alphabet {self.alphabet}."
            )
        want_traces = request.traces or request.post_msa
        relative_weights(self.config, data)
        hmm, traces = build_model(self.config, data, want_traces)
        effective_seqnumber(self.config, data, hmm, bg, self.prior)
        parameterize(hmm, self.prior)
        annotate(data, hmm)
        gm, om = calibrate(hmm, bg, self.rng, self.config)
        post_msa = None
        if request.post_msa:
            post_msa = reconstruct_alignment(data, traces, hmm)
        logger.debug("Finished model %s with %d match states.", hmm.name, hmm.M)
        return BuildResult(
            hmm=hmm if request.hmm else None,
            traces=traces if request.traces else None,
            profile=gm if request.profile else None,
            optimized_profile=om if request.optimized_profile else None,
            post_msa=post_msa,
        )

    def build_single(
        self,
        record : SeqRecord,
        bg : Background,
        request : BuildRequest | None = None,
    ) -> BuildResult:
        """
        Builds a model from a single sequence using the score system.

        Raises:
            ConfigurationError: If no score system was set or an alignment
                is requested.
            BuildError: Or one of its subclasses on any other failure.
        """
        request = request or BuildRequest()
        if self.score_system is None:
            raise ConfigurationError("score system not initialized")
        if request.post_msa:
            raise ConfigurationError(
                "Single sequence models do not reconstruct an alignment."
            )
        try:
            hmm = seq_model(record, self.alphabet, self.score_system, bg)
        except ValueError as err:
            raise FormatError(str(err)) from err
        except MemoryError as err:
            raise AllocationError(
                "Memory allocation failure in model construction."
            ) from err
        hmm.set_ctime()
        gm, om = calibrate(hmm, bg, self.rng, self.config)
        return BuildResult(
            hmm=hmm if request.hmm else None,
            traces=[single_trace(hmm.M)] if request.traces else None,
            profile=gm if request.profile else None,
            optimized_profile=om if request.optimized_profile else None,
        )


def relative_weights(config : Configuration, data : AlignedDataset) -> None:
    """
    Sets the relative weights of the alignment. Large alignments are
    weighted position-based unless weighting is turned off or the given
    weights are used.

    Raises:
        NumericalError: If the weights can not be computed.
    """
    strategy = config.weighting.strategy
    pbswitch = config.weighting.pbswitch
    try:
        if strategy == WeightingStrategy.NONE:
            data.weights = np.ones(data.num_seq)
        elif strategy == WeightingStrategy.GIVEN:
            pass
        elif pbswitch != -1 and data.num_seq >= pbswitch:
            if strategy != WeightingStrategy.PB:
                logger.info(
                    "%d sequences (>= %d), switching to position-based "
                    "weights.", data.num_seq, pbswitch
                )
            data.weights = Weighting.position_based_weights(data)
        elif strategy == WeightingStrategy.PB:
            data.weights = Weighting.position_based_weights(data)
        elif strategy == WeightingStrategy.GSC:
            data.weights = Weighting.gsc_weights(data)
        elif strategy == WeightingStrategy.BLOSUM:
            data.weights = Weighting.blosum_weights(data, config.weighting.wid)
    except MemoryError as err:
        raise AllocationError(
            "failed to set relative weights in alignment"
        ) from err
    except (ValueError, FloatingPointError) as err:
        raise NumericalError(
            "failed to set relative weights in alignment"
        ) from err
    logger.debug("Relative weights (%s) set.", strategy.value)


def build_model(
    config : Configuration, data : AlignedDataset, want_traces : bool = False
) -> tuple[PHMM, list[Trace] | None]:
    """
    Determines the architecture and collects weighted counts.

    Raises:
        NoResultError: If no consensus column is found.
        FormatError: If hand construction lacks a reference annotation.
        AllocationError: On allocation failure.
        BuildError: On any other failure.
    """
    name = data.name if data.name is not None else ""
    arch = config.architecture
    try:
        if arch.strategy == ArchitectureStrategy.FAST:
            try:
                hmm, traces = fast_model_maker(data, arch.symfrac, want_traces)
            except NoResultError as err:
                raise NoResultError(
                    f"Alignment {name} has no consensus columns w/ > "
                    f"{int(100 * arch.symfrac)}% residues - can't build a "
                    "model."
                ) from err
        else:
            try:
                hmm, traces = hand_model_maker(data, want_traces)
            except NoResultError as err:
                raise NoResultError(
                    f"Alignment {name} has no annotated consensus columns - "
                    "can't build a model."
                ) from err
            except FormatError as err:
                raise FormatError(
                    f"Alignment {name} has no reference annotation line"
                ) from err
    except MemoryError as err:
        raise AllocationError(
            "Memory allocation failure in model construction."
        ) from err
    except (ValueError, IndexError) as err:
        raise BuildError("internal error in model construction.") from err
    logger.debug(
        "Architecture (%s): %d match states.", arch.strategy.value, hmm.M
    )
    return hmm, traces


def default_target_relent(
    M : int, alphabet_type : AlphabetType, eX : float = 6.0
) -> float:
    """
    Length dependent target relative entropy per match state (bits),
    bounded from below by an alphabet dependent minimum.
    """
    etarget = 6. * (eX + math.log2((M * (M+1)) // 2)) / (2*M + 4)
    if alphabet_type == AlphabetType.AMINO:
        floor = ETARGET_AMINO
    elif alphabet_type in (AlphabetType.DNA, AlphabetType.RNA):
        floor = ETARGET_DNA
    else:
        floor = ETARGET_OTHER
    return max(etarget, floor)


def effective_seqnumber(
    config : Configuration,
    data : AlignedDataset,
    hmm : PHMM,
    bg : Background,
    prior : PHMMPrior,
) -> None:
    """
    Sets the effective sequence number and rescales the counts of the
    model accordingly.

    Raises:
        NumericalError: If clustering or entropy weighting fails.
        AllocationError: On allocation failure.
    """
    effn = config.effective_number
    try:
        if effn.strategy == EffectiveNumberStrategy.NONE:
            hmm.eff_nseq = float(data.num_seq)
        elif effn.strategy == EffectiveNumberStrategy.SET:
            hmm.eff_nseq = float(effn.eset)
        elif effn.strategy == EffectiveNumberStrategy.CLUSTER:
            try:
                nclust, _ = single_linkage(data, effn.eid)
            except (ValueError, FloatingPointError) as err:
                raise NumericalError(
                    "single linkage clustering algorithm (at "
                    f"{int(100 * effn.eid)}% id) failed"
                ) from err
            hmm.eff_nseq = float(nclust)
        elif effn.strategy == EffectiveNumberStrategy.ENTROPY:
            if effn.re_target < 0:
                etarget = default_target_relent(
                    hmm.M, data.alphabet.type, effn.eX
                )
            else:
                etarget = effn.re_target
            try:
                hmm.eff_nseq = entropy_weight(hmm, bg, prior, etarget)
            except (ValueError, RuntimeError, FloatingPointError) as err:
                raise NumericalError(
                    "internal failure in entropy weighting algorithm"
                ) from err
    except MemoryError as err:
        raise AllocationError("memory allocation failed") from err
    hmm.scale(hmm.eff_nseq / hmm.nseq)
    logger.debug(
        "Effective sequence number (%s): %.2f of %d.",
        effn.strategy.value, hmm.eff_nseq, hmm.nseq
    )


def parameterize(hmm : PHMM, prior : PHMMPrior) -> None:
    """
    Converts counts to mean posterior probabilities.

    Raises:
        ConfigurationError: If the prior does not fit the model.
    """
    try:
        prior.estimate(hmm)
    except ValueError as err:
        raise ConfigurationError("parameter estimation failed") from err


def annotate(data : AlignedDataset, hmm : PHMM) -> None:
    """
    Transfers annotation from the alignment to the model and sets the
    model composition and consensus.

    Raises:
        ConfigurationError: If the alignment has no name.
        BuildError: If an annotation can not be recorded.
    """
    if not data.name:
        raise ConfigurationError("Unable to name the HMM.")
    hmm.name = data.name
    if data.accession:
        hmm.accession = data.accession
        hmm.flags |= PHMMFlags.ACC
    if data.description:
        hmm.description = data.description
        hmm.flags |= PHMMFlags.DESC
    steps = (
        ("Failed to record timestamp", hmm.set_ctime),
        ("Failed to record checksum", lambda: _set_checksum(data, hmm)),
        ("Failed to determine model composition", hmm.set_composition),
        ("Failed to determine consensus", hmm.set_consensus),
    )
    for message, step in steps:
        try:
            step()
        except (ValueError, OverflowError, FloatingPointError) as err:
            raise BuildError(message) from err

    for tag, flag in (
        ("GA", PHMMFlags.GA), ("TC", PHMMFlags.TC), ("NC", PHMMFlags.NC)
    ):
        values = data.cutoffs.get(tag, ())
        if len(values) == 2:
            hmm.cutoffs[tag] = (values[0], values[1])
            hmm.flags |= flag


def _set_checksum(data : AlignedDataset, hmm : PHMM) -> None:
    hmm.checksum = data.checksum()
    hmm.flags |= PHMMFlags.CHKSUM


def calibrate(
    hmm : PHMM,
    bg : Background,
    rng : RandomSource,
    config : Configuration,
) -> tuple[Profile, OptimizedProfile]:
    """
    Sets the E-value parameters of the model with short simulations.

    Raises:
        NumericalError: If the score distributions can not be fitted.
        AllocationError: On allocation failure.
    """
    try:
        return calibrate_model(hmm, bg, rng, config.calibration)
    except MemoryError as err:
        raise AllocationError("failed to allocate calibration") from err
    except (ValueError, RuntimeError, FloatingPointError) as err:
        raise NumericalError("calibration failed") from err


def reconstruct_alignment(
    data : AlignedDataset, traces : list[Trace] | None, hmm : PHMM
) -> AlignedDataset:
    """Returns the alignment the model was built from, including trace
    doctoring and reference annotation of the consensus columns."""
    if traces is None:
        raise BuildError("no traces available for alignment reconstruction")
    try:
        return make_post_msa(data, traces, hmm)
    except MemoryError as err:
        raise AllocationError(
            "failed to allocate reconstructed alignment"
        ) from err
    except ValueError as err:
        raise BuildError("failed to reconstruct alignment") from err
