import logging
import sys

from pydantic import ValidationError

import buildHMM.run.util as util
from buildHMM.config import Configuration
from buildHMM.errors import BuildError
from buildHMM.hmm.alphabet import Alphabet
from buildHMM.hmm.background import Background
from buildHMM.hmm.phmm import PHMM
from buildHMM.msa_hmm.build import Builder, BuildRequest
from buildHMM.msa_hmm.SequenceDataset import AlignedDataset, SequenceDataset
from buildHMM.run.args import parse_args
from buildHMM.run.args_to_config import args_to_config

logger = logging.getLogger(__name__)

SUMMARY_HEADER = (
    f"{'name':<20} {'nseq':>6} {'eff_nseq':>8} {'M':>5} {'relent':>6} "
    f"{'msv_mu':>8} {'vit_mu':>8} {'fwd_tau':>8} {'lambda':>7}"
)


def run_main(argv : list[str] | None = None) -> int:
    # Get version and parse arguments
    version = util.get_version()
    parser = parse_args(version)
    args = parser.parse_args(argv)

    try:
        config = args_to_config(args)
    except ValidationError as err:
        sys.stderr.write(f"error: invalid options\n{err}\n")
        return 2

    logging.basicConfig(
        level=logging.WARNING if config.input_output.silent else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    # Print brief description of the tool
    if not config.input_output.silent and parser.description:
        print(parser.description.split("\n")[0])

    try:
        models = build_models(config)
    except BuildError as err:
        sys.stderr.write(f"Error: {err.message}\n")
        return 1
    except (ValueError, OSError) as err:
        sys.stderr.write(f"Error: {err}\n")
        return 1

    if not config.input_output.silent:
        print(SUMMARY_HEADER)
        alphabet = Alphabet.from_name(config.input_output.alphabet)
        bg = Background.for_alphabet(alphabet)
        for hmm in models:
            print(summary_row(hmm, bg))
    return 0


def build_models(config : Configuration) -> list[PHMM]:
    """ Builds all models requested by the configuration and writes the
    reconstructed alignment if an output file is set.

    Raises:
        BuildError: If a model can not be built.
        ValueError, OSError: If the input can not be read.
    """
    io = config.input_output
    alphabet = Alphabet.from_name(io.alphabet)
    bg = Background.for_alphabet(alphabet)
    builder = Builder(alphabet, config)

    if io.single_sequence:
        builder.set_score_system()
        models = []
        with SequenceDataset(io.input_file, io.input_format, alphabet=alphabet) \
                as data:
            data.validate_dataset(single_seq_ok=True)
            for i in range(data.num_seq):
                result = builder.build_single(data.get_record(i), bg)
                models.append(result.hmm)
        return models

    with AlignedDataset(io.input_file, io.input_format, alphabet=alphabet) \
            as data:
        request = BuildRequest(post_msa=io.output_file is not None)
        result = builder.build(data, bg, request)
    if result.post_msa is not None:
        result.post_msa.write(io.output_file, io.format)
        logger.info("Wrote alignment to %s.", io.output_file)
    return [result.hmm]


def summary_row(hmm : PHMM, bg : Background) -> str:
    ev = hmm.evparam
    return (
        f"{hmm.name:<20} {hmm.nseq:>6d} {hmm.eff_nseq:>8.2f} {hmm.M:>5d} "
        f"{hmm.mean_match_relative_entropy(bg):>6.2f} "
        f"{ev.msv_mu:>8.4f} {ev.viterbi_mu:>8.4f} {ev.forward_tau:>8.4f} "
        f"{ev.msv_lambda:>7.4f}"
    )


if __name__ == '__main__':
    sys.exit(run_main())
