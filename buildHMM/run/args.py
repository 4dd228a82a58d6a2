import argparse
import sys


class BuildHMMArgumentParser(argparse.ArgumentParser):
    def error(self, message : str):
        sys.stderr.write('error: %s\n' % message)
        self.print_help()
        sys.exit(2)

def parse_args(version : str) -> BuildHMMArgumentParser:

    parser = BuildHMMArgumentParser(
        description=f"buildHMM (version {version}) - "
                    "construction and calibration of profile HMMs\n"
                    "\n"
                    "Builds one model from a multiple sequence alignment, or "
                    "one model per sequence with --single.",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Input/output group
    io_group = parser.add_argument_group("Input/output and general control")
    io_group.add_argument(
        "-i",
        "--in_file",
        dest="input_file",
        type=str,
        required=True,
        help="Input alignment (or sequence file with --single)."
    )
    io_group.add_argument(
        "--input_format",
        dest="input_format",
        type=str,
        default="stockholm",
        help="Format of the input file. (default: %(default)s)"
    )
    io_group.add_argument(
        "-o",
        "--out_file",
        dest="output_file",
        type=str,
        required=False,
        default=None,
        help="Write the alignment reconstructed from the model to this file."
    )
    io_group.add_argument(
        "-f",
        "--format",
        dest="format",
        type=str,
        default="stockholm",
        help="Format of the reconstructed alignment. (default: %(default)s)"
    )
    alphabet_group = io_group.add_mutually_exclusive_group()
    alphabet_group.add_argument(
        "--amino",
        dest="alphabet",
        action="store_const",
        const="amino",
        help="Input sequences are proteins (default)."
    )
    alphabet_group.add_argument(
        "--dna",
        dest="alphabet",
        action="store_const",
        const="dna",
        help="Input sequences are DNA."
    )
    alphabet_group.add_argument(
        "--rna",
        dest="alphabet",
        action="store_const",
        const="rna",
        help="Input sequences are RNA."
    )
    io_group.add_argument(
        "--single",
        dest="single_sequence",
        action="store_true",
        help="Build one model per input sequence using a score matrix."
    )
    io_group.add_argument(
        "-s",
        "--silent",
        dest="silent",
        action="store_true",
        help="Suppresses all standard output messages."
    )

    # Model construction
    arch_group = parser.add_argument_group(
        "Alternative model construction strategies"
    )
    arch_group.add_argument(
        "--fast",
        dest="fast",
        action="store_true",
        help="Assign columns with >= symfrac residues as consensus."
    )
    arch_group.add_argument(
        "--hand",
        dest="hand",
        action="store_true",
        help="Manual construction (requires reference annotation)."
    )
    arch_group.add_argument(
        "--symfrac",
        dest="symfrac",
        type=float,
        default=0.5,
        help="Sets sym fraction controlling --fast construction. "\
            "(default: %(default)s)"
    )

    # Relative weights
    wgt_group = parser.add_argument_group(
        "Alternative relative sequence weighting strategies"
    )
    wgt_group.add_argument(
        "--wgsc",
        dest="wgsc",
        action="store_true",
        help="Gerstein/Sonnhammer/Chothia tree weights (default)."
    )
    wgt_group.add_argument(
        "--wblosum",
        dest="wblosum",
        action="store_true",
        help="Henikoff simple filter weights."
    )
    wgt_group.add_argument(
        "--wpb",
        dest="wpb",
        action="store_true",
        help="Henikoff position-based weights."
    )
    wgt_group.add_argument(
        "--wnone",
        dest="wnone",
        action="store_true",
        help="Don't do any relative weighting; set all to 1."
    )
    wgt_group.add_argument(
        "--wgiven",
        dest="wgiven",
        action="store_true",
        help="Use weights as given in the alignment file."
    )
    wgt_group.add_argument(
        "--pbswitch",
        dest="pbswitch",
        type=int,
        default=1000,
        help="Use position-based weights for alignments with at least this "\
            "many sequences. -1 disables. (default: %(default)s)"
    )
    wgt_group.add_argument(
        "--wid",
        dest="wid",
        type=float,
        default=0.62,
        help="Identity cutoff for --wblosum. (default: %(default)s)"
    )

    # Effective sequence number
    effn_group = parser.add_argument_group(
        "Alternative effective sequence weighting strategies"
    )
    effn_group.add_argument(
        "--eent",
        dest="eent",
        action="store_true",
        help="Adjust effective sequence number to achieve relative entropy "\
            "target (default)."
    )
    effn_group.add_argument(
        "--eclust",
        dest="eclust",
        action="store_true",
        help="Effective sequence number is number of single linkage clusters."
    )
    effn_group.add_argument(
        "--enone",
        dest="enone",
        action="store_true",
        help="No effective sequence number weighting: just use nseq."
    )
    effn_group.add_argument(
        "--eset",
        dest="eset",
        type=float,
        default=None,
        help="Set effective sequence number for all models to this value."
    )
    effn_group.add_argument(
        "--ere",
        dest="ere",
        type=float,
        default=None,
        help="For --eent: set target relative entropy per position to this "\
            "value (bits)."
    )
    effn_group.add_argument(
        "--eX",
        dest="eX",
        type=float,
        default=6.0,
        help="For --eent: set minimum total relative entropy of the model "\
            "(bits). (default: %(default)s)"
    )
    effn_group.add_argument(
        "--eid",
        dest="eid",
        type=float,
        default=0.62,
        help="For --eclust: set fractional identity cutoff. "\
            "(default: %(default)s)"
    )

    # Calibration
    cal_group = parser.add_argument_group(
        "Control of E-value calibration"
    )
    cal_group.add_argument(
        "--EvL",
        dest="EvL",
        type=int,
        default=100,
        help="Length of sequences for MSV and Viterbi Gumbel mu fit. "\
            "(default: %(default)s)"
    )
    cal_group.add_argument(
        "--EvN",
        dest="EvN",
        type=int,
        default=200,
        help="Number of sequences for MSV and Viterbi Gumbel mu fit. "\
            "(default: %(default)s)"
    )
    cal_group.add_argument(
        "--EfL",
        dest="EfL",
        type=int,
        default=100,
        help="Length of sequences for Forward exp tail tau fit. "\
            "(default: %(default)s)"
    )
    cal_group.add_argument(
        "--EfN",
        dest="EfN",
        type=int,
        default=200,
        help="Number of sequences for Forward exp tail tau fit. "\
            "(default: %(default)s)"
    )
    cal_group.add_argument(
        "--Eft",
        dest="Eft",
        type=float,
        default=0.04,
        help="Tail mass for Forward exponential tail tau fit. "\
            "(default: %(default)s)"
    )

    # Single sequence score system
    score_group = parser.add_argument_group(
        "Score system for single sequence queries (--single)"
    )
    score_group.add_argument(
        "--mxfile",
        dest="mxfile",
        type=str,
        default=None,
        help="Substitution score matrix file. Default: BLOSUM62 (protein) "\
            "or NUC.4.4 (nucleotides)."
    )
    score_group.add_argument(
        "--mxenv",
        dest="mxenv",
        type=str,
        default=None,
        help="Environment variable with directories to search for --mxfile."
    )
    score_group.add_argument(
        "--popen",
        dest="popen",
        type=float,
        default=0.02,
        help="Gap open probability. (default: %(default)s)"
    )
    score_group.add_argument(
        "--pextend",
        dest="pextend",
        type=float,
        default=0.4,
        help="Gap extend probability. (default: %(default)s)"
    )

    # Other
    other_group = parser.add_argument_group("Other options")
    other_group.add_argument(
        "--seed",
        dest="seed",
        type=int,
        default=42,
        help="Set random number seed. 0 means an arbitrary seed and "\
            "run-to-run variation. (default: %(default)s)"
    )

    return parser
