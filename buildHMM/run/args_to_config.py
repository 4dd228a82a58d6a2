from argparse import Namespace

from buildHMM.config import (
    ArchitectureConfig,
    ArchitectureStrategy,
    CalibrationConfig,
    Configuration,
    EffectiveNumberConfig,
    EffectiveNumberStrategy,
    InputOutputConfig,
    ScoreSystemConfig,
    WeightingConfig,
    WeightingStrategy,
)


def args_to_config(args: Namespace) -> Configuration:
    """Convert argparse Namespace to Configuration object.

    If several strategy flags of the same group are given, the first one in
    the order of the help text wins.

    Args:
        args: Namespace object from argparse containing command-line arguments.

    Returns:
        Configuration object with values from the command-line arguments.

    Raises:
        pydantic.ValidationError: If a value is out of range.
    """
    if args.fast:
        arch_strategy = ArchitectureStrategy.FAST
    elif args.hand:
        arch_strategy = ArchitectureStrategy.HAND
    else:
        arch_strategy = ArchitectureConfig().strategy

    if args.wgsc:
        wgt_strategy = WeightingStrategy.GSC
    elif args.wblosum:
        wgt_strategy = WeightingStrategy.BLOSUM
    elif args.wpb:
        wgt_strategy = WeightingStrategy.PB
    elif args.wnone:
        wgt_strategy = WeightingStrategy.NONE
    elif args.wgiven:
        wgt_strategy = WeightingStrategy.GIVEN
    else:
        wgt_strategy = WeightingConfig().strategy

    if args.eent:
        effn_strategy = EffectiveNumberStrategy.ENTROPY
    elif args.eclust:
        effn_strategy = EffectiveNumberStrategy.CLUSTER
    elif args.enone:
        effn_strategy = EffectiveNumberStrategy.NONE
    elif args.eset is not None:
        effn_strategy = EffectiveNumberStrategy.SET
    else:
        effn_strategy = EffectiveNumberConfig().strategy

    input_output_config = InputOutputConfig(
        input_file=args.input_file,
        input_format=args.input_format,
        output_file=args.output_file,
        format=args.format,
        alphabet=args.alphabet or "amino",
        single_sequence=args.single_sequence,
        silent=args.silent,
    )

    architecture_config = ArchitectureConfig(
        strategy=arch_strategy,
        symfrac=args.symfrac,
    )

    weighting_config = WeightingConfig(
        strategy=wgt_strategy,
        pbswitch=args.pbswitch,
        wid=args.wid,
    )

    effective_number_config = EffectiveNumberConfig(
        strategy=effn_strategy,
        eset=args.eset,
        re_target=args.ere if args.ere is not None else -1.0,
        eX=args.eX,
        eid=args.eid,
    )

    calibration_config = CalibrationConfig(
        EvL=args.EvL,
        EvN=args.EvN,
        EfL=args.EfL,
        EfN=args.EfN,
        Eft=args.Eft,
    )

    score_system_config = ScoreSystemConfig(
        mxfile=args.mxfile,
        env=args.mxenv,
        popen=args.popen,
        pextend=args.pextend,
    )

    # Create main Configuration object
    config = Configuration(
        input_output=input_output_config,
        architecture=architecture_config,
        weighting=weighting_config,
        effective_number=effective_number_config,
        calibration=calibration_config,
        score_system=score_system_config,
        seed=args.seed,
    )

    return config
