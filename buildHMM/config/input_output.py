from pathlib import Path
from typing import Annotated, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, field_validator


def path_validator(v: Union[Path, str, None]) -> Path | None:
    """Convert string to Path."""
    if isinstance(v, str):
        return Path(v)
    return v


PathField = Annotated[Union[Path, str, None], BeforeValidator(path_validator)]


class InputOutputConfig(BaseModel):
    """Input/output and general control parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    input_file: PathField = None
    """Input alignment file (or a sequence file with ``single_sequence``)."""

    input_format: str = "stockholm"
    """Format of the input file."""

    output_file: PathField = None
    """If set, the alignment reconstructed from the model tracebacks is
    written to this file."""

    format: str = "stockholm"
    """Format of the reconstructed alignment."""

    alphabet: str = "amino"
    """Alphabet of the input sequences."""

    single_sequence: bool = False
    """Build one model per sequence of the input file using a substitution
    score system instead of an alignment."""

    silent: bool = False
    """Suppresses all standard output messages."""

    @field_validator("input_format")
    @classmethod
    def validate_input_format(cls, v: str) -> str:
        valid_formats = {"stockholm", "fasta"}
        if v not in valid_formats:
            raise ValueError(f"input_format must be one of {valid_formats}")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        valid_formats = {"stockholm", "fasta"}
        if v not in valid_formats:
            raise ValueError(f"format must be one of {valid_formats}")
        return v

    @field_validator("alphabet")
    @classmethod
    def validate_alphabet(cls, v: str) -> str:
        valid = {"amino", "dna", "rna"}
        if v not in valid:
            raise ValueError(f"alphabet must be one of {valid}")
        return v
