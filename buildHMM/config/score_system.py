from pydantic import BaseModel, ConfigDict, field_validator


class ScoreSystemConfig(BaseModel):
    """Scoring system for single sequence queries."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mxfile: str | None = None
    """Substitution score matrix file. If not set, BLOSUM62 is used for
    protein and NUC.4.4 for nucleotide alphabets. ``-`` reads the matrix
    from standard input."""

    env: str | None = None
    """Name of an environment variable holding a colon-delimited list of
    directories that are searched for ``mxfile`` if it is not found in the
    working directory."""

    popen: float = 0.02
    """Gap open probability."""

    pextend: float = 0.4
    """Gap extend probability."""

    @field_validator("popen")
    def validate_popen(cls, v: float) -> float:
        if not 0 <= v < 0.5:
            raise ValueError("popen must be in the range [0, 0.5).")
        return v

    @field_validator("pextend")
    def validate_pextend(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError("pextend must be in the range [0, 1).")
        return v
