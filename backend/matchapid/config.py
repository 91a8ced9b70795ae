"""Run options for gedcom-matchapid."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

STDIO = "-"

ENV_GEDCOM = "MATCHAPID_GEDCOM"
ENV_ADD_CITATIONS = "MATCHAPID_ADD_CITATIONS"

TRUE_VALUES = ("1", "true", "yes", "on")


class MatchApidOptions(BaseModel):
    """Options for one run. Immutable once validated."""
    model_config = ConfigDict(frozen=True)

    gedcom: Path = Field(description="Ancestry GEDCOM file to extract _APIDs from.")
    add_citations: bool = Field(
        default=False,
        description="If the original citation doesn't exist, add it (when the source record exists)."
    )
    original: str = Field(default=STDIO, description="Original GEDCOM file, or '-' for stdin.")
    output: str = Field(default=STDIO, description="Where to write the merged GEDCOM, or '-' for stdout.")

    @field_validator("gedcom")
    @classmethod
    def gedcom_must_be_readable(cls, path: Path) -> Path:
        if not path.is_file() or not os.access(path, os.R_OK):
            raise ValueError(f"Cannot open GEDCOM file: {path.resolve()}")
        return path

    @field_validator("original")
    @classmethod
    def original_must_be_readable(cls, path: str) -> str:
        if path != STDIO and not os.access(path, os.R_OK):
            raise ValueError(f"Cannot open GEDCOM file: {Path(path).resolve()}")
        return path


def env_defaults(dotenv_path: str | None = None) -> dict:
    """Read option defaults from the environment (and a .env file, if present)."""
    load_dotenv(dotenv_path)

    defaults = {}
    gedcom = os.getenv(ENV_GEDCOM)
    if gedcom:
        defaults["gedcom"] = gedcom
    add = os.getenv(ENV_ADD_CITATIONS)
    if add is not None:
        defaults["add_citations"] = add.strip().lower() in TRUE_VALUES
    return defaults


def load_options(dotenv_path: str | None = None, **overrides) -> MatchApidOptions:
    """
    Build validated options: environment defaults, overridden by explicit values.

    Overrides that are None are ignored. Raises pydantic.ValidationError when
    the ancestry file is missing or unreadable.
    """
    values = env_defaults(dotenv_path)
    values.update({k: v for k, v in overrides.items() if v is not None})
    return MatchApidOptions(**values)
