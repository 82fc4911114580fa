# config.py
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

DEFAULT_INPUT_SUFFIXES = [".fastq.gz", ".fq.gz", ".fastq", ".fq"]


class RunConfig(BaseModel):
    """
    Run-wide parameters, validated once and passed explicitly to every
    builder. Frozen: nothing downstream may mutate it.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    output_root: Path
    project_label: str = Field(min_length=1)
    reference_path: Path
    samples: List[str] = Field(min_length=1)
    groups: List[str] = Field(default_factory=list)
    max_concurrent_jobs: int = Field(default=1, ge=1)

    raw_dir: str = "raw"
    tool: str = "cellranger"
    local_cores: Optional[int] = Field(default=None, ge=1)
    local_mem_gb: Optional[int] = Field(default=None, ge=1)
    input_suffixes: List[str] = Field(default_factory=lambda: list(DEFAULT_INPUT_SUFFIXES))
    extra_count_args: List[str] = Field(default_factory=list)
    extra_aggr_args: List[str] = Field(default_factory=list)

    @field_validator("samples")
    @classmethod
    def _unique_samples(cls, v: List[str]) -> List[str]:
        names = [s.strip() for s in v]
        if any(not n for n in names):
            raise ValueError("sample names must be non-empty")
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"duplicate sample names: {dupes}")
        bad = [n for n in names if "," in n]
        if bad:
            raise ValueError(f"sample names may not contain commas: {bad}")
        return names

    @property
    def raw_path(self) -> Path:
        return self.output_root / self.raw_dir

    @property
    def results_root(self) -> Path:
        return self.output_root / "results"

    @property
    def aggregated_root(self) -> Path:
        return self.output_root / "aggregated"

    @property
    def log_root(self) -> Path:
        return self.output_root / "logs"


def _resolve_relative(data: dict, base: Path) -> dict:
    for key in ("output_root", "reference_path"):
        value = data.get(key)
        if isinstance(value, (str, Path)) and str(value):
            p = Path(value).expanduser()
            if not p.is_absolute():
                p = base / p
            data[key] = p.resolve()
    return data


def _format_validation_error(e: ValidationError) -> list[str]:
    out = []
    for err in e.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        out.append(f"{loc or '<root>'}: {err.get('msg')}")
    return out


def parse_config(data: Any, *, source: str = "<dict>", base_dir: str | Path = ".", **overrides: Any) -> RunConfig:
    """Validate an already-loaded mapping (overrides with value None are ignored)."""
    if not isinstance(data, dict):
        raise ConfigError(source=source, message="top level must be a mapping")

    merged = dict(data)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    merged = _resolve_relative(merged, Path(base_dir).resolve())

    try:
        return RunConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(source=source, message="validation failed", details=_format_validation_error(e)) from e


def load_config(path: str | Path, **overrides: Any) -> RunConfig:
    """
    Load a YAML run configuration.

    Relative output_root / reference_path are resolved against the
    directory holding the config file, not the current directory.
    """
    cfg_path = Path(path).expanduser().resolve()
    try:
        text = cfg_path.read_text()
    except OSError as e:
        raise ConfigError(source=str(cfg_path), message=f"cannot read file: {e.strerror or e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(source=str(cfg_path), message="not valid YAML", details=[str(e)]) from e

    return parse_config(data, source=str(cfg_path), base_dir=cfg_path.parent, **overrides)
