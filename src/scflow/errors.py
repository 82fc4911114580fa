# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


# ----------------------------------------------------------------------
# Construction-time errors
# ----------------------------------------------------------------------
# Raised while turning the configuration into a job graph. None of these
# are retried: they point at a configuration defect, so the message must
# name the offending sample / group / path.


class WorkflowError(Exception):
    """Base class for every pre-flight (construction-time) failure."""

    suggestion: Optional[str] = None


@dataclass
class ConfigError(WorkflowError):
    source: str
    message: str
    details: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        lines = [f"invalid configuration ({self.source}): {self.message}"]
        lines.extend(f"  {d}" for d in self.details)
        return "\n".join(lines)


@dataclass
class NoInputsFound(WorkflowError):
    sample: str
    directory: Path

    suggestion = "Check the sample name and that its raw files are in the raw input directory."

    def __str__(self) -> str:
        return f"no input files found for sample '{self.sample}' in {self.directory}"


@dataclass
class InvalidReference(WorkflowError):
    path: Path

    suggestion = "Point reference_path at an existing reference directory."

    def __str__(self) -> str:
        return f"reference path does not exist: {self.path}"


@dataclass
class UnknownSampleInGroup(WorkflowError):
    sample: str
    group_index: int

    suggestion = "Every group member must also be listed under samples."

    def __str__(self) -> str:
        return f"group #{self.group_index} references unknown sample '{self.sample}'"


@dataclass
class InvalidGroupSpec(WorkflowError):
    group_index: int
    reason: str

    def __str__(self) -> str:
        return f"group #{self.group_index} is invalid: {self.reason}"


@dataclass
class MissingPrerequisiteJob(WorkflowError):
    job: str
    prerequisite: str

    def __str__(self) -> str:
        return f"job '{self.job}' needs missing job '{self.prerequisite}'"


@dataclass
class UnsupportedDependencyShape(WorkflowError):
    job: str
    message: str

    def __str__(self) -> str:
        return f"job '{self.job}' has an unsupported dependency shape: {self.message}"


@dataclass
class DuplicateJob(WorkflowError):
    job: str

    def __str__(self) -> str:
        return f"duplicate job key: {self.job}"


# ----------------------------------------------------------------------
# Runtime errors
# ----------------------------------------------------------------------

@dataclass
class JobExecutionFailed(Exception):
    """
    Reported by a job runner when the external command fails.

    The scheduler records it against the job key and blocks the job's
    dependents; it is never retried here.
    """
    job: str
    exit_code: int
    cmd: str
    log: Optional[Path] = None

    def __str__(self) -> str:
        msg = f"[{self.job}] failed (exit={self.exit_code}): {self.cmd}"
        if self.log is not None:
            msg += f"\nlog: {self.log}"
        return msg
