# model.py
from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class JobKind(str, Enum):
    QUANTIFY = "quantify"
    AGGREGATE = "aggregate"


class JobState(str, Enum):
    PENDING = "pending"
    RUNNABLE = "runnable"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    BLOCKED = "blocked"

    @property
    def terminal(self) -> bool:
        return self in (JobState.SUCCEEDED, JobState.FAILED, JobState.BLOCKED)


# Illumina bcl2fastq / BCL Convert naming: <prefix>_S1_L001_R1_001.fastq.gz
_ILLUMINA_RE = re.compile(r"_S(?P<index>\d+)(?:_L(?P<lane>\d{3}))?_(?P<read>[RI]\d)_\d{3}\.")


@dataclass(frozen=True)
class InputFile:
    """A raw read file claimed by exactly one sample."""
    path: Path
    sample: str
    lane: Optional[str] = None
    read: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def from_path(cls, path: Path, sample: str) -> InputFile:
        m = _ILLUMINA_RE.search(path.name)
        if not m:
            return cls(path=path, sample=sample)
        return cls(path=path, sample=sample, lane=m.group("lane"), read=m.group("read"))


@dataclass(frozen=True)
class Sample:
    name: str
    inputs: Tuple[InputFile, ...]

    @property
    def paths(self) -> List[Path]:
        return [f.path for f in self.inputs]


@dataclass(frozen=True)
class ExperimentGroup:
    name: str
    members: Tuple[str, ...]


def job_key(kind: JobKind, name: str) -> str:
    """Kind-qualified key, so a one-member group never collides with its sample."""
    return f"{kind.value}:{name}"


@dataclass
class Job:
    """
    One invocation of the vendor tool.

    Everything but `state` is fixed at construction; identical inputs
    produce identical keys and argv, which is what makes re-runs safe.
    """
    kind: JobKind
    name: str
    argv: List[str]
    cwd: Path

    # keys of jobs that must succeed before this one may start (ordered)
    prerequisites: List[str] = field(default_factory=list)

    inputs: List[Path] = field(default_factory=list)
    outputs: List[Path] = field(default_factory=list)
    resources: Dict[str, int] = field(default_factory=dict)

    state: JobState = JobState.PENDING

    @property
    def key(self) -> str:
        return job_key(self.kind, self.name)

    @property
    def command(self) -> str:
        return self.kind.value

    def to_dict(self) -> dict:
        """Job specification handed to an external runner."""
        return {
            "key": self.key,
            "command": self.command,
            "name": self.name,
            "argv": list(self.argv),
            "cwd": str(self.cwd),
            "prerequisites": list(self.prerequisites),
            "inputs": [str(p) for p in self.inputs],
            "outputs": [str(p) for p in self.outputs],
            "resources": dict(self.resources),
        }


MANIFEST_HEADER = ("sample_id", "molecule_h5")


@dataclass(frozen=True)
class AggregationManifest:
    """Rows of (sample id, molecule-level output) in group member order."""
    group: str
    path: Path
    rows: Tuple[Tuple[str, Path], ...]

    @property
    def samples(self) -> List[str]:
        return [sid for sid, _ in self.rows]

    def render(self) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(MANIFEST_HEADER)
        for sid, h5 in self.rows:
            writer.writerow([sid, str(h5)])
        return buf.getvalue()

    def write(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.render())
        return self.path
