from __future__ import annotations

from concurrent.futures import Future
from pathlib import Path
from typing import Iterable, List

import pytest

from scflow.config import RunConfig, parse_config
from scflow.errors import JobExecutionFailed
from scflow.model import Job
from scflow.runner import JobRunner
from scflow.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def fresh_console():
    set_console(Console())
    yield


def touch_fastqs(raw: Path, sample: str, lanes: Iterable[int] = (1,), reads=("R1", "R2")) -> List[Path]:
    raw.mkdir(parents=True, exist_ok=True)
    out = []
    for lane in lanes:
        for read in reads:
            p = raw / f"{sample}_S1_L{lane:03d}_{read}_001.fastq.gz"
            p.write_bytes(b"@r\nACGT\n+\nIIII\n")
            out.append(p)
    return out


@pytest.fixture
def make_config(tmp_path):
    """Config rooted in tmp_path with an existing reference directory."""
    ref = tmp_path / "ref"
    ref.mkdir()

    def _make(samples, groups=(), max_jobs=2, **extra) -> RunConfig:
        data = {
            "output_root": str(tmp_path / "out"),
            "project_label": "proj",
            "reference_path": str(ref),
            "samples": list(samples),
            "groups": list(groups),
            "max_concurrent_jobs": max_jobs,
        }
        data.update(extra)
        return parse_config(data, base_dir=tmp_path)

    return _make


class FakeRunner(JobRunner):
    """Resolves every future on submit; keys in `fail` fail."""

    def __init__(self, fail: Iterable[str] = ()):
        self.fail_keys = set(fail)
        self.submitted: List[str] = []

    def submit(self, job: Job) -> Future:
        fut: Future = Future()
        self.submitted.append(job.key)
        if job.key in self.fail_keys:
            fut.set_exception(JobExecutionFailed(job=job.key, exit_code=1, cmd="fake"))
        else:
            fut.set_result("ok")
        return fut


class TransitionLog:
    def __init__(self):
        self.events = []
        self.running = 0
        self.peak = 0

    def __call__(self, key, old, new):
        self.events.append((key, old.value, new.value))
        if new.value == "running":
            self.running += 1
            self.peak = max(self.peak, self.running)
        elif old.value == "running":
            self.running -= 1

    def entered(self, state: str) -> List[str]:
        return [k for k, _, new in self.events if new == state]
