# runner.py
from __future__ import annotations

import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, Optional

from .errors import JobExecutionFailed
from .model import Job
from .ui.console import get_console

# Statuses a runner may resolve a future with. Anything raised is a failure.
STATUS_OK = "ok"
STATUS_SKIPPED = "skipped(existing)"
STATUS_DRY_RUN = "dry-run"


def outputs_exist(paths: Iterable[Path]) -> bool:
    """True iff there is at least one output and every one is a non-empty file."""
    paths = list(paths)
    if not paths:
        return False
    for p in paths:
        try:
            if not p.is_file() or p.stat().st_size <= 0:
                return False
        except OSError:
            return False
    return True


class JobRunner(ABC):
    """
    External job runner interface.

    submit() must not block on the job itself; it hands back a Future that
    resolves to a status string, or raises (typically JobExecutionFailed).
    """

    @abstractmethod
    def submit(self, job: Job) -> Future:
        ...

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# ----------------------------------------------------------------------
# Local subprocess runner
# ----------------------------------------------------------------------

def _log_paths(job: Job, log_root: Path) -> tuple[Path, Path]:
    d = log_root / job.kind.value
    return d / f"{job.name}.stdout", d / f"{job.name}.stderr"


def _run_job(
    job: Job,
    log_root: Path,
    env: Optional[Dict[str, str]] = None,
    skip_existing: bool = True,
) -> str:
    """
    Returns "skipped(existing)" or "ok".
    Raises JobExecutionFailed on non-zero exit.
    """
    if skip_existing and outputs_exist(job.outputs):
        return STATUS_SKIPPED

    job.cwd.mkdir(parents=True, exist_ok=True)
    stdout_p, stderr_p = _log_paths(job, log_root)
    stdout_p.parent.mkdir(parents=True, exist_ok=True)

    run_env = os.environ.copy()
    run_env.update(env or {})

    cmd = shlex.join(job.argv)
    try:
        with open(stdout_p, "w") as out, open(stderr_p, "w") as err:
            proc = subprocess.run(
                job.argv,
                shell=False,
                cwd=str(job.cwd),
                env=run_env,
                stdout=out,
                stderr=err,
                text=True,
            )
    except FileNotFoundError as e:
        # executable missing: same contract as a failed run
        raise JobExecutionFailed(job=job.key, exit_code=127, cmd=cmd, log=stderr_p) from e

    if proc.returncode != 0:
        raise JobExecutionFailed(job=job.key, exit_code=proc.returncode, cmd=cmd, log=stderr_p)
    return STATUS_OK


class LocalRunner(JobRunner):
    """Runs each job as a local subprocess on a thread pool."""

    def __init__(
        self,
        max_workers: int,
        log_root: str | Path,
        *,
        skip_existing: bool = True,
        env: Optional[Dict[str, str]] = None,
    ):
        self.log_root = Path(log_root)
        self.skip_existing = skip_existing
        self.env = dict(env or {})
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scflow-job")

    def submit(self, job: Job) -> Future:
        return self._pool.submit(_run_job, job, self.log_root, self.env, self.skip_existing)

    def close(self) -> None:
        self._pool.shutdown(wait=True)


class DryRunRunner(JobRunner):
    """Prints each command instead of running it; every job succeeds."""

    def submit(self, job: Job) -> Future:
        get_console().print_info(f"[dry-run] (cd {shlex.quote(str(job.cwd))} && {shlex.join(job.argv)})")
        fut: Future = Future()
        fut.set_result(STATUS_DRY_RUN)
        return fut
