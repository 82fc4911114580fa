# scheduler.py
from __future__ import annotations

import shlex
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, wait
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional, Set

from .dag import DependencyGraph
from .model import JobState
from .runner import JobRunner
from .ui.console import Console, get_console

TransitionHook = Callable[[str, JobState, JobState], None]


@dataclass
class ScheduleState:
    """
    Mutable bookkeeping for one run. Owned by the scheduler thread only;
    runner threads never see it.
    """
    ready: Deque[str] = field(default_factory=deque)
    running: Dict[Future, str] = field(default_factory=dict)
    succeeded: Set[str] = field(default_factory=set)
    statuses: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    blocked_by: Dict[str, str] = field(default_factory=dict)
    max_running: int = 0


@dataclass
class RunReport:
    states: Dict[str, JobState]
    statuses: Dict[str, str]
    errors: Dict[str, str]
    blocked_by: Dict[str, str]
    max_running: int

    @property
    def ok(self) -> bool:
        return all(s is JobState.SUCCEEDED for s in self.states.values())

    def keys_in(self, state: JobState) -> List[str]:
        return [k for k, s in self.states.items() if s is state]

    def summary(self) -> Dict[str, str]:
        """key -> display status (runner status for successes, e.g. skipped(existing))."""
        out = {}
        for key, s in self.states.items():
            if s is JobState.SUCCEEDED:
                out[key] = self.statuses.get(key, s.value)
            else:
                out[key] = s.value
        return out

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "max_running": self.max_running,
            "jobs": {
                key: {
                    "state": s.value,
                    "status": self.statuses.get(key),
                    "error": self.errors.get(key),
                    "blocked_by": self.blocked_by.get(key),
                }
                for key, s in self.states.items()
            },
        }


class JobScheduler:
    """
    Runs a DependencyGraph through a JobRunner with at most
    `max_concurrent_jobs` jobs running at once.

    - Ready queue is FIFO, seeded with quantify jobs in declaration order.
    - A job's dependents are re-checked when it completes.
    - A failure blocks the failed job's dependents only; the rest of the
      graph keeps going.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        runner: JobRunner,
        max_concurrent_jobs: int,
        *,
        console: Optional[Console] = None,
        on_transition: Optional[TransitionHook] = None,
    ):
        if max_concurrent_jobs < 1:
            raise ValueError(f"max_concurrent_jobs must be >= 1, got {max_concurrent_jobs}")
        self.graph = graph
        self.runner = runner
        self.max_concurrent_jobs = max_concurrent_jobs
        self.console = console or get_console()
        self.on_transition = on_transition

    # ---- state transitions ----

    def _set(self, key: str, new: JobState) -> None:
        job = self.graph[key]
        old = job.state
        job.state = new
        if self.on_transition is not None:
            self.on_transition(key, old, new)

    def _enqueue(self, state: ScheduleState, key: str) -> None:
        self._set(key, JobState.RUNNABLE)
        state.ready.append(key)

    def _start(self, state: ScheduleState, key: str) -> None:
        job = self.graph[key]
        self._set(key, JobState.RUNNING)
        self.console.print_debug(f"submit {key}: {shlex.join(job.argv)}")
        try:
            fut = self.runner.submit(job)
        except Exception as e:
            self._fail(state, key, e)
            return
        state.running[fut] = key
        state.max_running = max(state.max_running, len(state.running))
        self.console.print_job_start(key, len(state.running), self.max_concurrent_jobs)

    def _fail(self, state: ScheduleState, key: str, exc: BaseException) -> None:
        self._set(key, JobState.FAILED)
        state.errors[key] = str(exc)
        self.console.print_job_failed(key, str(exc))

        for dep in self.graph.dependents_of(key):
            if self.graph[dep].state is JobState.PENDING:
                self._set(dep, JobState.BLOCKED)
                state.blocked_by[dep] = key
                self.console.print_job_blocked(dep, key)

    def _finish(self, state: ScheduleState, key: str, fut: Future) -> None:
        try:
            status = fut.result()
        except Exception as e:
            self._fail(state, key, e)
            return

        self._set(key, JobState.SUCCEEDED)
        state.succeeded.add(key)
        state.statuses[key] = str(status)
        self.console.print_job_finished(key, str(status))

        for dep in self.graph.dependents_of(key):
            if self.graph.is_runnable(dep, state.succeeded):
                self._enqueue(state, dep)

    # ---- main loop ----

    def run(self) -> RunReport:
        self.graph.seal()
        state = ScheduleState()

        for job in self.graph:
            if self.graph.is_runnable(job.key, state.succeeded):
                self._enqueue(state, job.key)

        while state.ready or state.running:
            while state.ready and len(state.running) < self.max_concurrent_jobs:
                self._start(state, state.ready.popleft())

            if not state.running:
                continue

            done, _ = wait(list(state.running), return_when=FIRST_COMPLETED)
            # consume completions in submission order for a reproducible trace
            for fut in [f for f in state.running if f in done]:
                key = state.running.pop(fut)
                self._finish(state, key, fut)

        for job in self.graph:
            if job.state is JobState.PENDING:
                self._set(job.key, JobState.BLOCKED)

        return RunReport(
            states={job.key: job.state for job in self.graph},
            statuses=dict(state.statuses),
            errors=dict(state.errors),
            blocked_by=dict(state.blocked_by),
            max_running=state.max_running,
        )
