# dag.py
from __future__ import annotations

from typing import AbstractSet, Dict, Iterable, Iterator, List, Tuple

from .errors import DuplicateJob, MissingPrerequisiteJob, UnsupportedDependencyShape
from .model import Job, JobKind, JobState


class DependencyGraph:
    """
    Two-level job graph: quantify jobs have no prerequisites, aggregate
    jobs depend only on quantify jobs.

    Jobs must be added prerequisites-first. Because the shape is fixed,
    there is no general cycle detection; anything outside the shape is
    rejected at add_job() time.
    """

    def __init__(self, jobs: Iterable[Job] = ()):
        self._jobs: Dict[str, Job] = {}
        self._prereqs: Dict[str, Tuple[str, ...]] = {}
        self._dependents: Dict[str, List[str]] = {}   # prerequisite -> dependents
        self._sealed = False
        for job in jobs:
            self.add_job(job)

    # ---- construction ----

    def add_job(self, job: Job) -> None:
        if self._sealed:
            raise RuntimeError(f"graph is sealed; cannot add '{job.key}'")

        key = job.key
        if key in self._jobs:
            raise DuplicateJob(job=key)

        prereqs = tuple(job.prerequisites)
        if job.kind is JobKind.QUANTIFY and prereqs:
            raise UnsupportedDependencyShape(job=key, message="quantify jobs cannot have prerequisites")

        for p in prereqs:
            if p not in self._jobs:
                raise MissingPrerequisiteJob(job=key, prerequisite=p)
            if self._jobs[p].kind is not JobKind.QUANTIFY:
                raise UnsupportedDependencyShape(
                    job=key,
                    message=f"depends on '{p}', which is not a quantify job",
                )
        if len(set(prereqs)) != len(prereqs):
            raise UnsupportedDependencyShape(job=key, message="lists a prerequisite twice")

        self._jobs[key] = job
        self._prereqs[key] = prereqs
        self._dependents[key] = []
        for p in prereqs:
            self._dependents[p].append(key)

    def seal(self) -> None:
        """No more jobs after this; only job state may change."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ---- queries ----

    def __contains__(self, key: str) -> bool:
        return key in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(self._jobs.values())

    def __getitem__(self, key: str) -> Job:
        return self._jobs[key]

    def keys(self) -> List[str]:
        return list(self._jobs)

    def jobs_of_kind(self, kind: JobKind) -> List[Job]:
        return [j for j in self._jobs.values() if j.kind is kind]

    def prerequisites_of(self, key: str) -> frozenset[str]:
        return frozenset(self._prereqs[key])

    def ordered_prerequisites_of(self, key: str) -> Tuple[str, ...]:
        return self._prereqs[key]

    def dependents_of(self, key: str) -> Tuple[str, ...]:
        """Jobs that list `key` as a prerequisite, in insertion order."""
        return tuple(self._dependents[key])

    def is_runnable(self, key: str, completed: AbstractSet[str]) -> bool:
        """True iff the job is pending and every prerequisite has succeeded."""
        job = self._jobs[key]
        if job.state is not JobState.PENDING:
            return False
        return all(p in completed for p in self._prereqs[key])
