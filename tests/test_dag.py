from __future__ import annotations

from pathlib import Path

import pytest

from scflow.dag import DependencyGraph
from scflow.errors import DuplicateJob, MissingPrerequisiteJob, UnsupportedDependencyShape
from scflow.model import Job, JobKind, JobState


def q(name):
    return Job(kind=JobKind.QUANTIFY, name=name, argv=["true"], cwd=Path("."))


def agg(name, *members):
    return Job(
        kind=JobKind.AGGREGATE,
        name=name,
        argv=["true"],
        cwd=Path("."),
        prerequisites=[f"quantify:{m}" for m in members],
    )


def test_prerequisites_and_dependents():
    g = DependencyGraph([q("a"), q("b"), agg("a_b", "a", "b"), agg("b", "b")])
    assert g.prerequisites_of("aggregate:a_b") == {"quantify:a", "quantify:b"}
    assert g.ordered_prerequisites_of("aggregate:a_b") == ("quantify:a", "quantify:b")
    assert g.prerequisites_of("quantify:a") == frozenset()
    assert g.dependents_of("quantify:b") == ("aggregate:a_b", "aggregate:b")
    assert g.keys() == ["quantify:a", "quantify:b", "aggregate:a_b", "aggregate:b"]
    assert [j.key for j in g.jobs_of_kind(JobKind.AGGREGATE)] == ["aggregate:a_b", "aggregate:b"]


def test_aggregate_not_runnable_until_all_prerequisites_succeed():
    g = DependencyGraph([q("a"), q("b"), agg("a_b", "a", "b")])
    assert g.is_runnable("quantify:a", set())
    assert not g.is_runnable("aggregate:a_b", set())
    assert not g.is_runnable("aggregate:a_b", {"quantify:a"})
    assert g.is_runnable("aggregate:a_b", {"quantify:a", "quantify:b"})


def test_only_pending_jobs_are_runnable():
    g = DependencyGraph([q("a")])
    g["quantify:a"].state = JobState.RUNNING
    assert not g.is_runnable("quantify:a", set())


def test_aggregate_on_aggregate_rejected():
    g = DependencyGraph([q("a"), agg("a", "a")])
    bad = Job(
        kind=JobKind.AGGREGATE,
        name="meta",
        argv=["true"],
        cwd=Path("."),
        prerequisites=["quantify:a", "aggregate:a"],
    )
    with pytest.raises(UnsupportedDependencyShape) as exc:
        g.add_job(bad)
    assert "aggregate:a" in str(exc.value)
    assert "aggregate:meta" not in g


def test_quantify_with_prerequisites_rejected():
    g = DependencyGraph([q("a")])
    bad = q("b")
    bad.prerequisites = ["quantify:a"]
    with pytest.raises(UnsupportedDependencyShape):
        g.add_job(bad)


def test_unknown_prerequisite_rejected():
    g = DependencyGraph([q("a")])
    with pytest.raises(MissingPrerequisiteJob) as exc:
        g.add_job(agg("a_b", "a", "b"))
    assert exc.value.prerequisite == "quantify:b"


def test_duplicate_key_rejected():
    g = DependencyGraph([q("a")])
    with pytest.raises(DuplicateJob):
        g.add_job(q("a"))


def test_single_member_group_does_not_collide_with_sample():
    g = DependencyGraph([q("a"), agg("a", "a")])
    assert len(g) == 2


def test_sealed_graph_rejects_new_jobs():
    g = DependencyGraph([q("a")])
    g.seal()
    with pytest.raises(RuntimeError):
        g.add_job(q("b"))
