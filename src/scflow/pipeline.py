# pipeline.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from . import groups as group_resolver
from .builders import AggregationJobBuilder, SampleJobBuilder
from .config import RunConfig
from .dag import DependencyGraph
from .inputs import InputMatcher, scan_directory
from .model import AggregationManifest, ExperimentGroup, Job, Sample
from .ui.console import get_console


@dataclass
class Plan:
    """Everything built before the first submission."""
    config: RunConfig
    samples: Tuple[Sample, ...]
    groups: Tuple[ExperimentGroup, ...]
    graph: DependencyGraph
    manifests: Tuple[AggregationManifest, ...]
    unassigned: Tuple[Path, ...] = ()

    def write_manifests(self) -> List[Path]:
        return [m.write() for m in self.manifests]


def build_plan(config: RunConfig, listing: Optional[Sequence[str | Path]] = None) -> Plan:
    """
    config -> samples -> quantify jobs -> groups -> aggregate jobs -> graph.

    Any construction error aborts here, before anything is submitted.
    `listing` defaults to a scan of the raw input directory.
    """
    raw_dir = config.raw_path
    if listing is None:
        listing = scan_directory(raw_dir)
    listing = [Path(p) for p in listing]

    matcher = InputMatcher(config.samples, suffixes=config.input_suffixes, directory=raw_dir)
    samples = tuple(matcher.build_sample(name, listing) for name in config.samples)

    graph = DependencyGraph()
    sample_builder = SampleJobBuilder(config)
    sample_builder.check_reference()

    quantify: Dict[str, Job] = {}
    for sample in samples:
        job = sample_builder.build(sample)
        graph.add_job(job)
        quantify[sample.name] = job

    groups = group_resolver.resolve(config.groups, config.samples)

    agg_builder = AggregationJobBuilder(config)
    manifests: List[AggregationManifest] = []
    for group in groups:
        job, manifest = agg_builder.build(group, quantify)
        graph.add_job(job)
        manifests.append(manifest)

    unassigned = tuple(matcher.unassigned(listing))
    console = get_console()
    for p in unassigned:
        console.print_warning(f"raw file not claimed by any declared sample: {p}")

    return Plan(
        config=config,
        samples=samples,
        groups=groups,
        graph=graph,
        manifests=tuple(manifests),
        unassigned=unassigned,
    )
