# builders.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from .config import RunConfig
from .errors import InvalidReference, MissingPrerequisiteJob
from .model import (
    AggregationManifest,
    ExperimentGroup,
    Job,
    JobKind,
    Sample,
    job_key,
)

# vendor subcommands behind the two job kinds
SUBCOMMANDS = {
    JobKind.QUANTIFY: "count",
    JobKind.AGGREGATE: "aggr",
}

MOLECULE_INFO = Path("outs") / "molecule_info.h5"


def molecule_info_path(config: RunConfig, sample: str) -> Path:
    return config.results_root / sample / MOLECULE_INFO


def _resources(config: RunConfig) -> Tuple[List[str], Dict[str, int]]:
    args: List[str] = []
    res: Dict[str, int] = {}
    if config.local_cores is not None:
        args.append(f"--localcores={config.local_cores}")
        res["cores"] = config.local_cores
    if config.local_mem_gb is not None:
        args.append(f"--localmem={config.local_mem_gb}")
        res["mem_gb"] = config.local_mem_gb
    return args, res


class SampleJobBuilder:
    """Builds the per-sample quantification job. No side effects."""

    def __init__(self, config: RunConfig):
        self.config = config

    def check_reference(self) -> Path:
        ref = self.config.reference_path
        if not ref.exists():
            raise InvalidReference(path=ref)
        return ref

    def build(self, sample: Sample) -> Job:
        cfg = self.config
        ref = self.check_reference()
        res_args, res = _resources(cfg)

        inputs = sample.paths
        argv = [
            cfg.tool,
            SUBCOMMANDS[JobKind.QUANTIFY],
            f"--id={sample.name}",
            f"--transcriptome={ref}",
            "--fastqs=" + ",".join(str(p) for p in inputs),
            f"--sample={sample.name}",
            f"--description={cfg.project_label}",
            f"--maxjobs={cfg.max_concurrent_jobs}",
            *res_args,
            *cfg.extra_count_args,
        ]

        return Job(
            kind=JobKind.QUANTIFY,
            name=sample.name,
            argv=argv,
            cwd=cfg.results_root,
            inputs=list(inputs),
            outputs=[molecule_info_path(cfg, sample.name)],
            resources=res,
        )


class AggregationJobBuilder:
    """Builds one aggregation job (and its manifest) per experiment group."""

    def __init__(self, config: RunConfig):
        self.config = config

    def manifest_path(self, group: ExperimentGroup) -> Path:
        return self.config.aggregated_root / f"{group.name}.csv"

    def build(
        self,
        group: ExperimentGroup,
        sample_jobs: Mapping[str, Job],
    ) -> Tuple[Job, AggregationManifest]:
        """
        `sample_jobs` maps sample name -> its quantify Job.

        Prerequisites and manifest rows follow the group's member order.
        """
        cfg = self.config
        prerequisites: List[str] = []
        rows: List[Tuple[str, Path]] = []

        for member in group.members:
            qjob = sample_jobs.get(member)
            if qjob is None or qjob.kind is not JobKind.QUANTIFY:
                raise MissingPrerequisiteJob(
                    job=job_key(JobKind.AGGREGATE, group.name),
                    prerequisite=job_key(JobKind.QUANTIFY, member),
                )
            prerequisites.append(qjob.key)
            rows.append((member, qjob.outputs[0]))

        manifest = AggregationManifest(
            group=group.name,
            path=self.manifest_path(group),
            rows=tuple(rows),
        )

        res_args, res = _resources(cfg)
        argv = [
            cfg.tool,
            SUBCOMMANDS[JobKind.AGGREGATE],
            f"--id={group.name}",
            f"--csv={manifest.path}",
            f"--description={cfg.project_label}",
            f"--maxjobs={cfg.max_concurrent_jobs}",
            *res_args,
            *cfg.extra_aggr_args,
        ]

        job = Job(
            kind=JobKind.AGGREGATE,
            name=group.name,
            argv=argv,
            cwd=cfg.aggregated_root,
            prerequisites=prerequisites,
            inputs=[manifest.path],
            outputs=[cfg.aggregated_root / group.name / "outs" / "count" / "filtered_feature_bc_matrix.h5"],
            resources=res,
        )
        return job, manifest
