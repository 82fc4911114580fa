# scripts.py
from __future__ import annotations

import json
import shlex
from pathlib import Path
from typing import List

from .dag import DependencyGraph
from .model import Job

JOBS_INDEX = "jobs.json"


def script_name(job: Job) -> str:
    return f"{job.kind.value}_{job.name}.sh"


def render_script(job: Job) -> str:
    lines = [
        "#!/usr/bin/env bash",
        "set -euo pipefail",
        f"# key: {job.key}",
    ]
    if job.prerequisites:
        lines.append(f"# needs: {' '.join(job.prerequisites)}")
    lines.append(f"mkdir -p {shlex.quote(str(job.cwd))}")
    lines.append(f"cd {shlex.quote(str(job.cwd))}")
    lines.append(shlex.join(job.argv))
    return "\n".join(lines) + "\n"


def write_job_scripts(graph: DependencyGraph, out_dir: str | Path) -> List[Path]:
    """
    One executable script per job, plus jobs.json with every job spec in
    declaration order (script file names included) for an external runner.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    index = []
    for job in graph:
        path = out / script_name(job)
        path.write_text(render_script(job))
        path.chmod(0o755)
        written.append(path)

        spec = job.to_dict()
        spec["script"] = path.name
        index.append(spec)

    index_path = out / JOBS_INDEX
    index_path.write_text(json.dumps({"jobs": index}, indent=2) + "\n")
    written.append(index_path)
    return written
