from __future__ import annotations

import json
import os

from scflow.pipeline import build_plan
from scflow.scripts import write_job_scripts

from conftest import touch_fastqs


def test_one_script_per_job_and_index(make_config, tmp_path):
    cfg = make_config(["a", "b"], groups=["a,b"], max_jobs=3)
    touch_fastqs(cfg.raw_path, "a")
    touch_fastqs(cfg.raw_path, "b")
    plan = build_plan(cfg)

    written = write_job_scripts(plan.graph, tmp_path / "jobs")
    names = [p.name for p in written]
    assert names == ["quantify_a.sh", "quantify_b.sh", "aggregate_a_b.sh", "jobs.json"]

    script = (tmp_path / "jobs" / "aggregate_a_b.sh").read_text()
    assert script.startswith("#!/usr/bin/env bash\nset -euo pipefail\n")
    assert "# needs: quantify:a quantify:b" in script
    assert "cellranger aggr --id=a_b" in script
    assert "--maxjobs=3" in script
    assert os.access(tmp_path / "jobs" / "quantify_a.sh", os.X_OK)

    index = json.loads((tmp_path / "jobs" / "jobs.json").read_text())["jobs"]
    assert [j["key"] for j in index] == ["quantify:a", "quantify:b", "aggregate:a_b"]
    assert index[2]["command"] == "aggregate"
    assert index[2]["prerequisites"] == ["quantify:a", "quantify:b"]
    assert index[0]["script"] == "quantify_a.sh"
