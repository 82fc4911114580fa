from __future__ import annotations

import pytest
from pydantic import ValidationError

from scflow.config import DEFAULT_INPUT_SUFFIXES, load_config, parse_config
from scflow.errors import ConfigError

BASIC = """\
output_root: out
project_label: pbmc_2024
reference_path: refdata/GRCh38
samples:
  - sample_1
  - sample_10
groups:
  - sample_1,sample_10
max_concurrent_jobs: 4
"""


def test_load_yaml_resolves_relative_paths(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(BASIC)

    cfg = load_config(cfg_file)
    assert cfg.output_root == (tmp_path / "out").resolve()
    assert cfg.reference_path == (tmp_path / "refdata" / "GRCh38").resolve()
    assert cfg.samples == ["sample_1", "sample_10"]
    assert cfg.groups == ["sample_1,sample_10"]
    assert cfg.max_concurrent_jobs == 4
    assert cfg.raw_path == cfg.output_root / "raw"
    assert cfg.tool == "cellranger"
    assert cfg.input_suffixes == DEFAULT_INPUT_SUFFIXES


def test_overrides_win_and_none_is_ignored(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(BASIC)
    assert load_config(cfg_file, max_concurrent_jobs=1).max_concurrent_jobs == 1
    assert load_config(cfg_file, max_concurrent_jobs=None).max_concurrent_jobs == 4


def test_config_is_immutable(tmp_path):
    cfg = parse_config(
        {"output_root": "/o", "project_label": "p", "reference_path": "/r", "samples": ["a"]},
    )
    with pytest.raises(ValidationError):
        cfg.max_concurrent_jobs = 5


@pytest.mark.parametrize(
    "patch, fragment",
    [
        ({"max_concurrent_jobs": 0}, "max_concurrent_jobs"),
        ({"samples": []}, "samples"),
        ({"samples": ["a", "a"]}, "duplicate"),
        ({"samples": ["a,b"]}, "commas"),
        ({"project_label": ""}, "project_label"),
        ({"unknown_key": 1}, "unknown_key"),
    ],
)
def test_invalid_values(patch, fragment):
    data = {"output_root": "/o", "project_label": "p", "reference_path": "/r", "samples": ["a"]}
    data.update(patch)
    with pytest.raises(ConfigError) as exc:
        parse_config(data, source="test.yaml")
    assert fragment in str(exc.value)
    assert "test.yaml" in str(exc.value)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="cannot read file"):
        load_config(tmp_path / "nope.yaml")


def test_bad_yaml(tmp_path):
    p = tmp_path / "c.yaml"
    p.write_text("samples: [a, b\n")
    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(p)


def test_top_level_must_be_mapping(tmp_path):
    p = tmp_path / "c.yaml"
    p.write_text("- a\n- b\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(p)
