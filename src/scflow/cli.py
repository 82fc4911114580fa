# cli.py
from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from .config import load_config
from .errors import ConfigError, WorkflowError
from .pipeline import Plan, build_plan
from .runner import DryRunRunner, LocalRunner
from .scheduler import JobScheduler
from .scripts import write_job_scripts
from .ui.console import Console, get_console, set_console


def _load_plan(ctx: click.Context, config_path: str, **overrides) -> Plan:
    """Config + graph construction; construction errors end the process."""
    console = get_console()
    try:
        config = load_config(config_path, **overrides)
        return build_plan(config)
    except ConfigError as e:
        console.print_error(
            "Invalid configuration",
            f"{e.source}: {e.message}",
            details=e.details,
        )
        sys.exit(1)
    except WorkflowError as e:
        console.print_error(
            "Workflow construction failed",
            str(e),
            suggestion=e.suggestion,
        )
        if ctx.obj.get("debug", False):
            console.print_exception(e)
        sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """scflow: per-sample quantification and per-group aggregation under a job cap."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.argument("config", type=click.Path(dir_okay=False))
@click.option("--json", "as_json", is_flag=True, default=False, help="Print job specs as JSON")
@click.pass_context
def plan(ctx, config, as_json):
    """Build the job graph and print it without running anything."""
    console = get_console()
    p = _load_plan(ctx, config)

    if as_json:
        click.echo(json.dumps({"jobs": [j.to_dict() for j in p.graph]}, indent=2))
        return

    console.print_header(f"PLAN: {p.config.project_label}")
    for job in p.graph:
        console.print_plan_job(job.key, job.argv, job.prerequisites)
    for m in p.manifests:
        console.print_info(f"\nmanifest {m.path}:")
        console.print_info(m.render().rstrip("\n"))


@cli.command()
@click.argument("config", type=click.Path(dir_okay=False))
@click.option("--max-jobs", default=None, type=click.IntRange(min=1), help="Override max_concurrent_jobs")
@click.option("--dry-run", is_flag=True, default=False, help="Print commands instead of running them")
@click.option(
    "--skip-existing/--no-skip-existing",
    default=True,
    show_default=True,
    help="Treat jobs whose outputs already exist as done",
)
@click.option("--report", default=None, type=click.Path(dir_okay=False), help="Write a JSON run report here")
@click.pass_context
def run(ctx, config, max_jobs, dry_run, skip_existing, report):
    """Run every quantify and aggregate job."""
    console = get_console()
    p = _load_plan(ctx, config, max_concurrent_jobs=max_jobs)
    cfg = p.config

    try:
        console.print_run_started(
            project=cfg.project_label,
            config=str(config),
            sample_count=len(p.samples),
            group_count=len(p.groups),
            max_jobs=cfg.max_concurrent_jobs,
        )

        if dry_run:
            runner = DryRunRunner()
        else:
            p.write_manifests()
            runner = LocalRunner(
                max_workers=cfg.max_concurrent_jobs,
                log_root=cfg.log_root,
                skip_existing=skip_existing,
            )

        with runner:
            result = JobScheduler(p.graph, runner, cfg.max_concurrent_jobs, console=console).run()

        console.print_results(result.summary())

        if report:
            report_path = Path(report)
            report_path.parent.mkdir(parents=True, exist_ok=True)
            report_path.write_text(json.dumps(result.to_dict(), indent=2) + "\n")
            console.print_info(f"Report written to {report_path}")

        if not result.ok:
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.argument("config", type=click.Path(dir_okay=False))
@click.option("--out-dir", required=True, type=click.Path(file_okay=False), help="Where to write job scripts")
@click.pass_context
def scripts(ctx, config, out_dir):
    """Write manifests, one shell script per job, and jobs.json."""
    console = get_console()
    p = _load_plan(ctx, config)
    try:
        manifests = p.write_manifests()
        written = write_job_scripts(p.graph, out_dir)
    except OSError as e:
        console.print_error("Could not write job scripts", str(e))
        sys.exit(1)

    for path in manifests + written:
        console.print_info(f"  wrote {path}")


if __name__ == "__main__":
    cli()
