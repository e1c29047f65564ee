"""
Flowplane — CLI entrypoint.

Usage:
    python -m flowplane.main --help
    python -m flowplane.main run
    python -m flowplane.main flows
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from flowplane import __version__
from flowplane.core.observability.logging_config import setup_logging

_STATUS_MARKERS = {
    "completed": ("✓", "green"),
    "failed": ("✗", "red"),
    "skipped": ("⊘", "yellow"),
}


@click.group()
@click.version_option(version=__version__, prog_name="flowplane")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to scenario.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Flowplane — run integration flows against a live platform."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("FLOWPLANE_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("FLOWPLANE_LOG_FILE"),
        log_file_level=os.environ.get("FLOWPLANE_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Show the plan but don't execute.")
@click.pass_context
def run(ctx: click.Context, as_json: bool, dry_run: bool) -> None:
    """Run the platform scenario, then tear it down.

    Examples:

        FLOWPLANE_ENABLED=1 flowplane run

        FLOWPLANE_ENABLED=1 FLOWPLANE_CLUSTERS=minikube flowplane run --dry-run
    """
    from flowplane.core.use_cases.run import run_scenario

    result = run_scenario(config_path=ctx.obj.get("config_path"), dry_run=dry_run)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if not result.enabled:
        click.secho("⊘ Scenario disabled — set FLOWPLANE_ENABLED or 'enabled: true'.", fg="yellow")
        return

    if result.clusters:
        click.echo(f"   Clusters: {', '.join(result.clusters)}")

    if result.plan is not None:
        click.secho("\n📋 [dry-run] platform scenario", fg="cyan", bold=True)
        for entry in result.plan:
            if entry.skip:
                click.secho(f"   ⊘ {entry.name}", fg="yellow", nl=False)
                click.echo("  (provided)")
                continue
            mode = " parallel" if entry.parallel else ""
            click.echo(f"   • {entry.name}  ×{entry.bindings}{mode}")
        click.echo()
        return

    report = result.report
    if report is None:
        return

    click.secho(f"\n⚡ {report.run_id}", fg="cyan", bold=True)
    for outcome in report.outcomes:
        marker, color = _STATUS_MARKERS.get(outcome.status.value, ("•", "white"))
        click.secho(f"   {marker} {outcome.name}", fg=color, nl=False)
        timing = f" ({outcome.duration_ms}ms)" if outcome.duration_ms else ""
        click.echo(timing)

    if report.failures:
        click.echo()
        click.secho("   Failures:", fg="red", bold=True)
        for failure in report.failures:
            _echo_failure(failure.flow, failure.message, ctx.obj.get("verbose", False))

    if report.rolled_back:
        click.echo()
        click.echo(f"   Rolled back: {', '.join(report.rolled_back)}")

    if report.rollback_failures:
        click.echo()
        click.secho("   Rollback failures:", fg="yellow", bold=True)
        for failure in report.rollback_failures:
            _echo_failure(failure.flow, failure.message, ctx.obj.get("verbose", False))

    click.echo()
    color = "green" if report.ok else "red"
    click.secho(f"   Result: {report.status}", fg=color, bold=True)
    click.echo()

    if not report.ok:
        sys.exit(1)


def _echo_failure(flow: str, message: str, verbose: bool) -> None:
    lines = message.splitlines() or [""]
    click.echo(f"     • {flow}: {lines[0]}")
    if verbose:
        for line in lines[1:20]:
            click.echo(f"       │ {line}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def flows(ctx: click.Context, as_json: bool) -> None:
    """List the scenario's flow sequence."""
    from flowplane.core.config.loader import ConfigError, load_scenario_config
    from flowplane.core.use_cases.run import scenario_flows

    try:
        config = load_scenario_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    sequence = scenario_flows(config)

    if as_json:
        click.echo(json.dumps([f.to_dict() for f in sequence], indent=2))
        return

    click.secho(f"\n📋 Flows: {len(sequence)}", fg="cyan", bold=True)
    for i, flow in enumerate(sequence, start=1):
        extras = []
        if flow.provides:
            extras.append(f"provides {', '.join(flow.provides)}")
        if flow.matrix:
            extras.append("matrix " + ", ".join(f"{k}←{v}" for k, v in flow.matrix.items()))
        if flow.parallel:
            extras.append("parallel")
        if flow.backward is not None:
            extras.append("rollback")
        suffix = f"  [{'; '.join(extras)}]" if extras else ""
        click.echo(f"   {i:2d}. {flow.name}{suffix}")
    click.echo()


@cli.command()
@click.pass_context
def clusters(ctx: click.Context) -> None:
    """List cluster backends and which ones are selected."""
    from flowplane.adapters.registry import available_backends, select_cluster_managers
    from flowplane.core.config.loader import ConfigError, build_environment, load_scenario_config

    try:
        config = load_scenario_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    selected = {m.name for m in select_cluster_managers(build_environment(config))}
    click.secho("\n☸ Cluster backends", fg="cyan", bold=True)
    for name in available_backends():
        marker = " ← selected" if name in selected else ""
        click.echo(f"   • {name}{marker}")
    click.echo()


if __name__ == "__main__":
    cli()
