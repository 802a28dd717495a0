# === FILE: backlink_scout/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point for BacklinkScout.

Commands:
  verify URL TOKEN  Verify ownership of URL, then discover backlinks and audit internal links
  config            Show the effective configuration

Common options:
  --config PATH       YAML/JSON config (default: configs/default.yaml when present)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string

verify options:
  --json PATH         Save the JSON result to a file
  --pretty            Indent JSON printed to stdout
  --timeout SEC       Timeout of the whole run (seconds)

Also:
  --version, -v       Show the BacklinkScout version

Example:
  backlink-scout verify https://www.example.com/ abcd1234567 --json reports/example.json
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from backlink_scout import __version__
from backlink_scout.config import load_config
from backlink_scout.engine import run_crawl
from backlink_scout.logger import init_logging
from backlink_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg="red", err=True)
    sys.exit(1)


def _echo_progress(stage, payload):
    if hasattr(payload, "to_dict"):
        payload = "report ready"
    click.echo(f"[{stage}] {payload}", err=True)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", "-v", message="BacklinkScout, version %(version)s")
@click.option(
    "--config", "-c", "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a YAML or JSON configuration file.",
)
@click.option(
    "--log-level", "log_level",
    default="INFO", show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Logging level",
)
@click.option(
    "--log-file", "log_file",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Log file path (stderr only when omitted)",
)
@click.option(
    "--log-format", "log_format",
    default="%(asctime)s %(levelname)s %(name)s %(message)s",
    show_default=True,
    help="Logging format string",
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """BacklinkScout command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format,
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f"Failed to load configuration: {e}")
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command("verify", context_settings=CONTEXT_SETTINGS)
@click.argument("url")
@click.argument("token")
@click.option(
    "--json", "-j", "json_output",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Save the JSON result to a file",
)
@click.option("--pretty", is_flag=True, help="Indent JSON output (2 spaces)")
@click.option(
    "--timeout", "run_timeout",
    type=float,
    default=None,
    help="Timeout of the whole run (seconds)",
)
@click.pass_context
def verify(ctx, url, token, json_output, pretty, run_timeout):
    """Verify ownership of URL with TOKEN and crawl it when verified."""
    cfg = ctx.obj["config"]
    click.echo(f"Verifying {url}", err=True)
    try:
        coro = run_crawl(cfg, url, token, _echo_progress)
        if run_timeout:
            result = asyncio.run(asyncio.wait_for(coro, timeout=run_timeout))
        else:
            result = asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f"Run did not finish within {run_timeout} seconds")

    if json_output:
        try:
            saved = render_json(result, json_output)
            click.echo(f"JSON result: {saved}", err=True)
        except Exception as e:
            print_error(f"Failed to save JSON: {e}")
    else:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2 if pretty else None))

    if not result.success:
        print_error(f"Run failed: {result.error}")


@cli.command("config", context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj["config"]
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
