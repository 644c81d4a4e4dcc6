"""Command-line interface for graphitereporter."""

import logging
import sys
import time
from pathlib import Path

import click

from graphitereporter.core.schedule import SimulatedSchedule
from graphitereporter.export.sinks import RecordingSink
from graphitereporter.metrics import MetricRegistry
from graphitereporter.metrics.runtime import register_runtime_metrics
from graphitereporter.orchestration import create_reporter
from graphitereporter.utils.config_validator import (
    build_config,
    load_config_file,
    validate_and_fix_config,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"])


def _load_config(config_file: str):
    return build_config(load_config_file(config_file))


@click.group()
@click.version_option(version="0.1.0", prog_name="graphitereporter")
def cli():
    """graphitereporter: periodic export of process metrics to Graphite."""
    pass


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
@click.option(
    "--duration", "-d", type=float, default=None,
    help="Seconds to run before stopping (default: until interrupted)"
)
@click.option("--log-level", "-l", type=LOG_LEVELS, default="INFO", help="Logging level")
def run(config_file: str, duration: float, log_level: str):
    """Report the runtime metrics of this process to Graphite."""
    logging.getLogger().setLevel(getattr(logging, log_level))

    try:
        config = _load_config(config_file)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not config.enabled:
        click.echo("Reporting is disabled in the configuration, nothing to do.")
        return

    registry = MetricRegistry()
    register_runtime_metrics(registry)
    preset = create_reporter(registry, config)

    click.echo(f"Reporting to {config.host}:{config.port} every {config.period_seconds}s (Ctrl-C to stop)")
    preset.init()
    try:
        if duration is not None:
            time.sleep(duration)
        else:
            while True:
                time.sleep(1)
    except KeyboardInterrupt:
        click.echo("\nStopping...")
    finally:
        preset.close()

    reporter = preset.reporter
    click.echo(
        f"Cycles: {reporter.cycles} ({reporter.failed_cycles} failed), "
        f"last cycle sent {reporter.last_sent} line(s)"
    )


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
@click.option("--cycles", "-n", type=click.IntRange(min=1), default=1, help="Number of cycles to simulate")
@click.option("--csv", "csv_path", type=click.Path(), default=None, help="Also save the lines as CSV")
@click.option("--log-level", "-l", type=LOG_LEVELS, default="WARNING", help="Logging level")
def preview(config_file: str, cycles: int, csv_path: str, log_level: str):
    """Show the lines a reporter would send, without connecting to Graphite."""
    logging.getLogger().setLevel(getattr(logging, log_level))

    try:
        config = _load_config(config_file)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    registry = MetricRegistry()
    register_runtime_metrics(registry)

    sink = RecordingSink()
    preset = create_reporter(registry, config, sink=sink)
    reporter = preset.build_reporter()
    schedule = SimulatedSchedule(reporter, config.period_seconds, start_time=int(time.time()))
    schedule.run(cycles)

    for line in sink.lines:
        click.echo(str(line), nl=False)
    click.echo(f"\n{len(sink.lines)} line(s) over {cycles} cycle(s)", err=True)

    if csv_path:
        output_path = Path(csv_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        sink.to_dataframe().to_csv(output_path, index=False)
        click.echo(f"Saved lines to {output_path}", err=True)


@cli.command()
@click.option(
    "--output", "-o", default="graphite.yaml",
    help="Output file path"
)
@click.option(
    "--format", "-f", type=click.Choice(["yaml", "json"]), default="yaml",
    help="Configuration file format"
)
def generate_config(output: str, format: str):
    """Generate an example configuration file."""
    example_config = {
        "graphite": {
            "host": "graphite.example.com",
            "port": 2003,
            "enabled": True,
            "preset": "cluster",
            "cluster_name": "production",
            "strip_prefixes": ["com.example"],
            "send_filter": "default",
            "period_seconds": 60,
            "rate_unit": "seconds",
            "duration_unit": "milliseconds",
        }
    }

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if format == "yaml":
        import yaml
        with open(output_path, "w") as f:
            yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
    else:
        import json
        with open(output_path, "w") as f:
            json.dump(example_config, f, indent=2)

    click.echo(f"Generated example configuration at {output_path}")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
def validate(config_file: str):
    """Validate a configuration file without starting a reporter."""
    click.echo(f"Validating configuration: {config_file}")

    try:
        is_valid, errors, _ = validate_and_fix_config(config_file)
    except Exception as e:
        click.echo(click.style(f"Error validating configuration: {e}", fg="red"))
        sys.exit(1)

    if is_valid:
        click.echo(click.style("✓ Configuration is valid", fg="green"))
    else:
        click.echo(click.style(f"✗ Configuration has {len(errors)} errors:", fg="red"))
        for i, error in enumerate(errors[:20], 1):
            click.echo(f"  {i}. {error}")
        if len(errors) > 20:
            click.echo(f"  ... and {len(errors) - 20} more errors")

    sys.exit(0 if is_valid else 1)


if __name__ == "__main__":
    cli()
