from __future__ import annotations

import asyncio
import datetime as dt
import json
import logging
import random
from pathlib import Path

import click
import uvicorn

from household_energy.api.server import create_app
from household_energy.config import load_app_config
from household_energy.errors import PlannerConfigError, UpstreamDataUnavailableError
from household_energy.lib.text_generation import HttpTextGenerationClient
from household_energy.models.config import AppConfig
from household_energy.planner.classifier import classify_device
from household_energy.plotting import plot_daily_costs
from household_energy.worker import PlanningService

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _common_options(func: click.Command) -> click.Command:
    func = click.option(
        "--config",
        type=click.Path(path_type=Path, dir_okay=False),
        default=Path("config.yaml"),
        show_default=True,
        help="Path to YAML config.",
    )(func)
    func = click.option(
        "--log-level",
        type=click.Choice(LOG_LEVELS, case_sensitive=False),
        default="INFO",
        show_default=True,
        help="Logging level.",
    )(func)
    return func


@click.group(context_settings={"help_option_names": ["-h", "--help"]}, invoke_without_command=True)
@_common_options
@click.pass_context
def cli(ctx: click.Context, config: Path, log_level: str) -> int | None:
    if ctx.invoked_subcommand:
        ctx.ensure_object(dict)
        ctx.obj["config"] = config
        ctx.obj["log_level"] = log_level
        return None

    _configure_logging(log_level)
    app_config = load_app_config(config)
    service = _build_service(app_config, offline=False)
    app = create_app(app_config=app_config, service=service)

    server = uvicorn.Server(
        config=uvicorn.Config(
            app,
            host=app_config.server.host,
            port=app_config.server.port,
            reload=False,
            log_level="info",
        )
    )
    asyncio.run(server.serve())
    return 0


@cli.command()
@click.option("--offline", is_flag=True, help="Skip network collaborators; use seasonal weather.")
@click.option("--seed", type=int, default=None, help="Seed for the weekly active-day selection.")
@click.option(
    "--start-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="First planning day (default: tomorrow).",
)
@click.option("--plot/--no-plot", default=False, help="Show a chart of daily cost per plan.")
@click.pass_context
def plan(
    ctx: click.Context,
    offline: bool,
    seed: int | None,
    start_date: dt.datetime | None,
    plot: bool,
) -> None:
    ctx.ensure_object(dict)
    _configure_logging(ctx.obj["log_level"])
    app_config = load_app_config(ctx.obj["config"])

    rng = random.Random(seed) if seed is not None else None
    service = _build_service(app_config, offline=offline, rng=rng)
    try:
        result = asyncio.run(
            service.generate(start_date=start_date.date() if start_date else None)
        )
    except (PlannerConfigError, UpstreamDataUnavailableError) as exc:
        raise click.ClickException(str(exc)) from exc

    if plot:
        try:
            plot_daily_costs(result.plans(), currency_symbol=app_config.budget.currency_symbol)
        except ImportError as exc:
            raise click.ClickException("matplotlib is required for --plot") from exc
    click.echo(
        json.dumps([persisted.to_json_dict() for persisted in result.persisted], indent=2)
    )


@cli.command()
@click.pass_context
def classify(ctx: click.Context) -> None:
    ctx.ensure_object(dict)
    _configure_logging(ctx.obj["log_level"])
    app_config = load_app_config(ctx.obj["config"])

    rows = []
    for device in app_config.devices:
        labels = classify_device(device.type, device.name)
        rows.append(
            {
                "id": device.id,
                "name": device.name,
                "type": device.type,
                "frequency": device.frequency,
                "weather_sensitivity": labels.weather_sensitivity,
                "emission_level": labels.emission_level,
                "emission_rating": labels.emission_rating,
            }
        )
    click.echo(json.dumps(rows, indent=2))


def _build_service(
    app_config: AppConfig,
    *,
    offline: bool,
    rng: random.Random | None = None,
) -> PlanningService:
    text_client = None
    if app_config.text_generation is not None and not offline:
        text_client = HttpTextGenerationClient(config=app_config.text_generation)
    return PlanningService(
        app_config=app_config,
        text_client=text_client,
        offline=offline,
        rng=rng,
    )


def _parse_log_level(level_str: str) -> int:
    normalized = level_str.strip().upper()
    mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    if normalized in mapping:
        return mapping[normalized]
    raise ValueError(f"Invalid log level: {level_str}")


def _configure_logging(level_str: str) -> None:
    log_level = _parse_log_level(level_str)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logging.getLogger("household_energy").setLevel(log_level)


if __name__ == "__main__":
    cli()
