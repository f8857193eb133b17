"""CLI interface for expobackoff"""

import logging
import random
from pathlib import Path
from typing import Optional

import click
import yaml

from expobackoff.domain.backoff import Exponential, ExponentialBackoffBuilder
from expobackoff.infrastructure.config.config_manager import ConfigManager, ConfigurationError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    for logger_name in logging.Logger.manager.loggerDict:
        logging.getLogger(logger_name).setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config_manager(ctx: click.Context) -> ConfigManager:
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _create_backoff(
    config_manager: ConfigManager,
    factor: Optional[float],
    interval: Optional[float],
    jitter: Optional[float],
    max_delay: Optional[float],
    no_max: bool,
    jitter_within_max: bool,
    seed: Optional[int],
) -> Exponential:
    """Create a backoff calculator from config with CLI overrides applied

    Args:
        config_manager: Configuration manager
        factor: Growth factor override
        interval: Base interval override in seconds
        jitter: Jitter override in seconds
        max_delay: Ceiling override in seconds
        no_max: Remove the ceiling
        jitter_within_max: Clamp to max after jitter
        seed: Seed for a deterministic jitter source

    Returns:
        Exponential backoff instance
    """
    builder = ExponentialBackoffBuilder.from_config(config_manager.get_backoff_config())
    if factor is not None:
        builder.factor(factor)
    if interval is not None:
        builder.interval(interval)
    if jitter is not None:
        builder.jitter(jitter)
    if no_max:
        builder.max(None)
    elif max_delay is not None:
        builder.max(max_delay)
    if jitter_within_max:
        builder.jitter_within_max()
    if seed is not None:
        builder.rng(random.Random(seed))
    return builder.build()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .backoff.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """expobackoff - exponential backoff delay calculator"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option(
    "--attempts",
    type=click.IntRange(min=0),
    default=6,
    show_default=True,
    help="Number of attempts to show, starting at attempt 0",
)
@click.option("--factor", type=float, help="Growth factor. Overrides config.")
@click.option("--interval", type=float, help="Base interval in seconds. Overrides config.")
@click.option("--jitter", type=float, help="Maximum jitter in seconds. Overrides config.")
@click.option("--max", "max_delay", type=float, help="Ceiling in seconds. Overrides config.")
@click.option("--no-max", is_flag=True, help="Remove the ceiling")
@click.option("--jitter-within-max", is_flag=True, help="Never exceed max, even with jitter")
@click.option("--seed", type=int, help="Seed the jitter source for reproducible output")
@click.option("--nominal", is_flag=True, help="Show delays without jitter")
@click.pass_context
def schedule(
    ctx,
    attempts: int,
    factor: Optional[float],
    interval: Optional[float],
    jitter: Optional[float],
    max_delay: Optional[float],
    no_max: bool,
    jitter_within_max: bool,
    seed: Optional[int],
    nominal: bool,
):
    """Print the backoff delay for each attempt."""
    config_manager = _load_config_manager(ctx)
    backoff = _create_backoff(
        config_manager, factor, interval, jitter, max_delay, no_max, jitter_within_max, seed
    )
    logger.debug(f"Using backoff: {backoff}")

    for attempt in range(attempts):
        delay = backoff.nominal(attempt) if nominal else backoff.duration(attempt)
        click.echo(f"attempt {attempt}: {delay.total_seconds():.6f}s")


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Print the effective backoff configuration as YAML."""
    config_manager = _load_config_manager(ctx)
    data = config_manager.config.model_dump(mode="json")
    click.echo(yaml.safe_dump(data, sort_keys=False).rstrip())


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
