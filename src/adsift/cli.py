"""CLI entry point for AdSift."""

import logging
from pathlib import Path
from typing import Optional

import click

from adsift import __version__
from adsift.config import Settings
from adsift.filter import AdFilter
from adsift.models import FragmentDescriptor
from adsift.playlist import rewrite_playlist
from adsift.store import ConfigStore, ConfigStoreError, load_configuration

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(__version__, "--version", "-v", help="Show version and exit.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the saved filter configuration (JSON).",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx, config_path, verbose):
    """AdSift - detect and strip advertisement segments from HLS streams."""
    ctx.ensure_object(dict)
    settings = Settings()
    if config_path:
        settings.config_path = Path(config_path)
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj["settings"] = settings
    ctx.obj["store"] = ConfigStore(settings.config_path)


def _load(ctx):
    settings = ctx.obj["settings"]
    return load_configuration(settings.config_path, settings.disabled_rules)


def _save(ctx, config) -> None:
    try:
        ctx.obj["store"].save(config)
    except ConfigStoreError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.argument("url")
@click.option("--duration", type=float, default=None, help="Segment duration in seconds.")
@click.option("--title", default=None, help="Segment title.")
@click.option("--index", type=int, default=None, help="Segment position in the stream.")
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Override strict mode for this check.",
)
@click.pass_context
def check(
    ctx,
    url: str,
    duration: Optional[float],
    title: Optional[str],
    index: Optional[int],
    strict: Optional[bool],
) -> None:
    """Classify a single segment URL."""
    config = _load(ctx)
    if strict is not None:
        config.strict_mode = strict

    fragment = FragmentDescriptor(url=url, duration=duration, title=title, index=index)
    decision = AdFilter(config).explain(fragment)
    detection = decision.detection

    click.echo(click.style(f"Segment: {url}", fg="cyan", bold=True))
    if detection is None:
        click.echo("  Classifier: skipped (filtering disabled)")
    else:
        click.echo(
            f"  Classifier: {'ad' if detection.is_ad else 'content'} "
            f"({round(detection.confidence * 100)}%) - {detection.reason}"
        )
        if detection.ad_type:
            click.echo(f"  Ad type: {detection.ad_type}")

    verdict = click.style("AD", fg="red", bold=True) if decision.is_ad else click.style(
        "CONTENT", fg="green", bold=True
    )
    detail = f" via {decision.step}"
    if decision.rule_name:
        detail += f" ({decision.rule_name})"
    click.echo(f"  Verdict: {verdict}{detail}")


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--source", default=None, help="Playback source identifier (e.g. ruyi).")
@click.option("--output", type=click.Path(dir_okay=False), default=None, help="Output file path.")
@click.pass_context
def rewrite(ctx, file_path: str, source: Optional[str], output: Optional[str]) -> None:
    """Strip ad segments from an M3U8 manifest."""
    settings = ctx.obj["settings"]
    config = _load(ctx)
    try:
        manifest = Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read manifest {file_path}: {e}")
        raise click.ClickException(f"Failed to read manifest: {e}") from e

    result = rewrite_playlist(manifest, source or settings.source_id or None, config)

    if output:
        output_path = Path(output)
        try:
            result.to_file(output_path)
        except OSError as e:
            raise click.ClickException(f"Failed to write {output_path}: {e}") from e
        click.echo(
            click.style(
                f"✓ Removed {result.removed_segments} of {result.original_segments} "
                f"segment(s), saved to {output_path}",
                fg="green",
            )
        )
    else:
        click.echo(result.content)
        click.echo(
            f"Removed {result.removed_segments} of {result.original_segments} segment(s)",
            err=True,
        )


@cli.group()
def rules():
    """Inspect and edit ad rules."""


@rules.command("list")
@click.pass_context
def list_rules(ctx) -> None:
    """List rules in evaluation order."""
    config = _load(ctx)
    if not config.rules:
        click.echo("No rules configured")
        return

    for rule in config.rules:
        state = click.style("on ", fg="green") if rule.enabled else click.style("off", fg="red")
        window = ""
        if rule.duration_range:
            window = f" [{rule.duration_range.min:g}-{rule.duration_range.max:g}s]"
        click.echo(f"  {state} {rule.name} (priority {rule.priority}, {rule.match_type}){window}")
        if rule.url_patterns:
            click.echo(f"      url: {', '.join(rule.url_patterns)}")
        if rule.title_patterns:
            click.echo(f"      title: {', '.join(rule.title_patterns)}")


def _toggle(ctx, name: str, enabled: bool) -> None:
    config = ctx.obj["store"].load()
    ad_filter = AdFilter(config)
    if not ad_filter.toggle_rule(name, enabled):
        click.echo(click.style(f"Unknown rule: {name}", fg="yellow"))
        return
    _save(ctx, ad_filter.config)
    click.echo(f"Rule '{name}' {'enabled' if enabled else 'disabled'}")


@rules.command()
@click.argument("name")
@click.pass_context
def enable(ctx, name: str) -> None:
    """Enable a rule."""
    _toggle(ctx, name, True)


@rules.command()
@click.argument("name")
@click.pass_context
def disable(ctx, name: str) -> None:
    """Disable a rule."""
    _toggle(ctx, name, False)


@rules.command()
@click.argument("name")
@click.pass_context
def remove(ctx, name: str) -> None:
    """Remove a rule."""
    config = ctx.obj["store"].load()
    ad_filter = AdFilter(config)
    if not ad_filter.remove_rule(name):
        click.echo(click.style(f"Unknown rule: {name}", fg="yellow"))
        return
    _save(ctx, ad_filter.config)
    click.echo(f"Removed rule '{name}'")


@rules.command("reset")
@click.pass_context
def reset_rules(ctx) -> None:
    """Restore the default rule table."""
    config = ctx.obj["store"].load()
    ad_filter = AdFilter(config)
    ad_filter.registry.reset()
    _save(ctx, ad_filter.config)
    click.echo("Rules reset to defaults")


@cli.group("config")
def config_group():
    """Show and change the filter configuration."""


@config_group.command("show")
@click.pass_context
def show_config(ctx) -> None:
    """Show the current configuration."""
    config = _load(ctx)
    stats = AdFilter(config).stats()

    click.echo(click.style("Ad filter configuration:", fg="blue", bold=True))
    click.echo(f"  Enabled: {'yes' if config.enabled else 'no'}")
    click.echo(f"  Strict mode: {'yes' if config.strict_mode else 'no'}")
    click.echo(f"  Rules: {stats.enabled_rules}/{stats.rules} enabled")
    click.echo(f"  Built-in fallback rules: {stats.fallback_rules}")
    click.echo(f"  Max ad duration: {config.max_ad_duration:g}s")
    click.echo(f"  Min content duration: {config.min_content_duration:g}s")
    click.echo(
        f"  Skip pre/mid/post-roll: {config.skip_pre_roll}/"
        f"{config.skip_mid_roll}/{config.skip_post_roll}"
    )
    if config.source_ad_durations:
        for source, durations in sorted(config.source_ad_durations.items()):
            click.echo(f"  Source {source}: {', '.join(f'{d:g}' for d in durations)}s")


@config_group.command("set")
@click.option("--enabled/--disabled", default=None, help="Turn ad filtering on or off.")
@click.option("--strict/--no-strict", default=None, help="Turn strict mode on or off.")
@click.option("--max-ad-duration", type=float, default=None, help="Seconds.")
@click.option("--min-content-duration", type=float, default=None, help="Seconds.")
@click.pass_context
def set_config(
    ctx,
    enabled: Optional[bool],
    strict: Optional[bool],
    max_ad_duration: Optional[float],
    min_content_duration: Optional[float],
) -> None:
    """Change configuration fields."""
    changes = {
        key: value
        for key, value in {
            "enabled": enabled,
            "strict_mode": strict,
            "max_ad_duration": max_ad_duration,
            "min_content_duration": min_content_duration,
        }.items()
        if value is not None
    }
    if not changes:
        raise click.UsageError("Nothing to change")

    try:
        ctx.obj["store"].update(**changes)
    except ConfigStoreError as e:
        raise click.ClickException(str(e)) from e
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e
    click.echo(f"Updated: {', '.join(f'{k}={v}' for k, v in changes.items())}")


@config_group.command("reset")
@click.pass_context
def reset_config(ctx) -> None:
    """Restore the default configuration."""
    ctx.obj["store"].reset()
    click.echo("Configuration reset to defaults")
