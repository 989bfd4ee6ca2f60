"""
Command-line interface for tracksync.
"""
import json
from pathlib import Path

import click

from ..core.config import Config
from ..core.exceptions import TrackSyncError
from ..normalization.normalizer import normalize_playlist
from ..normalization.quality import filter_songs, generate_report
from ..storage.cache import ResultCache


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, verbose, debug):
    """Normalize, match and de-duplicate music track exports."""
    # Ensure context object exists
    ctx.ensure_object(dict)

    try:
        config = Config.from_dotenv()
        if debug:
            config.log_level = "DEBUG"
        elif verbose:
            config.log_level = "INFO"
        config.validate()
    except (TrackSyncError, ValueError) as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    config.setup_logging()
    ctx.obj["config"] = config


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--min-score",
    default=None,
    type=click.IntRange(0, 100),
    help="Minimum quality score (default: MIN_QUALITY_SCORE)",
)
@click.option(
    "--allow-low-confidence", is_flag=True, help="Keep tracks with low confidence"
)
@click.option(
    "--keep-invalid", is_flag=True, help="Do not reject tracks failing validation"
)
@click.pass_context
def analyze(ctx, file, min_score, allow_low_confidence, keep_invalid):
    """Normalize a JSON export of tracks and report on its quality."""
    config = ctx.obj["config"]

    try:
        with open(file, "r", encoding="utf-8") as f:
            records = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        click.echo(f"❌ Could not read {file}: {e}", err=True)
        ctx.exit(1)

    if not isinstance(records, list):
        click.echo(f"❌ Expected a JSON array of tracks in {file}", err=True)
        ctx.exit(1)

    tracks, stats = normalize_playlist(records)
    filtered = filter_songs(
        tracks,
        min_quality_score=min_score if min_score is not None else config.min_quality_score,
        allow_low_confidence=allow_low_confidence or config.allow_low_confidence,
        remove_invalid=not keep_invalid and config.remove_invalid,
    )
    report = generate_report(tracks)
    summary = report.summary

    click.echo(f"🎵 Analyzed {stats['total']} tracks from {file.name}")
    click.echo("\n📊 Quality Report:")
    click.echo(f"  Valid: {summary['valid']}")
    click.echo(f"  Invalid: {summary['invalid']}")
    click.echo(
        f"  Quality: {summary['high_quality']} high, "
        f"{summary['medium_quality']} medium, {summary['low_quality']} low"
    )
    click.echo(f"  With featured artists: {stats['features']}")
    click.echo(f"  With version info: {stats['versions']}")

    if report.issues:
        click.echo("\n⚠️  Issues:")
        for issue, count in sorted(report.issues.items()):
            click.echo(f"  {issue}: {count}")

    if report.warnings:
        click.echo("\n🔎 Warnings:")
        for warning, count in sorted(report.warnings.items()):
            click.echo(f"  {warning}: {count}")

    click.echo("\n🧹 Filtering:")
    click.echo(f"  Kept: {filtered.stats['valid']}")
    click.echo(f"  Invalid: {filtered.stats['invalid']}")
    click.echo(f"  Filtered: {filtered.stats['filtered']}")

    if report.recommendations:
        click.echo("\n💡 Recommendations:")
        for recommendation in report.recommendations:
            click.echo(f"  - {recommendation}")


@cli.group()
def cache():
    """Inspect or clear the search result cache."""


@cache.command("info")
@click.pass_context
def cache_info(ctx):
    """Show cache location and contents."""
    config = ctx.obj["config"]
    result_cache = ResultCache.from_config(config)
    entries = result_cache.load()

    matched = sum(1 for entry in entries.values() if entry.matched)
    click.echo(f"🗂  Cache file: {result_cache.path}")
    click.echo(f"  Enabled: {'✅ Yes' if config.cache_enabled else '❌ No'}")
    click.echo(f"  Entries: {len(entries)}")
    click.echo(f"  Matched: {matched}")
    click.echo(f"  Failed: {len(entries) - matched}")


@cache.command("clear")
@click.pass_context
def cache_clear(ctx):
    """Delete the cache file."""
    config = ctx.obj["config"]

    try:
        ResultCache.from_config(config).clear()
    except TrackSyncError as e:
        click.echo(f"❌ {e}", err=True)
        ctx.exit(1)

    click.echo("✅ Search cache cleared")


@cli.command()
@click.pass_context
def config_info(ctx):
    """Display configuration information."""
    config = ctx.obj["config"]

    click.echo("⚙️  Configuration:")
    click.echo(f"  Log level: {config.log_level}")
    click.echo(f"  Cache: {'✅ Enabled' if config.cache_enabled else '❌ Disabled'}")
    click.echo(f"  Cache file: {config.cache_file}")
    click.echo(f"  Batch size: {config.batch_size} (delay {config.batch_delay}s)")
    click.echo(f"  Search limit: {config.search_limit}")
    click.echo(f"  Match threshold: {config.match_threshold}")
    click.echo(
        f"  Retries: {config.max_retries} (base delay {config.retry_base_delay}s)"
    )
    click.echo(f"  Min quality score: {config.min_quality_score}")
    click.echo(f"  Allow low confidence: {config.allow_low_confidence}")
    click.echo(f"  Remove invalid: {config.remove_invalid}")

    # Check for .env file
    env_file = Path(".env")
    if env_file.exists():
        click.echo("  Environment file: ✅ Found (.env)")
    else:
        click.echo("  Environment file: ❌ Not found (.env)")


if __name__ == "__main__":
    cli()
