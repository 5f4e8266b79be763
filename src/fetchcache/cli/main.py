"""Main CLI entry point for fetchcache.

Provides command-line access to the local file cache.
"""

import logging
import os
import sys
from datetime import datetime
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from fetchcache import CacheConfig, CachingFileTransferService, derive_cache_key
from fetchcache.cache.config import get_global_config
from fetchcache.cache.directory import ensure_cache_directory
from fetchcache.utils import normalize_path

# Global console for Rich output
console = Console()


def build_config(ctx_cache_dir: Optional[str] = None) -> CacheConfig:
    """Build cache configuration from multiple sources.

    Priority:
    1. Explicit --cache-dir/-C flag
    2. FETCHCACHE_CACHE_DIR environment variable
    3. Config file or defaults

    Args:
        ctx_cache_dir: Cache directory from CLI context

    Returns:
        CacheConfig instance
    """
    if ctx_cache_dir:
        return CacheConfig(cache_dir=ctx_cache_dir)

    env_cache_dir = os.environ.get("FETCHCACHE_CACHE_DIR")
    if env_cache_dir:
        return CacheConfig.from_env()

    return get_global_config()


@click.group()
@click.option(
    "--cache-dir",
    "-C",
    help="Cache directory or file:// URI (default: FETCHCACHE_CACHE_DIR or ~/.fetchcache)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, cache_dir, verbose):
    """fetchcache CLI - Fetch remote files through a local cache.

    Use --cache-dir/-C to choose the cache directory, or set the
    FETCHCACHE_CACHE_DIR environment variable.
    """
    ctx.ensure_object(dict)
    ctx.obj["cache_dir"] = cache_dir
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@cli.command("get")
@click.argument("src")
@click.argument("dst", type=click.Path())
@click.option("--stats", is_flag=True, help="Print cache statistics afterwards")
@click.pass_context
def get(ctx, src, dst, stats):
    """Copy the remote file SRC to the local path DST through the cache.

    Example:
        fetchcache get s3://bucket/data/input.csv ./input.csv
        fetchcache -C /tmp/cache get gs://bucket/model.bin model.bin --stats
    """
    try:
        service = CachingFileTransferService(config=build_config(ctx.obj.get("cache_dir")))
        service.materialize(src, dst)

        console.print(f"[green]✓[/green] Fetched {src} → {dst}")
        console.print(f"  [dim]Cached as:[/dim] {service.get_cache_path(src)}")

        if stats:
            table = Table(title="Cache statistics")
            table.add_column("Statistic", style="cyan")
            table.add_column("Value", justify="right", style="green")
            for name, value in service.get_stats().items():
                if isinstance(value, float):
                    value = f"{value:.3f}"
                table.add_row(name, str(value))
            console.print(table)

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        if e.__cause__ is not None:
            console.print(f"  Caused by: {e.__cause__}", style="red")
        sys.exit(1)


@cli.command("key")
@click.argument("paths", nargs=-1, required=True)
def key(paths):
    """Print the cache file name derived for each remote path.

    Local paths are resolved to absolute paths first, as get does.

    Example:
        fetchcache key s3://bucket/a.txt s3://bucket/b.txt
    """
    for path in paths:
        console.print(f"{derive_cache_key(normalize_path(path))}  {path}", highlight=False)


@cli.command("ls")
@click.pass_context
def ls(ctx):
    """List the files in the cache directory.

    Example:
        fetchcache ls
    """
    try:
        cache_dir = ensure_cache_directory(build_config(ctx.obj.get("cache_dir")).cache_dir)
        files = sorted(
            p for p in cache_dir.iterdir() if p.is_file() and p.name != "config.json"
        )

        if not files:
            console.print(f"[yellow]No cached files in {cache_dir}[/yellow]")
            return

        table = Table(title=f"Cached files ({len(files)})")
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Size", justify="right", style="green")
        table.add_column("Modified", style="blue")

        for path in files:
            stat = path.stat()
            modified = datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M")
            table.add_row(path.name, f"{stat.st_size:,}", modified)

        console.print(table)

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


if __name__ == "__main__":
    cli()
