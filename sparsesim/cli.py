"""Command-line interface for sparsesim."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import ConfigManager, DEFAULT_CONFIG_FILE, create_default_config_file
from .core.errors import SparseSimError, IngestionError
from .core.kernel import METRICS, get_metric
from .core.topk import TieBreak
from .io.loader import decode_record, load_corpus, parse_record
from .io.writer import write_results
from .performance.parallel import SimilarityScanner
from .utils.logging_setup import get_logger, log_operation, setup_logging


console = Console(stderr=True)
logger = get_logger(__name__)


def _fail(error: SparseSimError):
    console.print(f"[red]✗ {escape(error.message)}[/red]")
    logger.debug("Aborting run", exc_info=error)
    sys.exit(1)


@click.group(name="sparsesim")
@click.version_option(__version__, prog_name="sparsesim")
def cli():
    """Top-K similar items over a corpus of sparse vectors."""
    pass


@cli.command(name="scan")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("-k", "--top-k", "k", type=int, help="Neighbours kept per item (default: 50)")
@click.option("--limit", type=int, help="Only compute results for the first N items")
@click.option("--workers", type=int, help="Worker pool size (default: CPU count)")
@click.option("--processes/--threads", "use_processes", default=None,
              help="Use a process pool instead of threads")
@click.option("--chunk-size", type=int, help="Items per submitted task")
@click.option("--tie-break", type=click.Choice([t.value for t in TieBreak]),
              help="Policy for equal scores")
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to configuration file")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path),
              help="Write results here instead of stdout")
@click.option("--log-file-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Also write JSON logs to this directory")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def scan(path, k, limit, workers, use_processes, chunk_size, tie_break,
         config_path, output, log_file_dir, verbose):
    """Compute the most similar items for every item in PATH (JSON lines)."""
    try:
        config = ConfigManager(config_path, console=console).load()
        config = config.replace(
            k=k,
            limit=limit,
            workers=workers,
            use_processes=use_processes,
            chunk_size=chunk_size,
            tie_break=tie_break,
            log_level="DEBUG" if verbose else None
        )
    except SparseSimError as e:
        _fail(e)

    setup_logging(
        level=config.log_level,
        log_dir=log_file_dir,
        file=log_file_dir is not None
    )

    log_operation(logger, "start", f"START {path}", path=str(path))

    try:
        corpus = load_corpus(
            path,
            id_field=config.id_field,
            indices_field=config.indices_field,
            values_field=config.values_field
        )
    except SparseSimError as e:
        _fail(e)

    log_operation(logger, "intake", f"INTAKE COMPLETED ({len(corpus)} items)",
                  corpus_size=len(corpus))

    try:
        scanner = SimilarityScanner(
            corpus,
            k=config.k,
            limit=config.limit,
            tie_break=config.tie_break,
            max_workers=config.workers,
            use_processes=config.use_processes,
            chunk_size=config.chunk_size
        )
    except ValueError as e:
        _fail(SparseSimError(str(e)))

    try:
        if output is not None:
            try:
                stream = open(output, "w", encoding="utf-8")
            except OSError as e:
                raise IngestionError(f"cannot open output {output}: {e}", source=str(output)) from e
            with stream:
                write_results(scanner.scan(), stream)
        else:
            write_results(scanner.scan(), sys.stdout)
    except SparseSimError as e:
        _fail(e)

    stats = scanner.stats
    log_operation(
        logger,
        "done",
        f"DONE IN {stats.passes} PASSES OVER {len(corpus)} PRODUCTS, "
        f"TOTALING {stats.operations} OPERATIONS ({stats.elapsed:.2f}s)",
        passes=stats.passes,
        corpus_size=stats.corpus_size,
        operations=stats.operations,
        duration=stats.elapsed
    )


@cli.command(name="similarity")
@click.argument("first")
@click.argument("second")
@click.option("--metric", type=click.Choice(sorted(METRICS)), default="cosine",
              show_default=True, help="Score to compute")
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to configuration file (for input field names)")
def similarity(first, second, metric, config_path):
    """Score two vectors given as JSON objects in the configured record format."""
    try:
        config = ConfigManager(config_path, console=console).load()
        vectors = [
            decode_record(
                parse_record(raw),
                id_field=config.id_field,
                indices_field=config.indices_field,
                values_field=config.values_field
            )
            for raw in (first, second)
        ]
    except SparseSimError as e:
        _fail(e)

    click.echo(repr(get_metric(metric)(vectors[0], vectors[1])))


@cli.group(name="config")
def config_group():
    """Manage scan configuration."""
    pass


@config_group.command(name="init")
@click.option(
    "--path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_FILE,
    help="Path for config file"
)
def config_init(path):
    """Write a configuration file with default values."""
    if path.exists():
        if not click.confirm(f"Config file {path} already exists. Overwrite?"):
            console.print("[yellow]Aborted[/yellow]")
            return

    create_default_config_file(path)
    console.print(f"[green]✓ Created config file at {path}[/green]")


@config_group.command(name="show")
@click.option(
    "--path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to config file"
)
def config_show(path):
    """Display the effective configuration (file plus environment)."""
    manager = ConfigManager(path, console=console)
    try:
        manager.display(manager.load())
    except SparseSimError as e:
        _fail(e)


def main():
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
