"""Main CLI entry point for the content migration tool."""

import sys
import asyncio
from typing import List, Optional
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    MofNCompleteColumn,
)
from rich.table import Table

from .. import __version__
from ..config.config import Config
from ..migration.engine import ImportEngine, ImportSummary
from ..migration.exceptions import MigrationError
from ..migration.orchestrator import ImportedItem
from ..migration.planner import ImportPlanner
from ..models.source import ImportItem, ImportSource
from ..utils.logging import setup_logging

console = Console()

DEFAULT_CONFIG_PATHS = ['config.yaml', 'config.yml', '.kontent-migrate.yaml']


@click.group()
@click.version_option(version=__version__, prog_name='kontent-migrate')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Kontent Migration Tool - Import a project snapshot into a target project."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    # Basic logging until the configuration is loaded
    setup_logging('DEBUG' if verbose else 'WARNING')


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
@click.pass_context
def init(ctx: click.Context, output: str) -> None:
    """Initialize a new configuration file."""
    console.print(
        Panel.fit(
            '[bold green]Kontent Migration Tool[/bold green]\n'
            'Initializing configuration...',
            border_style='green',
        )
    )

    try:
        Config.create_template(output)

        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your target project details[/yellow]'
        )

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate the configuration and connectivity to the target project."""
    console.print(
        Panel.fit(
            '[bold cyan]Kontent Migration Tool[/bold cyan]\nValidating configuration...',
            border_style='cyan',
        )
    )

    try:
        config = _load_config(ctx)
        console.print('[green]✓[/green] Configuration validation completed')

        engine = ImportEngine(config)
        try:
            asyncio.run(engine._test_connectivity())
            project = engine.client.get_project_information()
        finally:
            engine.client.close()

        console.print('[green]✓[/green] Connectivity validation passed')
        if project.get('name'):
            console.print(f'[blue]Target project:[/blue] {project["name"]}')

    except Exception as e:
        console.print(f'[red]✗[/red] Validation failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.argument('snapshot', type=click.Path(exists=True))
@click.option(
    '--resolve-intra-kind-references',
    is_flag=True,
    help='Order content types by the types they allow',
)
@click.pass_context
def plan(ctx: click.Context, snapshot: str, resolve_intra_kind_references: bool) -> None:
    """Show the order in which SNAPSHOT would be imported."""
    try:
        source = ImportSource.from_file(snapshot)
        items = ImportPlanner(resolve_intra_kind_references).plan(source)

        _display_plan(items)
        console.print(
            f'\n[blue]{len(items)} items, '
            f'{len(source.binary_files)} binary files[/blue]'
        )

    except Exception as e:
        console.print(f'[red]✗[/red] Failed to plan import: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


@cli.command(name='import')
@click.argument('snapshot', type=click.Path(exists=True))
@click.option(
    '--skip-languages',
    is_flag=True,
    default=None,
    help='Do not create languages on the target project',
)
@click.option(
    '--failure-policy',
    type=click.Choice(['abort', 'continue']),
    default=None,
    help='Abort on the first rejected entity or record it and continue',
)
@click.pass_context
def import_(
    ctx: click.Context,
    snapshot: str,
    skip_languages: Optional[bool],
    failure_policy: Optional[str],
) -> None:
    """Import SNAPSHOT into the target project."""
    console.print(
        Panel.fit(
            '[bold blue]Kontent Migration Tool[/bold blue]\n'
            'Starting import process...',
            border_style='blue',
        )
    )

    try:
        config = _load_config(ctx)
        _setup_logging_with_config(ctx, config)

        overrides = {}
        if skip_languages:
            overrides['skip_languages'] = True
        if failure_policy:
            overrides['failure_policy'] = failure_policy
        if overrides:
            config = config.model_copy(
                update={
                    'import_': config.import_.model_validate(
                        {**config.import_.model_dump(), **overrides}
                    )
                }
            )

        source = ImportSource.from_file(snapshot)
        summary = asyncio.run(_run_import(config, source))

        console.print('[green]✓[/green] Import completed')
        _display_import_summary(summary)

        if summary.failures:
            sys.exit(2)

    except MigrationError as e:
        console.print(
            f'[red]✗[/red] Import failed after {len(e.results)} imported items: {e}'
        )
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)
    except Exception as e:
        console.print(f'[red]✗[/red] Import failed: {e}')
        if ctx.obj.get('verbose'):
            console.print_exception()
        sys.exit(1)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        if not Path(config_path).exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')
        return Config.from_file(config_path)

    for path in DEFAULT_CONFIG_PATHS:
        if Path(path).exists():
            return Config.from_file(path)

    try:
        return Config.from_env()
    except Exception:
        raise FileNotFoundError(
            'No configuration found. Use --config to specify a file or run '
            '"kontent-migrate init" to create one.'
        )


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)

    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(level=log_level, log_file=config.logging.file)


async def _run_import(config: Config, source: ImportSource) -> ImportSummary:
    """Run the import with a progress bar fed by the item callback."""
    engine = ImportEngine(config)
    total = sum(source.counts().values())

    with Progress(
        SpinnerColumn(),
        TextColumn('[progress.description]{task.description}'),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        task = progress.add_task('[blue]Importing...', total=total)

        def on_item_imported(item: ImportedItem) -> None:
            progress.update(
                task,
                advance=1,
                description=f'[blue]{item.kind.value}[/blue] {item.title}',
            )

        summary = await engine.import_from_source(source, on_item_imported)
        progress.update(task, completed=total, description='[green]Import completed')

    return summary


def _display_plan(items: List[ImportItem]) -> None:
    """Display the planned import order."""
    table = Table(title='Import Plan')
    table.add_column('#', style='dim', justify='right')
    table.add_column('Kind', style='cyan')
    table.add_column('Title', style='green')
    table.add_column('Source ID', style='blue')

    for position, item in enumerate(items, start=1):
        table.add_row(str(position), item.kind.value, item.title, item.entity.source_id)

    console.print(table)


def _display_import_summary(summary: ImportSummary) -> None:
    """Display import summary results."""
    table = Table(title='Import Summary')
    table.add_column('Kind', style='cyan')
    table.add_column('Total', style='blue')
    table.add_column('Imported', style='green')
    table.add_column('Failed', style='red')

    for kind, counts in summary.results_by_kind.items():
        table.add_row(
            kind,
            str(counts.get('total', 0)),
            str(counts.get('imported', 0)),
            str(counts.get('failed', 0)),
        )

    console.print(table)

    if summary.skipped:
        console.print(f'[yellow]Skipped items:[/yellow] {summary.skipped}')

    if summary.duration_seconds is not None:
        console.print(f'\n[blue]Import Duration:[/blue] {summary.duration_seconds:.1f}s')

    if summary.failures:
        console.print(f'\n[red]Failures ({len(summary.failures)}):[/red]')
        for failure in summary.failures[:5]:
            console.print(
                f'  • {failure.kind.value} {failure.title}: {failure.error_message}'
            )
        if len(summary.failures) > 5:
            console.print(f'  ... and {len(summary.failures) - 5} more failures')


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Import interrupted by user[/red]')
        sys.exit(1)


if __name__ == '__main__':
    main()
