"""
Command Line Interface for ctrps.
"""
import os

import click
from jinja2 import TemplateError
from pydantic import ValidationError

from ..CONFIG.settings import load_settings
from ..CONVERTERS.record_formatter import RecordFormatter
from ..FILTERS.filter_factory import parse_filters
from ..LISTING.ps import ContainerLister
from ..MODELS.list_options import ContainerListOptions
from ..PARSERS.state_parser import StateParser
from ..RUNTIME.errors import CtrpsError
from ..UTILS.log_setup import configure_logging


@click.group()
@click.option('--state-file', '-S', default=None, help='Runtime state file (defaults to CTRPS_STATE_FILE)')
@click.option('--log-level', default=None, help='Log level (defaults to CTRPS_LOG_LEVEL)')
@click.pass_context
def cli(ctx, state_file, log_level):
    """
    ctrps - container listing.

    Lists the containers of a runtime described by a state file.
    """
    ctx.ensure_object(dict)
    try:
        settings = load_settings()
    except ValidationError as e:
        click.echo(f"Error: invalid settings: {e}")
        ctx.exit(1)
    configure_logging(log_level or settings.log_level)
    ctx.obj['settings'] = settings
    ctx.obj['file'] = state_file or settings.state_file


@cli.command()
@click.option('--all', '-a', 'all_', is_flag=True, help='Show all containers, not only running ones')
@click.option('--last', '-n', default=0, type=int, help='Show the n most recently created containers')
@click.option('--latest', '-l', is_flag=True, help='Show the most recently created container')
@click.option('--filter', '-f', 'filters', multiple=True, help='Filter output, e.g. status=exited')
@click.option('--size', '-s', is_flag=True, help='Show disk usage')
@click.option('--namespace', '--ns', is_flag=True, help='Show namespace identifiers')
@click.option('--pod', '-p', is_flag=True, help='Show pod names')
@click.option('--sync', is_flag=True, help='Sync container state with running processes first')
@click.option('--external', is_flag=True, help='Also list containers only present in storage')
@click.option('--quiet', '-q', is_flag=True, help='Only print container ids')
@click.option('--format', 'fmt', default='table', help='table, json, or a Jinja2 template')
@click.pass_context
def ps(ctx, all_, last, latest, filters, size, namespace, pod, sync, external, quiet, fmt):
    """List containers."""
    path = ctx.obj['file']
    if not os.path.exists(path):
        click.echo(f"Error: {path} not found.")
        ctx.exit(1)

    settings = ctx.obj['settings']
    try:
        formatter = None if quiet else RecordFormatter(fmt)
    except TemplateError as e:
        click.echo(f"Error: invalid format template: {e}")
        ctx.exit(1)

    try:
        runtime = StateParser().parse(path)
        options = ContainerListOptions(
            all=all_,
            last=1 if latest else last,
            filters=parse_filters(filters),
            size=size,
            namespace=namespace,
            pod=pod,
            sync=sync,
            external=external,
        )
        lister = ContainerLister(runtime, proc_root=settings.proc_root, workers=settings.workers)
        records = lister.list(options)
    except CtrpsError as e:
        click.echo(f"Error: {e}")
        ctx.exit(125)

    if quiet:
        for record in records:
            click.echo(record.id)
        return

    try:
        lines = formatter.render(records)
    except TemplateError as e:
        click.echo(f"Error: rendering format template: {e}")
        ctx.exit(1)
    for line in lines:
        click.echo(line)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
