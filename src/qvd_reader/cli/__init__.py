import itertools
import logging
import sys

from dataclasses import dataclass
from pathlib import Path

import click

from click_option_group import (
    RequiredMutuallyExclusiveOptionGroup,
    optgroup,
)

from qvd_reader._version import get_version
from qvd_reader.document import QvdDocument
from qvd_reader.exceptions import InvalidValueError, QvdError
from qvd_reader.values import CellValue, FloatValue, TextValue, cell_value

from .formatters import format_rows, format_rows_json, format_summary


@dataclass
class CliContext:
    workers: int | None = None


def load_document(path: Path, workers: int | None) -> QvdDocument:
    """Decode a QVD file, turning decode errors into a clean exit."""
    try:
        return QvdDocument.from_file(path, max_workers=workers)
    except QvdError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)


def _query_value(
    text: str | None,
    integer: int | None,
    number: float | None,
) -> CellValue:
    if text is not None:
        return TextValue(text)
    if integer is not None:
        try:
            return cell_value(integer)
        except InvalidValueError as e:
            raise click.BadParameter(str(e), param_hint='--int') from e
    if number is not None:
        return FloatValue(number)
    raise click.UsageError('No value to search for')


qvd_file = click.argument(
    'file_path',
    metavar='FILE',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)


@click.group()
@click.version_option(version=get_version())
@click.option(
    '-v',
    '--verbose',
    count=True,
    help='Log decode progress (-v for info, -vv for debug)',
)
@click.option(
    '-w',
    '--workers',
    type=click.IntRange(min=1),
    default=None,
    help='Threads used to decode fields (default: automatic)',
)
@click.pass_context
def cli(ctx, verbose: int, workers: int | None):
    """qvd - pure-python QVD table reader"""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format='%(levelname)s %(name)s: %(message)s',
        )
    ctx.obj = CliContext(workers=workers)


@cli.command()
def version():
    """Show the qvd-reader version."""
    click.echo(get_version())


@cli.command()
@qvd_file
@click.pass_obj
def inspect(ctx: CliContext, file_path: Path):
    """Show table header and column summary of a QVD file."""
    document = load_document(file_path, ctx.workers)
    click.echo(format_summary(document))


@cli.command()
@qvd_file
@click.option(
    '-n',
    '--limit',
    type=click.IntRange(min=0),
    default=None,
    help='Print at most this many rows',
)
@click.option('--json', 'as_json', is_flag=True, help='Print rows as JSON records')
@click.pass_obj
def rows(ctx: CliContext, file_path: Path, limit: int | None, as_json: bool):
    """Print the rows of a QVD file."""
    document = load_document(file_path, ctx.workers)
    selected = itertools.islice(document.rows(), limit)

    if as_json:
        click.echo(format_rows_json(document.column_names, selected))
    else:
        click.echo(format_rows(document.column_names, selected))


@cli.command()
@qvd_file
@click.argument('column')
@optgroup.group(
    'Value to match',
    cls=RequiredMutuallyExclusiveOptionGroup,
    help='The cell value to search for; its type must match the stored symbol',
)
@optgroup.option('-t', '--text', help='Match a text value')
@optgroup.option('-i', '--int', 'integer', type=int, help='Match an integer value')
@optgroup.option('-f', '--float', 'number', type=float, help='Match a float value')
@click.option('--json', 'as_json', is_flag=True, help='Print rows as JSON records')
@click.pass_obj
def find(
    ctx: CliContext,
    file_path: Path,
    column: str,
    text: str | None,
    integer: int | None,
    number: float | None,
    as_json: bool,
):
    """Print the rows where COLUMN equals the given value."""
    document = load_document(file_path, ctx.workers)
    if column not in document.column_names:
        raise click.BadParameter(
            f'Column {column!r} not found. '
            f'Available columns: {", ".join(document.column_names)}',
            param_hint='COLUMN',
        )

    value = _query_value(text, integer, number)
    positions = document.find_row_indexes(column, value)
    selected = document.rows_by_indexes(positions)

    if as_json:
        click.echo(format_rows_json(document.column_names, selected))
    else:
        click.echo(format_rows(document.column_names, selected))


@cli.command()
@qvd_file
@click.option('--indent', type=int, default=2, help='JSON indentation')
@click.pass_obj
def dump(ctx: CliContext, file_path: Path, indent: int):
    """Dump the decoded document (header, dictionaries, indexes) as JSON."""
    document = load_document(file_path, ctx.workers)
    click.echo(document.to_json(indent=indent))


if __name__ == '__main__':
    cli()
