"""
Lookup commands for pawndex: list, show, latest and pending.

These read the index only; they never contact GitHub.
"""

import json
import sys

import click

from ..cli_utils import get_app, output_result, pretty_option, standard_command
from ..lookup import latest_version, latest_version_bytes
from ..render import console, render_entries_table, render_package, render_packages_table


@click.command('list')
@click.option('--all', 'show_all', is_flag=True,
              help='Include entries still waiting for their first scrape')
@pretty_option
@click.pass_context
@standard_command()
def list_handler(ctx, show_all, pretty):
    """
    List indexed packages.

    By default only classified packages are listed. --all lists every
    entry, including pending ones with no package yet.
    """
    app = get_app(ctx)

    if show_all:
        entries = app.store.get_entries()
        if pretty:
            render_entries_table(entries)
        else:
            output_result(e.to_dict() for e in entries)
        return

    packages = app.packages()
    if pretty:
        render_packages_table(packages)
    else:
        output_result(p.to_dict() for p in packages)


@click.command('show')
@click.argument('identifier')
@pretty_option
@click.pass_context
@standard_command()
def show_handler(ctx, identifier, pretty):
    """Show one package. Exits 64 if it is not in the index."""
    package = get_app(ctx).package(identifier)
    if pretty:
        render_package(package)
    else:
        print(json.dumps(package.to_dict(), ensure_ascii=False))


@click.command('latest')
@click.argument('identifier')
@click.option('--raw', is_flag=True,
              help='Write three raw bytes (major, minor, patch) instead of JSON')
@click.pass_context
@standard_command()
def latest_handler(ctx, identifier, raw):
    """
    Show the latest version of a package.

    The latest version is the first tag GitHub lists. A package without
    tags prints a null version, or nothing at all with --raw.

    \b
    Examples:
        pawndex latest Southclaws/samp-logger
        pawndex latest Southclaws/samp-logger --raw | xxd
    """
    package = get_app(ctx).package(identifier)

    if raw:
        encoded = latest_version_bytes(package.tags)
        if encoded is not None:
            stdout = sys.stdout.buffer
            stdout.write(encoded)
            stdout.flush()
        return

    version = latest_version(package.tags)
    print(json.dumps({
        'identifier': package.identifier,
        'tag': package.latest_tag,
        'version': list(version) if version else None,
    }))


@click.command('pending')
@pretty_option
@click.pass_context
@standard_command()
def pending_handler(ctx, pretty):
    """List identifiers marked for scraping."""
    app = get_app(ctx)
    entries = app.store.get_entries(marked=True)
    if pretty:
        if entries:
            render_entries_table(entries, title=f"Pending scrapes ({len(entries)})")
        else:
            console.print("[green]Nothing pending.[/green]")
        return
    output_result({'identifier': e.identifier, 'updated_at': e.updated_at} for e in entries)
