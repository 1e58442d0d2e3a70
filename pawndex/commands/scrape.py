import json

import click

from ..cli_utils import get_app, pretty_option, standard_command
from ..render import render_package, console


@click.command('scrape')
@click.argument('identifier')
@click.option('--save', is_flag=True, help='Store the verdict in the index')
@click.option('--timeout', type=float, default=None,
              help='Overall scrape timeout in seconds (default: daemon.scrape_timeout_seconds)')
@pretty_option
@click.pass_context
@standard_command()
def scrape_handler(ctx, identifier, save, timeout, pretty):
    """
    Scrape and classify one repository.

    IDENTIFIER is owner/name. Without --save nothing is written; with it,
    a cataloged verdict replaces the stored package and an invalid one
    clears the entry's pending flag.

    \b
    Examples:
        pawndex scrape Southclaws/samp-logger
        pawndex scrape Southclaws/samp-logger --save
    """
    app = get_app(ctx)
    result = app.scraper.scrape(identifier, timeout=timeout or app.scrape_timeout)

    if save:
        if result.is_cataloged:
            app.store.set(result.package)
        else:
            app.store.unmark(identifier)

    if pretty:
        if result.package is not None:
            render_package(result.package)
        else:
            console.print(f"[yellow]{identifier} is not a Pawn package.[/yellow]")
        return

    print(json.dumps({
        'identifier': result.identifier,
        'classification': result.classification.value,
        'package': result.package.to_dict() if result.package else None,
        'saved': save,
    }, ensure_ascii=False))
