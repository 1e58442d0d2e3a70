"""
Search command for pawndex.

Runs one search pass and marks the results for scraping, the same way the
daemon's search tick does.
"""

import click

from ..cli_utils import get_app, output_result, pretty_option, standard_command
from ..errors import InvalidIdentifierError
from ..exit_codes import API_ERROR, CommandError
from ..render import render_table


@click.command('search')
@click.argument('queries', nargs=-1)
@click.option('--dry-run', is_flag=True, help='List matches without marking them')
@pretty_option
@click.pass_context
@standard_command()
def search_handler(ctx, queries, dry_run, pretty):
    """
    Search GitHub for Pawn repositories and mark them for scraping.

    QUERIES are GitHub repository search queries; the configured
    search.queries are used when none are given.

    \b
    Examples:
        pawndex search
        pawndex search "topic:pawn-package" --dry-run
        pawndex search "language:pawn stars:>10"
    """
    app = get_app(ctx)
    queries = queries or app.queries

    result = app.searcher.search(queries)
    for query, error in result.errors.items():
        click.echo(f"Warning: query '{query}' failed: {error}", err=True)

    rows = []
    for identifier in sorted(result.identifiers):
        marked = False
        if not dry_run:
            try:
                app.store.mark_for_scrape(identifier)
                marked = True
            except InvalidIdentifierError as e:
                click.echo(f"Warning: {e}", err=True)
        rows.append({'identifier': identifier, 'marked': marked})

    if pretty:
        render_table(
            ["Identifier", "Marked"],
            [[r['identifier'], "✓" if r['marked'] else ""] for r in rows],
            title=f"Search results ({len(rows)})",
        )
    else:
        output_result(rows)

    if result.errors and not result.identifiers:
        raise CommandError("every search query failed", API_ERROR)
