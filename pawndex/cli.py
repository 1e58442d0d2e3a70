#!/usr/bin/env python3

import click

from pawndex.config import configure_logging, load_config
from pawndex.exit_codes import ConfigError, exit_with_code
from pawndex.commands.run import run_handler
from pawndex.commands.search import search_handler
from pawndex.commands.scrape import scrape_handler
from pawndex.commands.packages import latest_handler, list_handler, pending_handler, show_handler

# Command groups
from pawndex.commands.config import config_cmd
from pawndex.commands.db import db_cmd


@click.group()
@click.version_option(package_name='pawndex')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              default=None, help='Override logging.level from the config')
@click.option('-v', '--verbose', is_flag=True, help='Shortcut for --log-level DEBUG')
@click.pass_context
def cli(ctx, log_level, verbose):
    """pawndex - Index of Pawn packages hosted on GitHub.

    Searches GitHub for Pawn repositories, classifies each one by how well
    it follows the package layout and keeps the results in a local index.
    """
    obj = ctx.ensure_object(dict)
    if 'config' not in obj:
        obj['config'] = load_config()

    try:
        configure_logging(obj['config'], 'DEBUG' if verbose else log_level)
    except ConfigError as e:
        exit_with_code(e.exit_code, f"Error: {e}")


# Daemon and one-shot operations
cli.add_command(run_handler, name='run')
cli.add_command(search_handler, name='search')
cli.add_command(scrape_handler, name='scrape')

# Lookups
cli.add_command(list_handler, name='list')
cli.add_command(show_handler, name='show')
cli.add_command(latest_handler, name='latest')
cli.add_command(pending_handler, name='pending')

# Command groups
cli.add_command(db_cmd)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
