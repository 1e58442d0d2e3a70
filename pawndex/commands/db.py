import json

import click

from ..cli_utils import pretty_option, standard_command
from ..database import PackageStore, get_db_path
from ..render import render_mapping


@click.group('db')
def db_cmd():
    """Index database commands."""
    pass


@db_cmd.command('info')
@pretty_option
@click.pass_context
@standard_command()
def info_handler(ctx, pretty):
    """Show the index database location, size and entry counts."""
    config = ctx.ensure_object(dict).get('config')
    info = PackageStore(get_db_path(config)).get_info()
    if pretty:
        render_mapping(info, title="Package Index")
    else:
        print(json.dumps(info))
