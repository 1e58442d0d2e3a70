import json

import click

from ..config import get_config_path, load_config


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.option("--show-token", is_flag=True, help="Do not mask github.token")
@click.pass_context
def show_config(ctx, pretty, path, show_token):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = ctx.ensure_object(dict).get('config') or load_config()
    if not show_token and config.get('github', {}).get('token'):
        config = dict(config, github=dict(config['github'], token='***'))

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))
