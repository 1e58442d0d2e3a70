"""
Run command for pawndex.

Starts the daemon: periodic GitHub searches mark candidate repositories,
and a worker pool scrapes and classifies whatever is marked.
"""

import json
import logging
import signal
import threading

import click

from ..cli_utils import get_app, pretty_option, standard_command
from ..render import render_mapping

logger = logging.getLogger(__name__)


@click.command('run')
@click.option('--search-interval', type=float, default=None,
              help='Seconds between searches (default: daemon.search_interval_seconds)')
@click.option('--scrape-interval', type=float, default=None,
              help='Seconds between scrape ticks (default: daemon.scrape_interval_seconds)')
@click.option('--workers', type=click.IntRange(min=1), default=None,
              help='Concurrent scrapes (default: daemon.workers)')
@click.option('--no-initial-search', is_flag=True, help='Wait one interval before the first search')
@pretty_option
@click.pass_context
@standard_command()
def run_handler(ctx, search_interval, scrape_interval, workers, no_initial_search, pretty):
    """
    Run the search/scrape daemon until interrupted.

    Stops on SIGINT or SIGTERM. Scrapes already running finish or are
    cancelled at their next request; queued ones stay marked for the next
    run. The daemon's counters are printed on exit.

    \b
    Examples:
        pawndex run
        pawndex run --scrape-interval 30 --workers 8
        PAWNDEX_GITHUB_TOKEN=ghp_... pawndex run
    """
    app = get_app(ctx)

    overrides = {}
    if search_interval is not None:
        overrides['search_interval'] = search_interval
    if scrape_interval is not None:
        overrides['scrape_interval'] = scrape_interval
    if workers is not None:
        overrides['workers'] = workers
    if no_initial_search:
        overrides['search_on_start'] = False

    try:
        daemon = app.daemon(**overrides)
    except ValueError as e:
        raise click.BadParameter(str(e))

    stop = threading.Event()

    def _request_stop(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, shutting down")
        stop.set()

    previous = {sig: signal.signal(sig, _request_stop) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        stats = daemon.run(stop)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if pretty:
        render_mapping(stats.to_dict(), title="Daemon Stats")
    else:
        print(json.dumps(stats.to_dict()))
