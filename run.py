from gevent import monkey
monkey.patch_all()

import logging

import click

from blocker import create_app, socketio, start_background
from blocker.config import Config
from blocker.coordinator.steam_link import SteamLink


@click.command()
@click.option('--host', default=None, help='Interface to bind the control API to.')
@click.option('--port', default=None, type=int, help='Port for the control API.')
def serve(host, port):
    """Log into Steam, start the coordinator session and serve the control API."""
    if not Config.STEAM_USERNAME or not Config.STEAM_PASSWORD:
        raise click.UsageError('STEAM_USERNAME and STEAM_PASSWORD must be set')

    link = SteamLink(
        Config.STEAM_USERNAME,
        Config.STEAM_PASSWORD,
        app_id=Config.APP_ID,
        two_factor_code=Config.STEAM_TWO_FACTOR_CODE,
        reconnect_max_delay=Config.RECONNECT_MAX_DELAY_SEC,
        # Same logger Flask hands out as app.logger
        logger=logging.getLogger('blocker'),
    )
    app = create_app(Config, link=link)

    start_background(app)
    host = host or app.config['HOST']
    port = port or app.config['PORT']
    app.logger.info(f"Listening on {port}")
    socketio.run(app, host=host, port=port)


if __name__ == '__main__':
    serve()
