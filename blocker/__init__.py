import logging

from flask import Flask
from flask_socketio import SocketIO

from blocker.config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, link=None, timer_factory=None, clock=None, terminate=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    _configure_logging(flask_app)

    socketio.init_app(flask_app)

    from blocker.services.registry import TargetRegistry, now_ms
    from blocker.services.session import SessionMachine
    from blocker.services.timers import socketio_timer_factory
    from blocker.socketio_events import broadcast_session, broadcast_targets, register_socketio_handlers

    registry = TargetRegistry(
        max_users=int(flask_app.config['MAX_USERS']),
        max_ttl=int(flask_app.config['MAX_LENGTH']),
        clock=clock or now_ms,
        on_change=broadcast_targets,
        logger=flask_app.logger,
    )
    session_kwargs = {}
    if terminate is not None:
        session_kwargs['terminate'] = terminate
    session = SessionMachine(
        link,
        registry,
        timer_factory=timer_factory or socketio_timer_factory(socketio, logger=flask_app.logger),
        app_id=int(flask_app.config['APP_ID']),
        game_type=int(flask_app.config['GAME_TYPE']),
        hello_interval=float(flask_app.config['HELLO_INTERVAL_SEC']),
        block_interval=float(flask_app.config['BLOCK_INTERVAL_SEC']),
        logger=flask_app.logger,
        on_change=broadcast_session,
        **session_kwargs,
    )
    flask_app.extensions['blocker.registry'] = registry
    flask_app.extensions['blocker.session'] = session

    from blocker.api.targets import targets
    flask_app.register_blueprint(targets)

    register_socketio_handlers()

    return flask_app


def start_background(flask_app) -> bool:
    """Start the session event loop and bring the coordinator link up.

    No-ops in TESTING mode, where tests drive the session themselves.
    """
    if flask_app.config.get('TESTING'):
        flask_app.logger.info("[session] TESTING set, background loops not started")
        return False
    session = flask_app.extensions['blocker.session']
    if session.link is None:
        raise RuntimeError('No coordinator link attached to the session')
    socketio.start_background_task(session.run)
    socketio.start_background_task(session.link.connect)
    return True


def _configure_logging(flask_app) -> None:
    if flask_app.config.get('LOGGING', True):
        level = logging.getLevelName(str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper())
        if not isinstance(level, int):
            level = logging.INFO
    else:
        level = logging.ERROR
    flask_app.logger.setLevel(level)
