import logging
import sys

from social_feed import create_app
from social_feed.extensions.extensions import socketio


logger = logging.getLogger(__name__)


def main():
    app = create_app()
    host = app.config["HOST"]
    port = app.config["PORT"]

    run_options = {}
    if app.config["SOCKETIO_ASYNC_MODE"] == "threading":
        run_options["allow_unsafe_werkzeug"] = True

    logger.info("Starting feed server on %s:%s", host, port)
    try:
        socketio.run(app, host=host, port=port, **run_options)
    except OSError as e:
        logger.critical("Could not bind real-time transport on %s:%s: %s", host, port, e)
        sys.exit(1)


if __name__ == "__main__":
    main()
