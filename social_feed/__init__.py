from datetime import timedelta

from flask import Flask

from social_feed.auth_guard import register_jwt_handlers
from social_feed.cli import register_cli
from social_feed.config import Config
from social_feed.db import db
from social_feed.errors import register_error_handlers
from social_feed.extensions.extensions import cors, jwt, ma, socketio
from social_feed.logging_config import configure_logging
from social_feed.routes.auth_routes import auth_bp
from social_feed.routes.feed_routes import feed_bp
from social_feed.routes.image_routes import image_bp
from social_feed.services.broadcast_hub import BroadcastHub
from social_feed.services.feed_service import FeedService
from social_feed.services.image_store import ImageStore
from social_feed.socket_events import register_socket_events


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    expires = app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    if isinstance(expires, int):
        app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(seconds=expires)

    configure_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    ma.init_app(app)
    jwt.init_app(app)
    register_jwt_handlers(jwt)
    cors.init_app(
        app,
        origins=app.config["CORS_ALLOWED_ORIGINS"],
        methods=["OPTIONS", "GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    origins = app.config["CORS_ALLOWED_ORIGINS"]
    register_socket_events()
    socketio.init_app(
        app,
        async_mode=app.config["SOCKETIO_ASYNC_MODE"],
        cors_allowed_origins="*" if "*" in origins else origins,
    )

    hub = BroadcastHub(socketio)
    image_store = ImageStore.from_app(app)
    app.extensions["broadcast_hub"] = hub
    app.extensions["image_store"] = image_store
    app.extensions["feed_service"] = FeedService(
        hub,
        image_store,
        per_page=app.config["FEED_PER_PAGE"],
    )

    register_error_handlers(app)
    register_cli(app)

    app.register_blueprint(feed_bp, url_prefix="/feed")
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(image_bp, url_prefix="/images")

    with app.app_context():
        db.create_all()

    return app
