import logging
from threading import Lock

from social_feed.errors import HubNotReady


logger = logging.getLogger(__name__)


POSTS_CHANNEL = "posts"

ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"


class BroadcastHub:
    """Registry of connected real-time clients and fan-out of post events.

    Clients are keyed by their socket session id. Delivery is fire-and-forget:
    whoever is registered when ``publish`` runs gets the event once, and a
    client that connects later never sees it.
    """

    def __init__(self, socketio=None):
        self._socketio = None
        self._clients = {}
        self._lock = Lock()
        if socketio is not None:
            self.init_app(socketio)

    def init_app(self, socketio):
        self._socketio = socketio

    @property
    def ready(self) -> bool:
        return self._socketio is not None

    def ensure_ready(self):
        if not self.ready:
            raise HubNotReady("Broadcast hub is not attached to a transport")

    def register(self, sid, user_id):
        with self._lock:
            self._clients[sid] = user_id
            count = len(self._clients)
        logger.info("Client %s connected as user %s (%d online)", sid, user_id, count)

    def unregister(self, sid) -> bool:
        with self._lock:
            user_id = self._clients.pop(sid, None)
            count = len(self._clients)
        if user_id is None:
            return False
        logger.info("Client %s (user %s) disconnected (%d online)", sid, user_id, count)
        return True

    def is_connected(self, sid) -> bool:
        with self._lock:
            return sid in self._clients

    def connected_clients(self):
        with self._lock:
            return dict(self._clients)

    def clear(self):
        with self._lock:
            self._clients.clear()

    def publish(self, action, post) -> int:
        """Push ``{action, post}`` on the posts channel to every registered client."""
        self.ensure_ready()
        payload = {"action": action, "post": post}

        with self._lock:
            recipients = list(self._clients)

        delivered = 0
        for sid in recipients:
            try:
                self._socketio.emit(POSTS_CHANNEL, payload, to=sid)
                delivered += 1
            except Exception as e:
                logger.warning("Dropping %s event for client %s: %s", action, sid, e)

        logger.debug("Published %s event to %d/%d clients", action, delivered, len(recipients))
        return delivered
