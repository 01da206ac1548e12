import uuid
from datetime import datetime

from social_feed.db import db


DEFAULT_STATUS = "I am new!"


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    status = db.Column(db.String(255), nullable=False, default=DEFAULT_STATUS)

    # Ordered ids of owned posts. Kept in step with the posts table by the
    # feed service, never by a database cascade.
    post_ids = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def summary(self):
        return {"id": self.id, "name": self.name}
