import io
import os
import shutil
import tempfile
import unittest

from werkzeug.datastructures import FileStorage


class FakeHub:
    """Stands in for BroadcastHub; records every published event."""

    def __init__(self, ready=True):
        self.ready = ready
        self.events = []

    def ensure_ready(self):
        if not self.ready:
            from social_feed.errors import HubNotReady
            raise HubNotReady("not attached")

    def publish(self, action, post):
        self.events.append({"action": action, "post": post})
        return 1


class FakeImageStore:
    """In-memory image store that remembers what it saved and deleted."""

    def __init__(self):
        self.saved = []
        self.deleted = []

    def accepts(self, file_storage):
        if file_storage is None or not getattr(file_storage, "filename", ""):
            return False
        return file_storage.mimetype in {"image/png", "image/jpeg", "image/jpg"}

    def save(self, file_storage):
        url = f"/images/{len(self.saved) + 1}-{file_storage.filename}"
        self.saved.append(url)
        return url

    def delete(self, image_url):
        self.deleted.append(image_url)
        return True


def image_file(filename="pic.png", mimetype="image/png", payload=b"fake-image-bytes"):
    return FileStorage(stream=io.BytesIO(payload), filename=filename, content_type=mimetype)


def image_upload(filename="pic.png", mimetype="image/png", payload=b"fake-image-bytes"):
    return (io.BytesIO(payload), filename, mimetype)


class FeedAppTestCase(unittest.TestCase):
    extra_config = {}

    @classmethod
    def setUpClass(cls):
        db_fd, cls.db_path = tempfile.mkstemp(suffix=".db")
        os.close(db_fd)
        cls.upload_dir = tempfile.mkdtemp()

        from social_feed import create_app
        from social_feed.db import db
        from social_feed.services import auth_service

        config = {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{cls.db_path}",
            "JWT_SECRET_KEY": "test-secret",
            "IMAGE_STORAGE": "local",
            "IMAGE_UPLOAD_FOLDER": cls.upload_dir,
            "LOG_LEVEL": "WARNING",
        }
        config.update(cls.extra_config)

        cls.app = create_app(config)
        cls.client = cls.app.test_client()
        cls.db = db
        cls.auth_service = auth_service
        cls.hub = cls.app.extensions["broadcast_hub"]

    @classmethod
    def tearDownClass(cls):
        with cls.app.app_context():
            cls.db.session.remove()
            cls.db.engine.dispose()
        if os.path.exists(cls.db_path):
            os.remove(cls.db_path)
        shutil.rmtree(cls.upload_dir, ignore_errors=True)

    def setUp(self):
        with self.app.app_context():
            self.db.drop_all()
            self.db.create_all()
        self.hub.clear()
        for name in os.listdir(self.upload_dir):
            os.remove(os.path.join(self.upload_dir, name))

    def _signup(self, email="alice@example.com", name="Alice", password="pass123"):
        with self.app.app_context():
            return self.auth_service.signup(email, password, name)

    def _token(self, user_id):
        from flask_jwt_extended import create_access_token

        with self.app.app_context():
            return create_access_token(identity=user_id)

    def _auth_header(self, user_id):
        return {"Authorization": f"Bearer {self._token(user_id)}"}

    def _create_post(self, headers, title="hello world", content="sample content", filename="pic.png"):
        return self.client.post(
            "/feed/post",
            data={
                "title": title,
                "content": content,
                "image": image_upload(filename),
            },
            headers=headers,
            content_type="multipart/form-data",
        )

    def _uploaded_files(self):
        return sorted(os.listdir(self.upload_dir))
