import os
import shutil
import tempfile
import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from tests.support import FeedAppTestCase, image_file


class FakeMinio:
    def __init__(self):
        self.objects = {}
        self.removed = []

    def bucket_exists(self, bucket):
        return True

    def put_object(self, bucket_name, object_name, data, length, content_type, part_size=0):
        self.objects[object_name] = (data.read(), content_type)

    def remove_object(self, bucket, object_name):
        self.removed.append(object_name)


class FailingMinio:
    def bucket_exists(self, bucket):
        raise RuntimeError("storage down")


class TestImageStore(unittest.TestCase):
    def setUp(self):
        from social_feed.services.image_store import ImageStore, ImageStorageError

        self.ImageStorageError = ImageStorageError
        self.upload_dir = tempfile.mkdtemp()
        self.config = {
            "IMAGE_STORAGE": "local",
            "IMAGE_UPLOAD_FOLDER": self.upload_dir,
            "MINIO_BUCKET": "feed",
            "MEDIA_LOCAL_FALLBACK_ENABLED": True,
        }
        self.make_store = lambda **overrides: ImageStore({**self.config, **overrides})

    def tearDown(self):
        shutil.rmtree(self.upload_dir, ignore_errors=True)

    def test_accepts_only_supported_image_types(self):
        store = self.make_store()
        for mimetype in ("image/png", "image/jpg", "image/jpeg", "image/avif", "image/webp"):
            self.assertTrue(store.accepts(image_file("a.img", mimetype)), mimetype)
        self.assertFalse(store.accepts(image_file("a.gif", "image/gif")))
        self.assertFalse(store.accepts(image_file("", "image/png")))
        self.assertFalse(store.accepts(None))

    def test_local_save_uses_unique_sanitised_names(self):
        store = self.make_store()
        first = store.save(image_file("../My Holiday.png"))
        second = store.save(image_file("../My Holiday.png"))

        self.assertNotEqual(first, second)
        for url in (first, second):
            self.assertTrue(url.startswith("/images/"))
            self.assertTrue(url.endswith("-My_Holiday.png"))
            self.assertTrue(os.path.isfile(store.local_path(url.rsplit("/", 1)[-1])))

    def test_delete_is_best_effort(self):
        store = self.make_store()
        url = store.save(image_file())

        self.assertTrue(store.delete(url))
        self.assertFalse(os.listdir(self.upload_dir))

        with self.assertLogs("social_feed.services.image_store", level="WARNING"):
            self.assertFalse(store.delete(url))
        with self.assertLogs("social_feed.services.image_store", level="WARNING"):
            self.assertFalse(store.delete("/etc/passwd"))
        with self.assertLogs("social_feed.services.image_store", level="WARNING"):
            self.assertFalse(store.delete(None))

    def test_minio_backend_uploads_objects(self):
        store = self.make_store(IMAGE_STORAGE="minio")
        fake = FakeMinio()

        with patch.object(store, "minio", return_value=fake):
            url = store.save(image_file("pic.png", payload=b"png-bytes"))
            filename = url.rsplit("/", 1)[-1]
            self.assertEqual(fake.objects[f"images/{filename}"], (b"png-bytes", "image/png"))
            self.assertFalse(store.has_local(filename))

            self.assertTrue(store.delete(url))
            self.assertEqual(fake.removed, [f"images/{filename}"])

    def test_minio_failure_falls_back_to_local_disk(self):
        store = self.make_store(IMAGE_STORAGE="minio")

        with patch.object(store, "minio", return_value=FailingMinio()):
            url = store.save(image_file())

        self.assertTrue(store.has_local(url.rsplit("/", 1)[-1]))

    def test_minio_failure_without_fallback_raises(self):
        store = self.make_store(IMAGE_STORAGE="minio", MEDIA_LOCAL_FALLBACK_ENABLED=False)

        with patch.object(store, "minio", return_value=FailingMinio()):
            with self.assertRaises(self.ImageStorageError):
                store.save(image_file())


class TestMinioImageRoute(FeedAppTestCase):
    extra_config = {"IMAGE_STORAGE": "minio"}

    def _fake_minio(self, etag="etag-123"):
        captured = {"get_object_calls": 0}

        class FakeStat:
            content_type = "image/jpeg"
            size = 3
            last_modified = datetime(2026, 2, 25, 18, 0, 0, tzinfo=timezone.utc)

        FakeStat.etag = etag

        class FakeObject:
            closed = False
            released = False

            def stream(self, chunk_size):
                yield b"abc"

            def close(self):
                self.closed = True

            def release_conn(self):
                self.released = True

        fake_object = FakeObject()

        class FakeClient:
            def stat_object(self, bucket_name, object_name):
                captured["stat_object_name"] = object_name
                return FakeStat()

            def get_object(self, bucket_name, object_name):
                captured["get_object_calls"] += 1
                return fake_object

        return FakeClient(), captured, fake_object

    def test_streams_image_from_minio(self):
        client, captured, fake_object = self._fake_minio()
        store = self.app.extensions["image_store"]

        with patch.object(store, "minio", return_value=client):
            response = self.client.get("/images/abc-pic.jpg")
            body = response.data

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body, b"abc")
        self.assertEqual(response.mimetype, "image/jpeg")
        self.assertEqual(response.headers["ETag"], '"etag-123"')
        self.assertEqual(response.headers["Last-Modified"], "Wed, 25 Feb 2026 18:00:00 GMT")
        self.assertIn("max-age=", response.headers["Cache-Control"])
        self.assertEqual(captured["stat_object_name"], "images/abc-pic.jpg")
        self.assertTrue(fake_object.closed)
        self.assertTrue(fake_object.released)

    def test_head_and_conditional_requests_skip_the_body(self):
        client, captured, _ = self._fake_minio(etag="etag-789")
        store = self.app.extensions["image_store"]

        with patch.object(store, "minio", return_value=client):
            head = self.client.head("/images/abc-pic.jpg")
            cached = self.client.get("/images/abc-pic.jpg", headers={"If-None-Match": '"etag-789"'})

        self.assertEqual(head.status_code, 200)
        self.assertEqual(head.headers["Content-Length"], "3")
        self.assertEqual(cached.status_code, 304)
        self.assertEqual(captured["get_object_calls"], 0)


if __name__ == "__main__":
    unittest.main()
