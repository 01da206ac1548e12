import logging
import os
import uuid
from threading import Lock

import urllib3
from minio import Minio
from minio.error import S3Error
from werkzeug.utils import secure_filename


logger = logging.getLogger(__name__)


ALLOWED_IMAGE_MIME_TYPES = {
    "image/png",
    "image/jpg",
    "image/jpeg",
    "image/avif",
    "image/webp",
}

URL_PREFIX = "/images/"
OBJECT_PREFIX = "images/"


class ImageStorageError(Exception):
    pass


def filename_from_url(image_url):
    if not isinstance(image_url, str) or not image_url.startswith(URL_PREFIX):
        return None
    filename = image_url[len(URL_PREFIX):]
    if not filename or filename != secure_filename(filename):
        return None
    return filename


class ImageStore:
    """Keeps uploaded post images on disk or in a MinIO bucket.

    Every stored image is addressed as ``/images/<filename>`` regardless of
    the backend, so post records never change when the backend does.
    """

    def __init__(self, config):
        self.backend = config.get("IMAGE_STORAGE", "local")
        self.upload_folder = config["IMAGE_UPLOAD_FOLDER"]
        self.bucket = config.get("MINIO_BUCKET", "feed")
        self.local_fallback_enabled = bool(
            config.get("MEDIA_LOCAL_FALLBACK_ENABLED", True)
        )
        self._config = config
        self._minio_client = None
        self._minio_lock = Lock()

    @classmethod
    def from_app(cls, app):
        return cls(app.config)

    def accepts(self, file_storage) -> bool:
        if file_storage is None or not getattr(file_storage, "filename", ""):
            return False
        return (getattr(file_storage, "mimetype", None) or "") in ALLOWED_IMAGE_MIME_TYPES

    def save(self, file_storage) -> str:
        original = secure_filename(file_storage.filename) or "image"
        filename = f"{uuid.uuid4().hex}-{original}"

        if self.backend == "minio":
            try:
                self._put_object(file_storage, filename)
                return URL_PREFIX + filename
            except Exception as e:
                if not self.local_fallback_enabled:
                    raise ImageStorageError("Image storage is unavailable") from e
                logger.warning("MinIO upload failed, storing %s locally: %s", filename, e)

        self._save_locally(file_storage, filename)
        return URL_PREFIX + filename

    def delete(self, image_url) -> bool:
        """Remove an image. Failures are logged and never raised."""
        filename = filename_from_url(image_url)
        if filename is None:
            logger.warning("Refusing to delete unrecognised image reference %r", image_url)
            return False

        local_path = self.local_path(filename)
        try:
            if os.path.isfile(local_path):
                os.remove(local_path)
                return True
            if self.backend == "minio":
                self.minio().remove_object(self.bucket, OBJECT_PREFIX + filename)
                return True
        except Exception as e:
            logger.warning("Could not delete image %s: %s", image_url, e)
            return False

        logger.warning("Image %s was already gone", image_url)
        return False

    def local_path(self, filename):
        return os.path.join(self.upload_folder, filename)

    def has_local(self, filename) -> bool:
        return os.path.isfile(self.local_path(filename))

    def _save_locally(self, file_storage, filename):
        os.makedirs(self.upload_folder, exist_ok=True)
        try:
            file_storage.stream.seek(0)
        except (AttributeError, OSError):
            pass
        file_storage.save(self.local_path(filename))

    def _put_object(self, file_storage, filename):
        minio = self.minio()
        if not minio.bucket_exists(self.bucket):
            minio.make_bucket(self.bucket)

        stream = getattr(file_storage, "stream", file_storage)
        try:
            stream.seek(0, 2)
            length = stream.tell()
            stream.seek(0)
        except Exception:
            length = -1

        upload_kwargs = {
            "bucket_name": self.bucket,
            "object_name": OBJECT_PREFIX + filename,
            "data": stream,
            "length": length,
            "content_type": file_storage.mimetype,
        }
        if length == -1:
            upload_kwargs["part_size"] = 10 * 1024 * 1024
        minio.put_object(**upload_kwargs)

    def minio(self):
        with self._minio_lock:
            if self._minio_client is not None:
                return self._minio_client

            timeout = urllib3.Timeout(
                connect=self._config.get("MINIO_CONNECT_TIMEOUT", 5),
                read=self._config.get("MINIO_READ_TIMEOUT", 20),
            )
            http_client = urllib3.PoolManager(
                timeout=timeout,
                retries=False,
                maxsize=self._config.get("MINIO_HTTP_POOL_MAXSIZE", 32),
            )
            self._minio_client = Minio(
                self._config["MINIO_ENDPOINT"],
                access_key=self._config["MINIO_ACCESS_KEY"],
                secret_key=self._config["MINIO_SECRET_KEY"],
                secure=self._config.get("MINIO_SECURE", False),
                http_client=http_client,
            )
            return self._minio_client

    def stat_object(self, filename):
        return self.minio().stat_object(
            bucket_name=self.bucket,
            object_name=OBJECT_PREFIX + filename,
        )

    def get_object(self, filename):
        return self.minio().get_object(
            bucket_name=self.bucket,
            object_name=OBJECT_PREFIX + filename,
        )


def is_missing_object(error: S3Error) -> bool:
    return error.code in {"NoSuchKey", "NoSuchBucket", "NoSuchObject"}
