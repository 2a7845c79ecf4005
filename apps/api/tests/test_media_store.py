import os

import pytest
from botocore.exceptions import ClientError

from app.core.config import Settings
from app.services import media_store as media_store_module
from app.services.media_store import (
    LocalMediaStore,
    MediaStoreError,
    S3MediaStore,
    build_media_store,
    generate_media_key,
    submission_folder,
)


class FakeS3Client:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.objects: dict[str, dict] = {}
        self.deleted: list[str] = []

    def put_object(self, **params):
        if self.fail:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")
        self.objects[params["Key"]] = params

    def delete_object(self, Bucket, Key):  # noqa: N803
        if self.fail:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "DeleteObject")
        self.deleted.append(Key)


def test_generate_media_key_is_unique():
    keys = {generate_media_key() for _ in range(100)}
    assert len(keys) == 100
    timestamp, suffix = next(iter(keys)).split("-")
    assert timestamp.isdigit()
    assert len(suffix) == 6


def test_submission_folder_layout():
    assert submission_folder("f1", "resume") == "ai-forms/f1/resume"


def test_local_store_upload_and_delete(tmp_path):
    store = LocalMediaStore(str(tmp_path), "http://files.local/media/")
    stored = store.upload(
        b"hello", folder="ai-forms/f1/resume", key="123-abc", filename="CV.PDF",
        content_type="application/pdf",
    )
    assert stored.reference == "http://files.local/media/ai-forms/f1/resume/123-abc.pdf"
    assert stored.bytes == 5
    assert stored.storage_key == "ai-forms/f1/resume/123-abc.pdf"
    path = tmp_path / "ai-forms" / "f1" / "resume" / "123-abc.pdf"
    assert path.read_bytes() == b"hello"

    store.delete(stored.reference)
    assert not os.path.exists(path)
    # deleting again is a no-op
    store.delete(stored.reference)


def test_local_store_ignores_odd_extensions(tmp_path):
    store = LocalMediaStore(str(tmp_path), "http://files.local/media")
    stored = store.upload(b"x", folder="f", key="k", filename="weird.p/df")
    assert stored.storage_key == "f/k"


def test_local_store_rejects_foreign_and_escaping_references(tmp_path):
    store = LocalMediaStore(str(tmp_path), "http://files.local/media")
    with pytest.raises(MediaStoreError):
        store.delete("https://elsewhere.example/file.pdf")
    with pytest.raises(MediaStoreError):
        store.delete("http://files.local/media/../../etc/passwd")


def test_s3_store_upload_and_delete():
    client = FakeS3Client()
    store = S3MediaStore(client, "bucket", "https://cdn.example.com")
    stored = store.upload(
        b"data", folder="ai-forms/f1/photo", key="1-aaaaaa", filename="me.png",
        content_type="image/png",
    )
    assert stored.reference == "https://cdn.example.com/ai-forms/f1/photo/1-aaaaaa.png"
    params = client.objects["ai-forms/f1/photo/1-aaaaaa.png"]
    assert params["Bucket"] == "bucket"
    assert params["ContentType"] == "image/png"

    store.delete(stored.reference)
    assert client.deleted == ["ai-forms/f1/photo/1-aaaaaa.png"]


def test_s3_store_wraps_client_errors():
    store = S3MediaStore(FakeS3Client(fail=True), "bucket", "https://cdn.example.com")
    with pytest.raises(MediaStoreError):
        store.upload(b"x", folder="f", key="k", filename="a.pdf")
    with pytest.raises(MediaStoreError):
        store.delete("https://cdn.example.com/f/k.pdf")
    with pytest.raises(MediaStoreError):
        store.delete("https://other.example.com/f/k.pdf")


def test_build_media_store_selects_backend(monkeypatch, tmp_path):
    local = build_media_store(
        Settings(STORAGE_BACKEND="local", LOCAL_STORAGE_PATH=str(tmp_path))
    )
    assert isinstance(local, LocalMediaStore)

    monkeypatch.setattr(media_store_module, "get_s3_client", lambda settings: FakeS3Client())
    s3 = build_media_store(
        Settings(STORAGE_BACKEND="s3", S3_BUCKET="forms", S3_REGION="eu-west-1",
                 S3_ENDPOINT_URL="", S3_PUBLIC_BASE_URL="")
    )
    assert isinstance(s3, S3MediaStore)
    assert s3.public_base_url == "https://forms.s3.eu-west-1.amazonaws.com"

    minio = build_media_store(
        Settings(STORAGE_BACKEND="s3", S3_BUCKET="forms", S3_ENDPOINT_URL="http://minio:9000/",
                 S3_PUBLIC_BASE_URL="")
    )
    assert minio.public_base_url == "http://minio:9000/forms"

    with pytest.raises(ValueError):
        build_media_store(Settings(STORAGE_BACKEND="ftp"))
