"""Tests for S3ObjectStore implementing ObjectStoragePort."""
import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError
from app.adapters.storage.s3_object_store import S3ObjectStore
from app.core.exceptions import NotFoundError, StorageError
from app.core.ports.object_storage import ObjectStoragePort


def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetObject")


class TestS3ObjectStore:
    @pytest.fixture
    def mock_s3(self):
        return MagicMock()

    @pytest.fixture
    def store(self, mock_s3):
        return S3ObjectStore(bucket="case-documents", client=mock_s3)

    def test_implements_object_storage_port(self, store):
        assert isinstance(store, ObjectStoragePort)

    @pytest.mark.asyncio
    async def test_upload_puts_object(self, store, mock_s3):
        await store.upload("cases/1/a.pdf", b"%PDF", "application/pdf")

        mock_s3.put_object.assert_called_once_with(
            Bucket="case-documents", Key="cases/1/a.pdf", Body=b"%PDF", ContentType="application/pdf",
        )

    @pytest.mark.asyncio
    async def test_fetch_reads_body(self, store, mock_s3):
        mock_s3.get_object.return_value = {"Body": MagicMock(read=MagicMock(return_value=b"bytes"))}

        assert await store.fetch("cases/1/a.pdf") == b"bytes"

    @pytest.mark.asyncio
    async def test_fetch_missing_key_raises_not_found(self, store, mock_s3):
        mock_s3.get_object.side_effect = client_error("NoSuchKey")

        with pytest.raises(NotFoundError):
            await store.fetch("missing.pdf")

    @pytest.mark.asyncio
    async def test_fetch_other_errors_raise_storage_error(self, store, mock_s3):
        mock_s3.get_object.side_effect = client_error("AccessDenied")

        with pytest.raises(StorageError) as exc_info:
            await store.fetch("secret.pdf")
        assert not isinstance(exc_info.value, NotFoundError)

    @pytest.mark.asyncio
    async def test_signed_url(self, store, mock_s3):
        mock_s3.generate_presigned_url.return_value = "https://signed.example/a.pdf"

        url = await store.signed_url("cases/1/a.pdf", expires_in=600)

        assert url == "https://signed.example/a.pdf"
        mock_s3.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "case-documents", "Key": "cases/1/a.pdf"},
            ExpiresIn=600,
        )

    @pytest.mark.asyncio
    async def test_delete_error_wrapped(self, store, mock_s3):
        mock_s3.delete_object.side_effect = client_error("InternalError")

        with pytest.raises(StorageError):
            await store.delete("cases/1/a.pdf")
