"""Tests for S3 storage client."""

import io
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from mediagate.common.config import Settings
from mediagate.infra.storage.client import StorageError
from mediagate.infra.storage.s3_client import DELETE_BATCH_SIZE, S3StorageClient


def _client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestS3StorageClient:
    """Test S3StorageClient implementation."""

    @pytest.fixture
    def mock_s3(self):
        """Mock boto3 S3 client."""
        mock_client = MagicMock()
        with patch.object(S3StorageClient, "_build_client", return_value=mock_client):
            yield mock_client

    @pytest.fixture
    def settings(self):
        return Settings(
            S3_BUCKET="test-bucket",
            S3_REGION="eu-west-1",
            S3_ACCESS_KEY_ID="test-key",
            S3_SECRET_ACCESS_KEY="test-secret",
        )

    @pytest.fixture
    def client(self, mock_s3, settings):
        """Create S3StorageClient with mocked boto3."""
        return S3StorageClient(settings=settings)

    def test_requires_bucket(self, mock_s3):
        with pytest.raises(StorageError, match="S3_BUCKET is required"):
            S3StorageClient(settings=Settings())

    def test_put_public(self, client, mock_s3):
        mock_s3.put_object.return_value = {"ETag": '"etag"'}

        assert client.put("live/a.jpg", b"data") is True

        mock_s3.put_object.assert_called_once_with(
            Bucket="test-bucket", Key="live/a.jpg", Body=b"data", ACL="public-read"
        )

    def test_put_private(self, client, mock_s3):
        mock_s3.put_object.return_value = {"ETag": '"etag"'}

        client.put("live/a.jpg", b"data", "private")

        assert mock_s3.put_object.call_args[1]["ACL"] == "private"

    def test_put_without_etag_is_not_acknowledged(self, client, mock_s3):
        mock_s3.put_object.return_value = {}

        assert client.put("live/a.jpg", b"data") is False

    def test_put_rejects_unknown_visibility(self, client, mock_s3):
        with pytest.raises(StorageError, match="Unsupported visibility"):
            client.put("live/a.jpg", b"data", "shared")  # type: ignore[arg-type]
        mock_s3.put_object.assert_not_called()

    def test_put_named_sets_content_disposition(self, client, mock_s3):
        mock_s3.put_object.return_value = {"ETag": '"etag"'}

        client.put_named("live/docs/a.pdf", b"pdf", 'my "a".pdf', "public")

        call_args = mock_s3.put_object.call_args[1]
        assert call_args["Key"] == "live/docs/a.pdf"
        assert call_args["ContentDisposition"] == 'inline; filename="my \\"a\\".pdf"'

    def test_put_exception(self, client, mock_s3):
        mock_s3.put_object.side_effect = Exception("S3 error")

        with pytest.raises(StorageError, match="Failed to put object"):
            client.put("live/a.jpg", b"data")

    def test_get(self, client, mock_s3):
        body = MagicMock(wraps=io.BytesIO(b"content"))
        mock_s3.get_object.return_value = {"Body": body}

        assert client.get("live/a.jpg") == b"content"
        body.close.assert_called_once()

    def test_get_exception(self, client, mock_s3):
        mock_s3.get_object.side_effect = _client_error("NoSuchKey", "GetObject")

        with pytest.raises(StorageError, match="Failed to get object"):
            client.get("live/a.jpg")

    def test_exists_true(self, client, mock_s3):
        mock_s3.head_object.return_value = {"ContentLength": 3}

        assert client.exists("live/a.jpg") is True
        mock_s3.head_object.assert_called_once_with(Bucket="test-bucket", Key="live/a.jpg")

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
    def test_exists_false_on_missing(self, client, mock_s3, code):
        mock_s3.head_object.side_effect = _client_error(code)

        assert client.exists("live/a.jpg") is False

    def test_exists_raises_on_other_errors(self, client, mock_s3):
        mock_s3.head_object.side_effect = _client_error("403")

        with pytest.raises(StorageError, match="Failed to get object metadata"):
            client.exists("live/a.jpg")

    def test_delete_single(self, client, mock_s3):
        assert client.delete("live/a.jpg") is True

        mock_s3.delete_object.assert_called_once_with(Bucket="test-bucket", Key="live/a.jpg")

    def test_delete_many(self, client, mock_s3):
        mock_s3.delete_objects.return_value = {}

        assert client.delete(["live/a.jpg", "live/b.jpg"]) is True

        mock_s3.delete_objects.assert_called_once_with(
            Bucket="test-bucket",
            Delete={
                "Objects": [{"Key": "live/a.jpg"}, {"Key": "live/b.jpg"}],
                "Quiet": True,
            },
        )

    def test_delete_many_batches(self, client, mock_s3):
        mock_s3.delete_objects.return_value = {}
        keys = [f"live/{i}.jpg" for i in range(DELETE_BATCH_SIZE + 1)]

        client.delete(keys)

        assert mock_s3.delete_objects.call_count == 2

    def test_delete_many_reports_errors(self, client, mock_s3):
        mock_s3.delete_objects.return_value = {"Errors": [{"Key": "live/a.jpg"}]}

        assert client.delete(["live/a.jpg"]) is False

    def test_delete_exception(self, client, mock_s3):
        mock_s3.delete_object.side_effect = Exception("S3 error")

        with pytest.raises(StorageError, match="Failed to delete object"):
            client.delete("live/a.jpg")

    def test_delete_directory(self, client, mock_s3):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "live/docs/a"}, {"Key": "live/docs/b"}]},
            {"Contents": [{"Key": "live/docs/c"}]},
        ]
        mock_s3.get_paginator.return_value = paginator
        mock_s3.delete_objects.return_value = {}

        assert client.delete_directory("/live/docs/") is True

        paginator.paginate.assert_called_once_with(Bucket="test-bucket", Prefix="live/docs/")
        objects = mock_s3.delete_objects.call_args[1]["Delete"]["Objects"]
        assert [o["Key"] for o in objects] == ["live/docs/a", "live/docs/b", "live/docs/c"]

    def test_delete_empty_directory(self, client, mock_s3):
        paginator = MagicMock()
        paginator.paginate.return_value = [{}]
        mock_s3.get_paginator.return_value = paginator

        assert client.delete_directory("live/empty") is True
        mock_s3.delete_objects.assert_not_called()

    def test_delete_directory_list_exception(self, client, mock_s3):
        mock_s3.get_paginator.side_effect = Exception("S3 error")

        with pytest.raises(StorageError, match="Failed to list objects"):
            client.delete_directory("live/docs")

    def test_copy(self, client, mock_s3):
        assert client.copy("live/src.jpg", "staging/dst.jpg") is True

        mock_s3.copy_object.assert_called_once_with(
            Bucket="test-bucket",
            Key="staging/dst.jpg",
            CopySource={"Bucket": "test-bucket", "Key": "live/src.jpg"},
        )

    def test_copy_exception(self, client, mock_s3):
        mock_s3.copy_object.side_effect = Exception("S3 error")

        with pytest.raises(StorageError, match="Failed to copy object"):
            client.copy("live/src.jpg", "staging/dst.jpg")

    def test_size(self, client, mock_s3):
        mock_s3.head_object.return_value = {"ContentLength": 1024}

        assert client.size("live/a.jpg") == 1024

    def test_size_missing_length(self, client, mock_s3):
        mock_s3.head_object.return_value = {}

        assert client.size("live/a.jpg") == 0

    def test_size_exception(self, client, mock_s3):
        mock_s3.head_object.side_effect = Exception("S3 error")

        with pytest.raises(StorageError, match="Failed to get object metadata"):
            client.size("live/a.jpg")

    def test_url_default_aws(self, client):
        assert (
            client.url("live/a b.jpg")
            == "https://test-bucket.s3.eu-west-1.amazonaws.com/live/a%20b.jpg"
        )

    def test_url_with_endpoint(self, mock_s3):
        settings = Settings(S3_BUCKET="media", S3_ENDPOINT_URL="http://localhost:9000/")

        client = S3StorageClient(settings=settings)

        assert client.url("live/a.jpg") == "http://localhost:9000/media/live/a.jpg"

    def test_url_with_public_base(self, mock_s3):
        settings = Settings(S3_BUCKET="media", S3_PUBLIC_URL="https://cdn.example.com/")

        client = S3StorageClient(settings=settings)

        assert client.url("/live/a.jpg") == "https://cdn.example.com/live/a.jpg"

    def test_build_client_uses_settings(self, settings):
        with patch("boto3.client") as boto_client:
            S3StorageClient(settings=settings)

        kwargs = boto_client.call_args[1]
        assert boto_client.call_args[0] == ("s3",)
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["aws_access_key_id"] == "test-key"
        assert kwargs["use_ssl"] is True
