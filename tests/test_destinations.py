import tempfile
import unittest
from pathlib import Path
from unittest import mock

from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import ClientError

from searchdump.core.exceptions import DestinationError, SinkCommitError
from searchdump.dest.base import NoneDestination
from searchdump.dest.local import LocalDirectoryDestination
from searchdump.dest.s3 import S3Destination, S3Params


class TestS3Destination(unittest.TestCase):
    def test_key_includes_prefix(self):
        client = mock.MagicMock()
        dest = S3Destination(S3Params(url="s3://backups/search/daily/"), client=client)
        dest.commit("logs-2023.json", b"[]")

        client.upload_fileobj.assert_called_once()
        (body, bucket, key), kwargs = client.upload_fileobj.call_args
        self.assertEqual(body.getvalue(), b"[]")
        self.assertEqual((bucket, key), ("backups", "search/daily/logs-2023.json"))
        self.assertEqual(kwargs["ExtraArgs"], {"ContentType": "application/json"})

    def test_large_artifacts_use_multipart_transfer(self):
        client = mock.MagicMock()
        S3Destination(S3Params(url="s3://backups"), client=client).commit("big.json", b"[]")

        config = client.upload_fileobj.call_args.kwargs["Config"]
        self.assertIsInstance(config, TransferConfig)
        self.assertLess(config.multipart_threshold, 5 * 1024 ** 3)

    def test_bucket_root(self):
        client = mock.MagicMock()
        dest = S3Destination(S3Params(url="s3://backups"), client=client)
        self.assertEqual(dest.key_for("a.json"), "a.json")

    def test_scheme_must_be_s3(self):
        with self.assertRaises(DestinationError):
            S3Destination(S3Params(url="https://backups/x"), client=mock.MagicMock())

    def test_default_region_and_describe(self):
        dest = S3Destination(
            S3Params(url="s3://b", access_key="minio", endpoint="http://127.0.0.1:9001", region=""),
            client=mock.MagicMock(),
        )
        self.assertEqual(dest.params.region, "eu-central-1")
        self.assertEqual(dest.describe(), "S3 (endpoint=http://127.0.0.1:9001, accessKey=minio, region=eu-central-1)")

    def test_upload_failure_is_commit_error(self):
        client = mock.MagicMock()
        dest = S3Destination(S3Params(url="s3://missing/x"), client=client)

        for err in (
            ClientError({"Error": {"Code": "NoSuchBucket", "Message": "nope"}}, "PutObject"),
            S3UploadFailedError("Failed to upload a.json to missing/x/a.json: NoSuchBucket"),
        ):
            with self.subTest(error=type(err).__name__):
                client.upload_fileobj.side_effect = err
                with self.assertRaises(SinkCommitError) as ctx:
                    dest.commit("a.json", b"[]")
                self.assertEqual(ctx.exception.name, "a.json")

    def test_client_built_from_params(self):
        with mock.patch("searchdump.dest.s3.boto3.session.Session") as session_cls:
            S3Destination(
                S3Params(
                    url="s3://b/p",
                    access_key="ak",
                    secret_access_key="sk",
                    endpoint="http://minio:9000",
                    region="us-west-1",
                    force_path_style=True,
                )
            )
        _, kwargs = session_cls.return_value.client.call_args
        self.assertEqual(kwargs["aws_access_key_id"], "ak")
        self.assertEqual(kwargs["aws_secret_access_key"], "sk")
        self.assertEqual(kwargs["endpoint_url"], "http://minio:9000")
        self.assertEqual(kwargs["region_name"], "us-west-1")
        self.assertEqual(kwargs["config"].s3, {"addressing_style": "path"})


class TestLocalDirectoryDestination(unittest.TestCase):
    def test_writes_and_overwrites(self):
        with tempfile.TemporaryDirectory() as td:
            dest = LocalDirectoryDestination(f"file://{td}/out")
            dest.commit("a.json", b"[1]")
            dest.commit("a.json", b"[1]")

            out = Path(td) / "out"
            self.assertEqual((out / "a.json").read_bytes(), b"[1]")
            self.assertEqual([p.name for p in out.iterdir()], ["a.json"])

    def test_plain_path(self):
        with tempfile.TemporaryDirectory() as td:
            dest = LocalDirectoryDestination(td)
            dest.commit("b.json", b"[]")
            self.assertTrue((Path(td) / "b.json").exists())

    def test_other_scheme_rejected(self):
        with self.assertRaises(DestinationError):
            LocalDirectoryDestination("s3://bucket/x")


class TestNoneDestination(unittest.TestCase):
    def test_every_commit_fails(self):
        with self.assertRaises(SinkCommitError):
            NoneDestination().commit("a.json", b"[]")


if __name__ == "__main__":
    unittest.main()
