"""Tests for the onedpy command line."""
import pytest
from typer.testing import CliRunner

import onedpy
from onedpy.cli.main import app
from onedpy.core.api.models import QuotaInfo
from onedpy.core.exceptions import AuthError, ChunkUploadError
from onedpy.core.integrity import IntegrityStatus, VerificationResult
from onedpy.core.upload.models import UploadProgress, UploadResult

runner = CliRunner()


def make_report(status=IntegrityStatus.VERIFIED, download_url="https://index.example.com/Movies/a.bin"):
    result = UploadResult(
        item_id="ITEM1", success=True, name="a.bin", remote_path="Public/Movies/a.bin",
        file_size=1000, chunk_count=2
    )
    verification = VerificationResult(status, local_hash="LOCAL", remote_hash="REMOTE", detail="hash not available")
    return onedpy.UploadReport(result=result, verification=verification, download_url=download_url)


@pytest.fixture
def fake_client(monkeypatch):
    """Replace OneDriveClient with a recording fake."""
    class FakeClient:
        calls = []
        report = make_report()
        error = None
        failing = ()

        def __init__(self, registry, remote_name, **kwargs):
            self.remote_name = remote_name

        @classmethod
        def from_config_file(cls, path, remote_name, **kwargs):
            cls.calls.append(('from_config_file', path, remote_name))
            return cls(None, remote_name)

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

        async def upload(self, file_path, remote_folder, remote_file_name=None, **kwargs):
            FakeClient.calls.append(('upload', file_path, remote_folder, remote_file_name, kwargs))
            kwargs['progress_callback'](UploadProgress(total_chunks=2, uploaded_chunks=1, total_bytes=1000, uploaded_bytes=500))
            if FakeClient.error:
                raise FakeClient.error
            return FakeClient.report

        async def get_quota(self):
            if self.remote_name in FakeClient.failing:
                raise AuthError("refresh rejected", status=400)
            return QuotaInfo(total=1024 ** 4, used=1536, remaining=1024 ** 4 - 1536, deleted=0)

    monkeypatch.setattr(onedpy, 'OneDriveClient', FakeClient)
    return FakeClient


class TestUploadCommand:
    """Test suite for the upload command."""

    def test_requires_file_and_remote(self, fake_client, rclone_file):
        result = runner.invoke(app, ["upload", "--config", str(rclone_file)])

        assert result.exit_code == 1
        assert "both FILE and --remote are required" in result.output
        assert fake_client.calls == []

    def test_upload_verified(self, fake_client, rclone_file, make_file):
        path, _ = make_file(1000, name="a.bin")

        result = runner.invoke(app, [
            "upload", str(path), "--remote", "Movies", "--config", str(rclone_file),
            "--parallel", "4", "--chunk-size", "500", "--retry-delay", "0"
        ])

        assert result.exit_code == 0, result.output
        assert "File ID: ITEM1" in result.output
        assert "Remote path: Public/Movies/a.bin" in result.output
        assert "Integrity verified" in result.output
        assert fake_client.calls[0] == ('from_config_file', rclone_file, 'oned')
        _, file_path, folder, name, kwargs = fake_client.calls[1]
        assert (file_path, folder, name) == (path, "Movies", None)
        assert kwargs['parallelism'] == 4
        assert kwargs['chunk_size'] == 500
        assert kwargs['retry_delay'] == 0
        assert kwargs['skip_hash'] is False

    def test_remote_options(self, fake_client, rclone_file, make_file):
        path, _ = make_file(1000, name="a.bin")

        result = runner.invoke(app, [
            "upload", str(path), "-r", "Docs", "-n", "b.bin", "-c", "saurajcf",
            "--config", str(rclone_file), "--skip-hash"
        ])

        assert result.exit_code == 0, result.output
        assert fake_client.calls[0][2] == 'saurajcf'
        _, _, folder, name, kwargs = fake_client.calls[1]
        assert (folder, name) == ("Docs", "b.bin")
        assert kwargs['skip_hash'] is True

    def test_config_from_environment(self, fake_client, rclone_file, make_file, monkeypatch):
        path, _ = make_file(1000, name="a.bin")
        monkeypatch.setenv('ONEDPY_CONFIG', str(rclone_file))

        result = runner.invoke(app, ["upload", str(path), "--remote", "Movies"])

        assert result.exit_code == 0, result.output
        assert fake_client.calls[0][1] == rclone_file

    @pytest.mark.parametrize("status, expected", [
        (IntegrityStatus.SKIPPED, "Integrity check skipped"),
        (IntegrityStatus.UNVERIFIED, "Integrity unverified: hash not available"),
        (IntegrityStatus.MISMATCH, "QuickXorHash mismatch"),
    ])
    def test_integrity_line(self, fake_client, rclone_file, make_file, status, expected):
        """Test every integrity outcome is reported and none fails the command."""
        path, _ = make_file(1000, name="a.bin")
        fake_client.report = make_report(status)

        result = runner.invoke(app, ["upload", str(path), "--remote", "Movies", "--config", str(rclone_file)])

        assert result.exit_code == 0, result.output
        assert expected in result.output

    def test_mismatch_shows_both_hashes(self, fake_client, rclone_file, make_file):
        path, _ = make_file(1000, name="a.bin")
        fake_client.report = make_report(IntegrityStatus.MISMATCH)

        result = runner.invoke(app, ["upload", str(path), "--remote", "Movies", "--config", str(rclone_file)])

        assert "Local QuickXorHash: LOCAL" in result.output
        assert "Remote QuickXorHash: REMOTE" in result.output

    def test_no_download_url(self, fake_client, rclone_file, make_file):
        path, _ = make_file(1000, name="a.bin")
        fake_client.report = make_report(download_url=None)

        result = runner.invoke(app, ["upload", str(path), "--remote", "Movies", "--config", str(rclone_file)])

        assert result.exit_code == 0
        assert "Download URL" not in result.output

    def test_upload_failure(self, fake_client, rclone_file, make_file):
        path, _ = make_file(1000, name="a.bin")
        fake_client.error = ChunkUploadError("1 chunk(s) failed after retries", start=500, end=999)

        result = runner.invoke(app, ["upload", str(path), "--remote", "Movies", "--config", str(rclone_file)])

        assert result.exit_code == 1
        assert "Upload failed: 1 chunk(s) failed after retries" in result.output

    def test_missing_config_file(self, tmp_path, make_file):
        path, _ = make_file(10)

        result = runner.invoke(app, [
            "upload", str(path), "--remote", "Movies", "--config", str(tmp_path / "none.conf")
        ])

        assert result.exit_code == 1
        assert "Upload failed" in result.output

    def test_show_quota(self, fake_client, rclone_file):
        result = runner.invoke(app, ["upload", "--show-quota", "--config", str(rclone_file)])

        assert result.exit_code == 0, result.output
        assert "Quota: oned" in result.output
        assert "Quota: saurajcf" in result.output
        assert "s3" not in result.output
        assert fake_client.calls == []


class TestQuotaCommand:
    """Test suite for the quota command."""

    def test_single_remote(self, fake_client, rclone_file):
        result = runner.invoke(app, ["quota", "-c", "saurajcf", "--config", str(rclone_file)])

        assert result.exit_code == 0, result.output
        assert "Quota: saurajcf" in result.output
        assert "Quota: oned" not in result.output
        assert "1.500 KiB" in result.output

    def test_failing_remote_does_not_stop_others(self, fake_client, rclone_file):
        fake_client.failing = ('oned',)

        result = runner.invoke(app, ["quota", "--config", str(rclone_file)])

        assert result.exit_code == 1
        assert "Failed to fetch quota for remote 'oned'" in result.output
        assert "Quota: saurajcf" in result.output

    def test_unknown_remote(self, fake_client, rclone_file):
        result = runner.invoke(app, ["quota", "-c", "missing", "--config", str(rclone_file)])

        assert result.exit_code == 1
        assert "missing" in result.output
