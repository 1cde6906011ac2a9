"""
End-to-end tests for MirrorOrchestrator with mocked GitHub and downloads.
"""

import json
import os
import stat

import pytest

from assetmirror.config import MirrorConfig
from assetmirror.exceptions import DurableWriteError, RemoteError, UnexpectedStatusError
from assetmirror.index import read_index_file, write_index_file
from assetmirror.mirror import MirrorOrchestrator, MirrorSummary

from factories import BUILD_ID, make_release, make_remote_asset, make_remote_release

pytestmark = [pytest.mark.pipeline]


@pytest.fixture
def config(output_dir):
    return MirrorConfig(
        token_file="/unused",
        github_owner="owner",
        github_repo="repo",
        output_dir=str(output_dir),
    )


@pytest.fixture
def source(mocker):
    mock = mocker.Mock()
    mock.iter_releases.return_value = iter(
        [
            make_remote_release(2, "v1.1.0"),
            make_remote_release(3, "v2.0.0-beta", draft=True),
            make_remote_release(1, "v1.0.0"),
        ]
    )
    assets = {
        1: [make_remote_asset(10, "app-linux-amd64")],
        2: [
            make_remote_asset(20, "app-linux-amd64"),
            make_remote_asset(21, "app-linux-amd64.intoto.jsonl"),
        ],
    }
    mock.iter_assets.side_effect = lambda release_id: iter(assets.get(release_id, []))
    return mock


@pytest.fixture
def extractor(mocker):
    mock = mocker.Mock()
    mock.extract.return_value = BUILD_ID
    return mock


@pytest.fixture
def mock_download(mocker):
    return mocker.patch(
        "assetmirror.mirror.orchestrator.download_asset",
        side_effect=lambda _session, url: f"payload:{url}".encode(),
    )


def _orchestrator(config, source, extractor, mocker):
    return MirrorOrchestrator(
        config, mocker.Mock(), source=source, extractor=extractor
    )


class TestMirrorOrchestrator:
    def test_full_run(self, config, source, extractor, mock_download, mocker, output_dir):
        summary = _orchestrator(config, source, extractor, mocker).run()

        assert isinstance(summary, MirrorSummary)
        assert summary.releases == 2
        assert summary.assets == 7
        assert summary.downloaded == 7
        assert summary.build_ids_recorded == 2
        assert summary.bytes_downloaded == sum(
            len(f"payload:{c.args[1]}") for c in mock_download.call_args_list
        )

        exe = output_dir / "v1.1.0" / "app-linux-amd64"
        assert exe.read_bytes().startswith(b"payload:")
        assert stat.S_IMODE(os.stat(exe).st_mode) & 0o111
        prov = output_dir / "v1.1.0" / "app-linux-amd64.intoto.jsonl"
        assert not stat.S_IMODE(os.stat(prov).st_mode) & 0o111
        assert (output_dir / "v1.0.0" / "source.tar.gz").exists()
        assert not (output_dir / "v2.0.0-beta").exists()

        document = json.loads((output_dir / "index.json").read_text(encoding="utf-8"))
        assert [r["tag"] for r in document] == ["v1.0.0", "v1.1.0"]
        assert all(r["version"]["buildID"] == BUILD_ID for r in document)

    def test_second_run_downloads_nothing(
        self, config, source, extractor, mock_download, mocker
    ):
        _orchestrator(config, source, extractor, mocker).run()
        mock_download.reset_mock()
        extractor.extract.reset_mock()
        source.iter_releases.return_value = iter([make_remote_release(1, "v1.0.0")])

        summary = _orchestrator(config, source, extractor, mocker).run()

        assert summary.downloaded == 0
        assert summary.build_ids_recorded == 0
        mock_download.assert_not_called()
        extractor.extract.assert_not_called()
        assert [r.tag for r in read_index_file(config.index_path)] == ["v1.0.0", "v1.1.0"]

    def test_existing_index_build_id_preserved(
        self, config, source, extractor, mock_download, mocker
    ):
        write_index_file(
            config.index_path,
            [make_release("v1.0.0", 1, 0, 0, build_id="f" * 40, id=1)],
        )

        _orchestrator(config, source, extractor, mocker).run()

        releases = {r.tag: r for r in read_index_file(config.index_path)}
        assert releases["v1.0.0"].version.build_id == "f" * 40
        assert releases["v1.1.0"].version.build_id == BUILD_ID

    def test_download_failure_leaves_index_untouched(
        self, config, source, extractor, mocker, output_dir
    ):
        mocker.patch(
            "assetmirror.mirror.orchestrator.download_asset",
            side_effect=UnexpectedStatusError("unexpected HTTP status code 404", status_code=404),
        )

        with pytest.raises(UnexpectedStatusError):
            _orchestrator(config, source, extractor, mocker).run()

        assert not (output_dir / "index.json").exists()

    def test_remote_failure_propagates(self, config, extractor, mocker, output_dir):
        source = mocker.Mock()
        source.iter_releases.side_effect = RemoteError("failed to list GitHub releases", page=1)

        with pytest.raises(RemoteError):
            _orchestrator(config, source, extractor, mocker).run()

        assert not (output_dir / "index.json").exists()

    def test_write_failure_propagates(self, config, source, extractor, mock_download, mocker):
        mocker.patch(
            "assetmirror.mirror.orchestrator.write_file",
            side_effect=DurableWriteError("durable write failed during rename", step="rename"),
        )

        with pytest.raises(DurableWriteError):
            _orchestrator(config, source, extractor, mocker).run()

    def test_default_source_uses_config(self, config, mocker):
        session = mocker.Mock()
        orchestrator = MirrorOrchestrator(
            config.merged({"github_api_base": "https://ghe/api/v3"}), session
        )
        assert orchestrator.source.releases_url == "https://ghe/api/v3/repos/owner/repo/releases"
        assert orchestrator.source.session is session

    def test_summary_as_dict(self):
        summary = MirrorSummary(releases=1, assets=2, downloaded=1, bytes_downloaded=9)
        assert summary.as_dict()["bytes_downloaded"] == 9
        assert set(summary.as_dict()) == {
            "releases",
            "assets",
            "downloaded",
            "bytes_downloaded",
            "build_ids_recorded",
            "elapsed",
        }
