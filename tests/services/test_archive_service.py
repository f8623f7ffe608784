"""
Tests for whole-repository retrieval through ArchiveService.
"""

import asyncio
import io
import zipfile

import pytest
import httpx

from ghparts.services.archive import ArchiveService
from ghparts.services.github_api import GitHubAPIService
from ghparts.infrastructure.error_handler import (
    DownloadError, MalformedResponseError, NotFoundError, UnsafePathError
)


# ---- Helpers ---------------------------------------------------------------

def make_zip(members):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in members.items():
            if data is None:
                archive.writestr(zipfile.ZipInfo(name), b"")
            else:
                archive.writestr(name, data)
    return buffer.getvalue()


def archive_service(config, body=None, status=200):
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.host != "codeload.github.com":
            return httpx.Response(404)
        return httpx.Response(status, content=body or b"")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ArchiveService(GitHubAPIService(config, client=client)), seen


class FakeProcess:
    def __init__(self, returncode=0, stderr=b""):
        self.returncode = returncode
        self._stderr = stderr

    async def communicate(self):
        return b"", self._stderr


class HangingProcess:
    def __init__(self):
        self.returncode = None
        self.started = asyncio.Event()
        self.killed = False

    async def communicate(self):
        self.started.set()
        await asyncio.Event().wait()

    def kill(self):
        self.killed = True
        self.returncode = -9

    async def wait(self):
        return self.returncode


# ---- download_archive ------------------------------------------------------

@pytest.mark.asyncio
async def test_download_archive_strips_top_level_folder(config, coordinate, tmp_path):
    body = make_zip({
        "sample-main/": None,
        "sample-main/README.md": b"# sample\n",
        "sample-main/docs/": None,
        "sample-main/docs/readme.md": b"docs\n",
    })
    service, seen = archive_service(config, body)

    files = await service.download_archive(coordinate, tmp_path)

    assert sorted(files) == ["README.md", "docs/readme.md"]
    assert (tmp_path / "README.md").read_bytes() == b"# sample\n"
    assert (tmp_path / "docs" / "readme.md").read_bytes() == b"docs\n"
    assert str(seen[0].url) == "https://codeload.github.com/acme/sample/zip/main"


@pytest.mark.asyncio
async def test_download_archive_missing_ref_leaves_no_directory(config, coordinate, tmp_path):
    service, _ = archive_service(config, status=404)
    target = tmp_path / "out"

    with pytest.raises(NotFoundError):
        await service.download_archive(coordinate, target)

    assert not target.exists()


@pytest.mark.asyncio
async def test_download_archive_creates_missing_destination(config, coordinate, tmp_path):
    service, _ = archive_service(config, make_zip({"sample-main/a.txt": b"a"}))
    target = tmp_path / "fresh" / "out"

    files = await service.download_archive(coordinate, target)

    assert files == ["a.txt"]
    assert (target / "a.txt").read_bytes() == b"a"


@pytest.mark.asyncio
async def test_download_archive_rejects_garbage(config, coordinate, tmp_path):
    service, _ = archive_service(config, b"definitely not a zip")

    with pytest.raises(MalformedResponseError):
        await service.download_archive(coordinate, tmp_path)


@pytest.mark.asyncio
async def test_download_archive_rejects_traversal(config, coordinate, tmp_path):
    body = make_zip({"sample-main/../../evil.txt": b"nope"})
    service, _ = archive_service(config, body)
    target = tmp_path / "out"

    with pytest.raises(UnsafePathError):
        await service.download_archive(coordinate, target)

    assert not (tmp_path / "evil.txt").exists()


# ---- clone -----------------------------------------------------------------

@pytest.mark.asyncio
async def test_clone_lists_checked_out_files(config, coordinate, tmp_path, monkeypatch):
    calls = []
    destination = tmp_path / "clone"

    async def fake_exec(*args, **kwargs):
        calls.append(args)
        (destination / ".git").mkdir(parents=True)
        (destination / ".git" / "HEAD").write_text("ref: refs/heads/main")
        (destination / "src").mkdir()
        (destination / "src" / "app.py").write_text("print()")
        (destination / "README.md").write_text("hi")
        return FakeProcess()

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    service, _ = archive_service(config)

    files = await service.clone(coordinate, destination)

    assert files == ["README.md", "src/app.py"]
    assert calls[0] == (
        "git", "clone", "--depth", "1", "--branch", "main",
        "https://github.com/acme/sample.git", str(destination),
    )


@pytest.mark.asyncio
async def test_clone_failure_reports_stderr(config, coordinate, tmp_path, monkeypatch):
    async def fake_exec(*args, **kwargs):
        return FakeProcess(returncode=128, stderr=b"fatal: Remote branch main not found")

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    service, _ = archive_service(config)

    with pytest.raises(DownloadError, match="Remote branch main not found"):
        await service.clone(coordinate, tmp_path / "clone")


@pytest.mark.asyncio
async def test_clone_without_git(config, coordinate, tmp_path, monkeypatch):
    async def fake_exec(*args, **kwargs):
        raise FileNotFoundError("git")

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    service, _ = archive_service(config)

    with pytest.raises(DownloadError, match="git executable not found"):
        await service.clone(coordinate, tmp_path / "clone")


@pytest.mark.asyncio
async def test_cancelled_clone_kills_git(config, coordinate, tmp_path, monkeypatch):
    process = HangingProcess()

    async def fake_exec(*args, **kwargs):
        return process

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    service, _ = archive_service(config)

    task = asyncio.create_task(service.clone(coordinate, tmp_path / "clone"))
    await process.started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert process.killed
