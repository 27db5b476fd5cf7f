"""Unit tests for the persisted-artifact endpoint."""

from __future__ import annotations

import io
import typing as typ
from pathlib import Path
from unittest import mock

import falcon
import pytest

from autotest_gateway.api.artifacts.resources import (
    CHUNK_SIZE,
    resolve_artifact_path,
    stream_file,
)

if typ.TYPE_CHECKING:
    import falcon.testing

    from autotest_gateway.config import GatewayConfig


@pytest.fixture
def artifact(gateway_config: GatewayConfig) -> Path:
    """Write an artifact below the persist directory."""
    path = gateway_config.persist_dir / "runs" / "42" / "report.txt"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"all tests passed\n")
    return path


def test_serves_artifact_bytes(
    gateway_client: falcon.testing.TestClient, artifact: Path
) -> None:
    """Existing files are streamed back as octet-stream."""
    result = gateway_client.simulate_get("/resource/runs/42/report.txt")

    assert result.status == falcon.HTTP_200
    assert result.content == b"all tests passed\n"
    assert result.headers["content-type"] == "application/octet-stream"


def test_large_artifact_is_streamed_whole(
    gateway_client: falcon.testing.TestClient, gateway_config: GatewayConfig
) -> None:
    """Files larger than one chunk arrive intact."""
    payload = bytes(range(256)) * (CHUNK_SIZE // 128)
    (gateway_config.persist_dir / "big.bin").write_bytes(payload)

    result = gateway_client.simulate_get("/resource/big.bin")

    assert result.content == payload


def test_missing_artifact_is_404(gateway_client: falcon.testing.TestClient) -> None:
    """A missing file is a 404 carrying the filesystem's message."""
    result = gateway_client.simulate_get("/resource/runs/1/missing.txt")

    assert result.status == falcon.HTTP_404
    assert "No such file" in result.json["description"]


def test_unreadable_artifact_is_500(
    gateway_client: falcon.testing.TestClient, artifact: Path
) -> None:
    """Errors other than absence are a 500."""
    with mock.patch.object(
        Path, "open", side_effect=PermissionError(13, "Permission denied")
    ):
        result = gateway_client.simulate_get("/resource/runs/42/report.txt")

    assert result.status == falcon.HTTP_500
    assert "Permission denied" in result.json["description"]


def test_directory_is_500(
    gateway_client: falcon.testing.TestClient, artifact: Path
) -> None:
    """A directory cannot be served as an artifact."""
    result = gateway_client.simulate_get("/resource/runs/42")

    assert result.status == falcon.HTTP_500


def test_escaping_path_is_404(gateway_client: falcon.testing.TestClient) -> None:
    """Paths leaving the persist directory are reported as not found."""
    result = gateway_client.simulate_get("/resource/runs/../../etc/passwd")

    assert result.status == falcon.HTTP_404


@pytest.mark.parametrize(
    ("relative", "expected"),
    [
        ("a/b.txt", Path("/data/a/b.txt")),
        ("/a/b.txt", Path("/data/a/b.txt")),
        ("a/../b.txt", Path("/data/b.txt")),
        ("../data2/x", None),
        ("a/../../etc", None),
    ],
)
def test_resolve_artifact_path(relative: str, expected: Path | None) -> None:
    """Resolution is lexical and confined to the root."""
    assert resolve_artifact_path(Path("/data"), relative) == expected


@pytest.mark.asyncio
async def test_stream_file_closes_handle_after_read_error() -> None:
    """A mid-stream read failure ends the stream and closes the file."""
    handle = mock.MagicMock(spec=io.BufferedReader)
    handle.read.side_effect = [b"partial", OSError("I/O error")]

    chunks = [chunk async for chunk in stream_file(handle, Path("/data/x"))]

    assert chunks == [b"partial"]
    handle.close.assert_called_once_with()


@pytest.mark.asyncio
async def test_stream_file_closes_handle_on_disconnect() -> None:
    """Closing the stream early, as on client disconnect, closes the file."""
    handle = mock.MagicMock(spec=io.BufferedReader)
    handle.read.side_effect = [b"first", b"second", b""]
    chunks = stream_file(handle, Path("/data/x"))

    assert await anext(chunks) == b"first"
    await chunks.aclose()

    handle.close.assert_called_once_with()
