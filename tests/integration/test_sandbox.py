"""Integration tests covering sandbox containment over raw sockets."""

import json
import uuid
from typing import TYPE_CHECKING

import pytest

from finder.bootstrap.config import MAX_BODY_BYTES
from tests.utils.http import send_raw_request

if TYPE_CHECKING:
    from tests.conftest import ServerProcessInfo

pytestmark = pytest.mark.integration


def _connector_request(query: str, principal: uuid.UUID) -> bytes:
    return (
        f"GET /finder?{query} HTTP/1.1\r\n"
        f"Host: test\r\n"
        f"X-Principal-Id: {principal}\r\n"
        "Connection: close\r\n\r\n"
    ).encode()


@pytest.mark.parametrize(
    "path",
    [
        "..%2F..%2Fetc",
        "%2F..%2F..%2F..%2Fetc%2Fpasswd",
        "docs%2F..%2F..%2F..",
        "%00",
    ],
)
def test_traversal_is_not_found(
    server_process: "ServerProcessInfo", principal: uuid.UUID, path: str
) -> None:
    """Encoded traversal attempts never leave the volume."""
    host, port = server_process["host"], server_process["port"]
    response = send_raw_request(
        host, port, _connector_request(f"cmd=open&path={path}", principal)
    )
    assert response.status_code == 404
    assert json.loads(response.body) == {"error": "errFileNotFound"}


def test_symlink_out_of_volume_is_opaque(
    server_process: "ServerProcessInfo", principal: uuid.UUID, tmp_path
) -> None:
    """A link pointing outside is listed but cannot be opened."""
    host, port = server_process["host"], server_process["port"]
    send_raw_request(host, port, _connector_request("cmd=open&init=1", principal))
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("secret")
    volume_root = server_process["finder_root"] / principal.hex
    (volume_root / "exit").symlink_to(outside, target_is_directory=True)

    listing = send_raw_request(
        host, port, _connector_request("cmd=open&init=1", principal)
    )
    (entry,) = json.loads(listing.body)["files"]
    assert entry["name"] == "exit"
    assert entry["read"] == 0

    opened = send_raw_request(
        host, port, _connector_request(f"cmd=open&target={entry['hash']}", principal)
    )
    assert opened.status_code == 404
    assert b"secret" not in opened.body


def test_malformed_request_line_returns_400(
    server_process: "ServerProcessInfo",
) -> None:
    """Garbage request lines are rejected."""
    host, port = server_process["host"], server_process["port"]
    response = send_raw_request(host, port, b"NONSENSE\r\n\r\n")
    assert response.status_line.startswith("HTTP/1.1 400")


def test_absolute_form_target_returns_400(
    server_process: "ServerProcessInfo",
) -> None:
    """Request targets must be in origin form."""
    host, port = server_process["host"], server_process["port"]
    response = send_raw_request(
        host, port, b"GET finder HTTP/1.1\r\nHost: test\r\n\r\n"
    )
    assert response.status_line.startswith("HTTP/1.1 400")


def test_oversized_body_returns_413(server_process: "ServerProcessInfo") -> None:
    """Declared bodies above the limit are refused before reading."""
    host, port = server_process["host"], server_process["port"]
    response = send_raw_request(
        host,
        port,
        (
            "GET /finder HTTP/1.1\r\nHost: test\r\n"
            f"Content-Length: {MAX_BODY_BYTES + 1}\r\n\r\n"
        ).encode(),
    )
    assert response.status_line.startswith("HTTP/1.1 413")
