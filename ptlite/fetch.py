"""
Bounded HTTP GETs for metadata lookups.

requests' ``timeout`` applies to each socket operation, so a server that keeps
sending a byte now and then is never timed out, and reading ``response.text``
pulls in the whole body however large it is. ``bounded_get`` runs the request
on a worker thread against a wall-clock deadline and stops reading the body
after ``max_bytes``.
"""

from __future__ import annotations

import socket
import threading
from dataclasses import dataclass, field

import requests

CHUNK_SIZE = 8192


class DeadlineExceeded(requests.Timeout):
    """The whole exchange (connect, headers and body) took longer than allowed."""


@dataclass(frozen=True)
class BoundedResponse:
    status_code: int
    content: bytes
    headers: dict = field(default_factory=dict)
    encoding: str | None = None
    truncated: bool = False

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8", errors="replace")


def _declared_encoding(response) -> str | None:
    # only trust a charset the server actually sent; requests guesses latin-1 otherwise
    content_type = str((response.headers or {}).get("Content-Type", "")).lower()
    if "charset=" not in content_type:
        return None
    return response.encoding


def _abort(response) -> None:
    """Unblock a worker stuck in a socket read, then release the connection."""
    conn = getattr(getattr(response, "raw", None), "connection", None)
    sock = getattr(conn, "sock", None)
    if sock is not None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already closed by the other side
            pass
    response.close()


def bounded_get(
    url: str,
    *,
    timeout: float,
    max_bytes: int,
    session=None,
    params: dict | None = None,
    headers: dict | None = None,
) -> BoundedResponse:
    """
    GET ``url`` and read at most ``max_bytes`` of its body within ``timeout`` seconds.

    Raises DeadlineExceeded when the deadline passes, and re-raises whatever
    requests raised otherwise. A body longer than ``max_bytes`` is cut off and
    flagged ``truncated``; that is not an error.
    """
    http = session or requests
    cancelled = threading.Event()
    state: dict = {}

    def run():
        response = None
        try:
            response = http.get(url, params=params, headers=headers, timeout=(timeout, timeout), stream=True)
            state["response"] = response
            chunks = []
            size = 0
            truncated = False
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if cancelled.is_set():
                    return
                if not chunk:
                    continue
                chunks.append(chunk)
                size += len(chunk)
                if size >= max_bytes:
                    truncated = size > max_bytes
                    break
            state["result"] = BoundedResponse(
                status_code=int(response.status_code),
                content=b"".join(chunks)[:max_bytes],
                headers=dict(response.headers or {}),
                encoding=_declared_encoding(response),
                truncated=truncated,
            )
        except Exception as exc:
            # handed back to the calling thread below
            state["error"] = exc
        finally:
            if response is not None:
                response.close()

    worker = threading.Thread(target=run, name="bounded-get", daemon=True)
    worker.start()
    worker.join(timeout)

    if worker.is_alive():
        cancelled.set()
        response = state.get("response")
        if response is not None:
            _abort(response)
        raise DeadlineExceeded(f"no complete response from {url} within {timeout}s")
    if "error" in state:
        raise state["error"]
    return state["result"]
