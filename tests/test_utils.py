"""
Helpers shared by the pluginfetch tests.
"""

import base64
import hashlib
from typing import Callable, List

import httpx

SAMPLE_URL = "https://example.test/a/1.0.0/file/sample-1.0.0.vsix"
SAMPLE_SPEC = f"sample@{SAMPLE_URL}"


def sri(payload: bytes) -> str:
    return "sha512-" + base64.b64encode(hashlib.sha512(payload).digest()).decode("ascii")


def respond(status_code: int, content: bytes = b"") -> Callable[[httpx.Request], httpx.Response]:
    """A fresh response per request; httpx responses cannot be read twice."""

    def build(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=content)

    return build


class RecordingHandler:
    """
    Mock transport handler answering with queued responses, the last one
    repeating; records every request URL.

    Each queued item is either a builder from respond() or an exception to raise.
    """

    def __init__(self, *responses):
        self.responses: List = list(responses)
        self.requests: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response(request)


def with_compression_method(payload: bytes, method: int) -> bytes:
    """Rewrite the compression method of every entry of a stored zip."""
    data = bytearray(payload)
    # Offset of the method field in local file headers and central directory headers.
    for signature, offset in ((b"PK\x03\x04", 8), (b"PK\x01\x02", 10)):
        start = data.find(signature)
        while start != -1:
            data[start + offset : start + offset + 2] = method.to_bytes(2, "little")
            start = data.find(signature, start + 4)
    return bytes(data)
