"""
Shared fixtures for the Chi Scan test suite.

- ``client``: TestClient over the FastAPI app, dependency overrides cleared after each test
- ``make_png``: builds an in-memory PNG from solid color blocks
- ``png_header_only``: a PNG that declares huge dimensions but carries no pixel data
"""

import io
import struct
import zlib

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from chi_scan.main import app


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def png_bytes(img):
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_png():
    """``make_png([(rgb, width), ...], height=200)`` -> PNG bytes, blocks laid out left to right."""
    def _make(blocks, height=200):
        width = sum(w for _, w in blocks)
        img = Image.new("RGB", (width, height))
        x = 0
        for rgb, w in blocks:
            img.paste(rgb, (x, 0, x + w, height))
            x += w
        return png_bytes(img)
    return _make


def _png_chunk(kind, data):
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data))


@pytest.fixture
def png_header_only():
    """``png_header_only(width, height)`` -> signature + IHDR + IEND, a few dozen bytes."""
    def _make(width, height):
        ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
        return (b"\x89PNG\r\n\x1a\n" + _png_chunk(b"IHDR", ihdr) + _png_chunk(b"IEND", b""))
    return _make
