"""Pytest configuration and shared fixtures for multipart uploader tests."""

import os

import httpx
import pytest
from prometheus_client import CollectorRegistry

from multipart_uploader.domain.entities.part import PartDescriptor
from multipart_uploader.domain.entities.source_file import SourceFile
from multipart_uploader.infrastructure.config import Config
from multipart_uploader.infrastructure.container import Container
from multipart_uploader.infrastructure.metrics import UploaderMetrics


@pytest.fixture(autouse=True)
def reset_container():
    """Reset the DI container before each test."""
    Container.reset()
    yield
    Container.reset()


@pytest.fixture
def test_config() -> Config:
    """Provide a test configuration."""
    return Config()


@pytest.fixture
def metrics() -> UploaderMetrics:
    """Metrics bound to a private registry so tests never collide."""
    return UploaderMetrics(registry=CollectorRegistry())


@pytest.fixture
def sample_bytes() -> bytes:
    """250 bytes with no repeating 100-byte window."""
    return bytes(range(250))


@pytest.fixture
def sample_file(tmp_path, sample_bytes) -> SourceFile:
    """A 250 byte file on disk."""
    path = tmp_path / "sample.bin"
    path.write_bytes(sample_bytes)
    return SourceFile.from_path(path)


@pytest.fixture
def sample_parts() -> list[PartDescriptor]:
    """Three parts covering the 250 byte sample file."""
    return [
        PartDescriptor(part_number=1, start=0, end=100),
        PartDescriptor(part_number=2, start=100, end=200),
        PartDescriptor(part_number=3, start=200, end=250),
    ]


@pytest.fixture
def large_file(tmp_path) -> SourceFile:
    """A 1 MiB file of random bytes."""
    path = tmp_path / "large.dat"
    path.write_bytes(os.urandom(1024 * 1024))
    return SourceFile.from_path(path)


class FakeS3:
    """In-memory stand-in for the S3 data plane behind presigned URLs.

    Stores every PUT body by URL path and answers with a quoted ETag.
    ``failures`` maps a path to the status codes returned before it succeeds;
    a path listed in ``broken`` always fails with 500.
    """

    def __init__(self):
        self.bodies: dict[str, bytes] = {}
        self.headers: dict[str, httpx.Headers] = {}
        self.attempts: dict[str, int] = {}
        self.failures: dict[str, list[int]] = {}
        self.broken: set[str] = set()
        self.omit_etag = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.attempts[path] = self.attempts.get(path, 0) + 1
        if path in self.broken:
            return httpx.Response(500)
        pending = self.failures.get(path)
        if pending:
            return httpx.Response(pending.pop(0))

        self.bodies[path] = request.content
        self.headers[path] = request.headers
        if self.omit_etag:
            return httpx.Response(200)
        return httpx.Response(200, headers={"ETag": f'"etag-{path.strip("/")}"'})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def fake_s3() -> FakeS3:
    """Provide an in-memory S3 data plane."""
    return FakeS3()


# Pytest markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
