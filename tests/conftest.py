import io
from contextlib import contextmanager

import pytest

from breach_checker import BreachChecker, Fetched, NotModified
from pwned_config import CheckerConfig


def wire_body(entries):
    """Builds a range body the way the API serves it: SUFFIX:COUNT with CRLF."""
    return b"".join(f"{suffix}:{count}\r\n".encode("ascii") for suffix, count in entries)


def write_records(path, suffixes):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"".join(s.encode("ascii") + b"\n" for s in sorted(suffixes)))


class FakeFetcher:
    """Stands in for RangeFetcher. responses maps prefix -> (status, etag, body)."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    @contextmanager
    def fetch(self, prefix, previous_etag=""):
        self.calls.append((prefix, previous_etag))
        outcome = self.responses[prefix]
        if isinstance(outcome, Exception):
            raise outcome
        status, etag, body = outcome
        if status == 304:
            yield NotModified()
        else:
            yield Fetched(etag, io.BytesIO(body))


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def checker(tmp_path, fake_fetcher):
    return BreachChecker(CheckerConfig(cache_dir=str(tmp_path / "cache")), fetcher=fake_fetcher)
