import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import BinaryIO

import requests
import urllib3

from hash_query import HashQuery
from partition_cache import PartitionCoordinator, PartitionStore
from pwned_config import CheckerConfig
from pwned_errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotModified:
    """The stored partition is still current."""


@dataclass(frozen=True)
class Fetched:
    """A full partition in wire format, with the validator it was served under."""
    etag: str
    body: BinaryIO


class _ResponseBody:
    """Decoded response body that reports read failures as TransportError."""

    def __init__(self, response, prefix):
        self._raw = response.raw
        self._prefix = prefix

    def read(self, size=-1):
        amt = None if size is None or size < 0 else size
        try:
            return self._raw.read(amt, decode_content=True)
        except urllib3.exceptions.HTTPError as e:
            raise TransportError(f"failed to read range {self._prefix}: {e}") from e


class RangeFetcher:
    """
    Conditional GETs against the k-anonymity range endpoint.
    Only the 5 char prefix is ever sent.
    """

    def __init__(self, config, session=None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = config.user_agent

    def range_url(self, prefix):
        return self.config.api_url + prefix

    @contextmanager
    def fetch(self, prefix, previous_etag=""):
        """
        Yields NotModified or Fetched. The response is closed when the
        with block exits, so the body must be consumed inside it.
        """
        headers = {}
        if previous_etag:
            headers["If-None-Match"] = previous_etag

        try:
            response = self.session.get(
                self.range_url(prefix),
                params={"mode": self.config.mode},
                headers=headers,
                stream=True,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"failed to query pwnedpasswords for {prefix}: {e}") from e

        try:
            if response.status_code == 304:
                logger.debug("range %s not modified (etag %s)", prefix, previous_etag)
                yield NotModified()
                return
            try:
                response.raise_for_status()
            except requests.RequestException as e:
                raise TransportError(f"failed to query pwnedpasswords for {prefix}: {e}") from e

            logger.debug("range %s fetched with status %s", prefix, response.status_code)
            yield Fetched(response.headers.get("ETag", ""), _ResponseBody(response, prefix))
        finally:
            response.close()


class BreachChecker:
    """
    Answers "is this hash in the breach corpus?" from the local partition
    cache, consulting the remote range API at most once per prefix per
    checker instance.
    """

    def __init__(self, config=None, fetcher=None, coordinator=None, store=None):
        self.config = config or CheckerConfig()
        self.fetcher = fetcher or RangeFetcher(self.config)
        self.coordinator = coordinator or PartitionCoordinator()
        self.store = store or PartitionStore(self.config.cache_dir)

    def check(self, hash_value):
        query = hash_value if isinstance(hash_value, HashQuery) else HashQuery.parse(hash_value)
        prefix = query.prefix

        with self.coordinator.claim(prefix) as fresh:
            if fresh:
                self._refresh(prefix)
            return self.store.search(prefix, query.suffix)

    def _refresh(self, prefix):
        old_etag = self.store.load_etag(prefix)
        with self.fetcher.fetch(prefix, old_etag) as result:
            if isinstance(result, NotModified):
                # we already have the data file and the etag is still valid
                return
            self.store.store(prefix, result.etag, result.body)
            logger.info("refreshed partition %s", prefix)
