"""
On-disk cache of k-anonymity partitions and the in-process locks guarding it.

Layout under the cache root:

    <PREFIX>/etag   validator from the last successful fetch
    <PREFIX>/data   sorted RECORD_SIZE byte records, one per suffix

The first caller for a prefix in a process gets the write lock and does the
fetch or revalidation. Everyone after it takes a read lock and trusts the
files the first caller left behind.
"""
import io
import logging
import os
import shutil
import threading
from contextlib import contextmanager
from pathlib import Path

from partition_search import matches
from pwned_errors import CacheIOError
from suffix_stripper import SuffixStripper

logger = logging.getLogger(__name__)

DATA_FILE = "data"
ETAG_FILE = "etag"
DIR_MODE = 0o700
FILE_MODE = 0o600


class ReadWriteLock:
    """Many readers or a single writer, never both."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def acquire_read(self):
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class PartitionCoordinator:
    """Hands out one lock per prefix for the lifetime of this object."""

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._locks = {}

    def acquire(self, prefix):
        """
        Returns (is_freshly_claimed, release).

        The first caller for a prefix holds the write lock and must call
        release once its fetch is done. Later callers block on a read lock
        until then.
        """
        with self._registry_lock:
            lock = self._locks.get(prefix)
            if lock is None:
                lock = ReadWriteLock()
                self._locks[prefix] = lock
                # Nobody else can see the lock yet so this never blocks
                lock.acquire_write()
                return True, lock.release_write

        lock.acquire_read()
        return False, lock.release_read

    @contextmanager
    def claim(self, prefix):
        fresh, release = self.acquire(prefix)
        try:
            yield fresh
        finally:
            release()

    def __contains__(self, prefix):
        with self._registry_lock:
            return prefix in self._locks

    def __len__(self):
        with self._registry_lock:
            return len(self._locks)


def _open_private(path, flags):
    return os.fdopen(os.open(path, flags, FILE_MODE), "w+b")


class PartitionStore:
    """Reads and replaces partition files under cache_dir."""

    def __init__(self, cache_dir):
        self.cache_dir = Path(cache_dir)

    def partition_dir(self, prefix):
        return self.cache_dir / prefix

    def data_path(self, prefix):
        return self.partition_dir(prefix) / DATA_FILE

    def etag_path(self, prefix):
        return self.partition_dir(prefix) / ETAG_FILE

    def load_etag(self, prefix):
        """Stored validator for prefix, or "" if there is none."""
        try:
            etag = self.etag_path(prefix).read_text(encoding="utf-8")
        except OSError as e:
            logger.debug("no etag for %s: %s", prefix, e)
            return ""
        return etag.strip()

    def store(self, prefix, etag, body):
        """
        Replaces the partition for prefix: etag first, then the data file
        reframed from the raw range body. A crash in between leaves the two
        out of step; nothing is rolled back.
        """
        try:
            self.partition_dir(prefix).mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIOError(f"failed to create cache directories for {prefix}: {e}") from e

        flags = os.O_CREAT | os.O_RDWR | os.O_TRUNC
        try:
            with _open_private(self.etag_path(prefix), flags) as f:
                f.write(etag.encode("utf-8"))
        except OSError as e:
            raise CacheIOError(f"failed to create etag store for {prefix}: {e}") from e

        try:
            with _open_private(self.data_path(prefix), flags) as f:
                shutil.copyfileobj(io.BufferedReader(SuffixStripper(body)), f)
        except OSError as e:
            raise CacheIOError(f"failed to write to hashes store for {prefix}: {e}") from e

        logger.debug("stored partition %s (etag %s)", prefix, etag)

    def search(self, prefix, suffix):
        try:
            f = open(self.data_path(prefix), "rb")
        except OSError as e:
            raise CacheIOError(f"failed to open data file for {prefix}: {e}") from e
        with f:
            try:
                return matches(f, suffix)
            except OSError as e:
                raise CacheIOError(f"failed to read data file for {prefix}: {e}") from e
