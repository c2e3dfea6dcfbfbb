"""
List mode: check many hashes at once with a bounded number in flight.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from hash_query import HashQuery
from pwned_config import MAX_IN_FLIGHT
from pwned_errors import CacheIOError, IntegrityError, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchResult:
    hash: str
    found: bool

    def to_dict(self):
        return {"hash": self.hash, "found": self.found}


def read_hashes(lines):
    """
    Parses every line into a HashQuery, blank lines included.
    One malformed line fails the whole batch before anything is checked.
    """
    queries = []
    for line in lines:
        queries.append(HashQuery.parse(line))
    return queries


def run_batch(checker, queries, max_in_flight=MAX_IN_FLIGHT, on_result=None):
    """
    Checks every query with at most max_in_flight running at once.

    Results come back in completion order, not input order. Transport and
    cache I/O failures are logged and the hash is left out. A corrupt
    partition cancels the rest of the batch and is re-raised.
    """
    results = []
    executor = ThreadPoolExecutor(max_workers=max_in_flight, thread_name_prefix="pwned-check")
    try:
        futures = {executor.submit(checker.check, query): query for query in queries}
        for future in as_completed(futures):
            query = futures[future]
            try:
                found = future.result()
            except (TransportError, CacheIOError) as e:
                logger.warning("check failed for %s: %s", query, e)
                continue

            result = BatchResult(str(query), found)
            results.append(result)
            if on_result is not None:
                on_result(result)
    except IntegrityError:
        executor.shutdown(wait=True, cancel_futures=True)
        raise
    finally:
        executor.shutdown(wait=True)
    return results
