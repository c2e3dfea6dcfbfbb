# Command line front end: check one hash or a file of hashes against the range cache.
import argparse
import logging
import sys
from pathlib import Path

from batch_runner import read_hashes, run_batch
from breach_checker import BreachChecker
from hash_query import HashQuery
from pwned_config import CheckerConfig
from pwned_errors import IntegrityError, InvalidHashError, PwnedCacheError

logger = logging.getLogger("check_hashes")

DEFAULT_HASH = "21BD1FAA3BB7F0FBDBBE55A0BF95261B"


def build_parser():
    p = argparse.ArgumentParser(
        prog="pwned-check", description="Check NTLM hashes against Pwned Passwords using k-anonymity"
    )
    p.add_argument("--hash", default=DEFAULT_HASH, help="Hash to check in hibp")
    p.add_argument("--file", type=Path, help="Hashes to check, one per line")
    p.add_argument("--cache-dir", help="Partition cache directory (default: $PWNED_CACHE_DIR or ./cache)")
    p.add_argument("--workers", type=int, help="Maximum checks in flight in file mode (default: 10)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def _print_result(result):
    print(f"{result.hash} found={result.found}", flush=True)


def check_file(checker, path, max_in_flight):
    try:
        with open(path, encoding="utf-8") as f:
            queries = read_hashes(f)
    except OSError as e:
        logger.error("could not open file full of hashes: %s", e)
        return 2
    except UnicodeDecodeError as e:
        logger.error("hash file is not valid UTF-8: %s", e)
        return 2
    except InvalidHashError as e:
        logger.error("%s", e)
        return 2

    try:
        results = run_batch(checker, queries, max_in_flight, on_result=_print_result)
    except IntegrityError as e:
        logger.critical("partition cache is corrupt: %s", e)
        return 3

    logger.info("checked %d of %d hashes", len(results), len(queries))
    return 0


def check_single(checker, raw_hash):
    try:
        query = HashQuery.parse(raw_hash)
    except InvalidHashError as e:
        logger.error("%s", e)
        return 2

    try:
        found = checker.check(query)
    except IntegrityError as e:
        logger.critical("partition cache is corrupt: %s", e)
        return 3
    except PwnedCacheError as e:
        logger.error("%s", e)
        return 1

    print(f"{query} found={found}")
    return 0


def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = CheckerConfig.from_env(cache_dir=args.cache_dir, max_in_flight=args.workers)
    except ValueError as e:
        logger.error("invalid configuration: %s", e)
        return 2

    checker = BreachChecker(config)
    if args.file is not None:
        return check_file(checker, args.file, config.max_in_flight)
    return check_single(checker, args.hash)


if __name__ == "__main__":
    raise SystemExit(main())
