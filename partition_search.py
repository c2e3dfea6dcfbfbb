import os

from hash_query import RECORD_SIZE, SUFFIX_LENGTH
from pwned_errors import PartitionCorruptionError


def matches(fileobj, suffix):
    """
    Binary searches a partition file of sorted fixed width records for suffix.
    Returns True only for an exact match.
    """
    if len(suffix) != SUFFIX_LENGTH:
        raise ValueError(f"suffix must be {SUFFIX_LENGTH} characters, got {len(suffix)}")

    size = os.fstat(fileobj.fileno()).st_size
    lower, upper = 0, size // RECORD_SIZE

    # the answer, if present, is in [lower, upper)
    while lower < upper:
        middle = (lower + upper) // 2
        fileobj.seek(middle * RECORD_SIZE)
        record = fileobj.read(SUFFIX_LENGTH)
        if len(record) != SUFFIX_LENGTH:
            raise PartitionCorruptionError(
                f"short record at offset {middle * RECORD_SIZE} in {getattr(fileobj, 'name', fileobj)!r}"
            )

        line = record.decode("ascii", errors="replace")
        if line > suffix:
            upper = middle
        elif line < suffix:
            lower = middle + 1
        else:
            return True

    return False
