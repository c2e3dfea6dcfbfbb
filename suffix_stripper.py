"""
Reframes a Pwned Passwords range body into fixed width records.

The API sends one "SUFFIX:COUNT" entry per line. The cache keeps only the
27 byte suffix of each line plus a newline, so every record is exactly
RECORD_SIZE bytes and the file can be binary searched by offset.
"""
import enum
import io

from hash_query import SUFFIX_LENGTH
from pwned_errors import TruncatedStreamError


class StripperState(enum.Enum):
    DRAINING = "draining"
    READING_SUFFIX = "reading-suffix"
    DISCARDING = "discarding"
    EXHAUSTED = "exhausted"


class SuffixStripper(io.RawIOBase):
    """
    Pull based transcoder: wraps any object with read(n) and yields
    SUFFIX + b"\\n" for every line of the source.
    """

    def __init__(self, source):
        self._source = source
        self._pending = b""
        self.state = StripperState.DRAINING

    def readable(self):
        return True

    def readinto(self, buffer):
        while True:
            if self.state is StripperState.DRAINING:
                if self._pending:
                    return self._drain(buffer)
                self.state = StripperState.READING_SUFFIX

            elif self.state is StripperState.READING_SUFFIX:
                suffix = self._read_suffix()
                if not suffix:
                    self.state = StripperState.EXHAUSTED
                    return 0
                self._pending = suffix + b"\n"
                self.state = StripperState.DISCARDING

            elif self.state is StripperState.DISCARDING:
                # Eat ":COUNT" and the terminator so the next read starts on a record
                self._discard_to_terminator()
                self.state = StripperState.DRAINING

            else:
                return 0

    def _drain(self, buffer):
        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def _read_suffix(self):
        suffix = b""
        while len(suffix) < SUFFIX_LENGTH:
            chunk = self._source.read(SUFFIX_LENGTH - len(suffix))
            if not chunk:
                break
            suffix += chunk

        if suffix and len(suffix) < SUFFIX_LENGTH:
            raise TruncatedStreamError(
                f"range body ended after {len(suffix)} of {SUFFIX_LENGTH} suffix bytes"
            )
        return suffix

    def _discard_to_terminator(self):
        while True:
            single = self._source.read(1)
            # EOF here is fine, the record is already staged
            if not single or single == b"\n":
                return
