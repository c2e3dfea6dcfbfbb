import string
from dataclasses import dataclass

from pwned_errors import InvalidHashError

HASH_LENGTH = 32
PREFIX_LENGTH = 5
SUFFIX_LENGTH = HASH_LENGTH - PREFIX_LENGTH
# suffix plus one newline byte
RECORD_SIZE = SUFFIX_LENGTH + 1

_HEX_DIGITS = frozenset(string.hexdigits.upper())


@dataclass(frozen=True)
class HashQuery:
    """An uppercased 32 char hash split for a k-anonymity range lookup."""
    value: str

    @classmethod
    def parse(cls, raw):
        """
        Validates and normalises a hash.
        Raises InvalidHashError for anything that is not 32 hex characters.
        """
        value = raw.strip().upper()
        if len(value) != HASH_LENGTH:
            raise InvalidHashError(
                f"hash is an invalid length: {value!r} should be {HASH_LENGTH} was: {len(value)}"
            )
        if not _HEX_DIGITS.issuperset(value):
            raise InvalidHashError(f"hash is not hexadecimal: {value!r}")
        return cls(value)

    @property
    def prefix(self):
        # Only this part ever leaves the machine
        return self.value[:PREFIX_LENGTH]

    @property
    def suffix(self):
        return self.value[PREFIX_LENGTH:]

    def __str__(self):
        return self.value
