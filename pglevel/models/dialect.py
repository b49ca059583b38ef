"""
SQL dialect details that differ between backends.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Dialect:
    """
    Backend-specific pieces of query text.

    Attributes:
        name: Backend name, also reported as the store type.
        placeholder: Positional parameter marker used by the driver.
        key_collation: Collation pinned on key comparisons and ordering.
                       Empty when the backend default is already byte-wise.
    """

    name: str
    placeholder: str
    key_collation: str = ""

    @property
    def key(self) -> str:
        """Key column expression used for every comparison and ORDER BY."""
        if self.key_collation:
            return f'key COLLATE "{self.key_collation}"'
        return "key"

    def placeholders(self, count: int) -> str:
        return ", ".join([self.placeholder] * count)


# Postgres sorts text by the database locale unless told otherwise
POSTGRES = Dialect(name="postgres", placeholder="%s", key_collation="C")

# SQLite's default BINARY collation compares UTF-8 text byte by byte
SQLITE = Dialect(name="sqlite", placeholder="?")
