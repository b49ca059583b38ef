"""
RangeIterable protocol for cursors that stream a key range.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any


class RangeIterable(ABC):
    """
    Protocol for lazy, single-pass cursors over an ordered key range.

    Implementations must support:
    - Async iteration via __aiter__/__anext__
    - Repositioning via seek(target)
    - Explicit release via aclose()
    """

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[Any]:
        """Return an async iterator over the entries of the range."""
        pass

    @abstractmethod
    async def __anext__(self) -> Any:
        """Return the next entry, or raise StopAsyncIteration when exhausted."""
        pass

    @abstractmethod
    def seek(self, target: str) -> None:
        """
        Move the cursor so the next entry is the first key at or past target.

        Args:
            target: Key to resume from, in the direction of iteration.
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Release buffered entries and end the scan."""
        pass

    async def __aenter__(self) -> "RangeIterable":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
