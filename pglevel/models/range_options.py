"""
RangeOptions - bounds, ordering and limit describing a range scan.
"""

import dataclasses
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pglevel.models.exceptions import InvalidRangeError


@dataclass(frozen=True)
class RangeOptions:
    """
    Immutable description of a range over the keys of one namespace.

    Attributes:
        gt: Exclusive lower bound.
        gte: Inclusive lower bound.
        lt: Exclusive upper bound.
        lte: Inclusive upper bound.
        reverse: Yield keys in descending order.
        limit: Maximum number of entries. None (or any negative number,
               or infinity) means unbounded.
        keys: Produce keys.
        values: Produce values.
    """

    gt: str | None = None
    gte: str | None = None
    lt: str | None = None
    lte: str | None = None
    reverse: bool = False
    limit: int | None = None
    keys: bool = True
    values: bool = True

    def __post_init__(self) -> None:
        if self.gt is not None and self.gte is not None:
            raise InvalidRangeError("gt", "gte")
        if self.lt is not None and self.lte is not None:
            raise InvalidRangeError("lt", "lte")

        for name in ("gt", "gte", "lt", "lte"):
            bound = getattr(self, name)
            if bound is not None and not isinstance(bound, str):
                raise TypeError(f"{name} must be a string, got {type(bound).__name__}")

        if not self.keys and not self.values:
            raise ValueError("At least one of keys or values must be selected")

        limit = self.limit
        if limit is None:
            return
        if isinstance(limit, float) and math.isinf(limit):
            limit = None
        elif isinstance(limit, bool) or not isinstance(limit, int):
            raise TypeError(f"limit must be an integer, got {type(limit).__name__}")
        elif limit < 0:
            limit = None
        object.__setattr__(self, "limit", limit)

    @property
    def lower(self) -> tuple[str, str] | None:
        """Lower bound as (operator, key), or None when open."""
        if self.gt is not None:
            return (">", self.gt)
        if self.gte is not None:
            return (">=", self.gte)
        return None

    @property
    def upper(self) -> tuple[str, str] | None:
        """Upper bound as (operator, key), or None when open."""
        if self.lt is not None:
            return ("<", self.lt)
        if self.lte is not None:
            return ("<=", self.lte)
        return None

    @property
    def bounded(self) -> bool:
        return self.limit is not None

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "RangeOptions":
        """
        Build options from a plain mapping, ignoring unknown keys.

        Args:
            options: Mapping such as {"gte": "a", "lt": "m", "limit": 10}.

        Returns:
            A validated RangeOptions.
        """
        names = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in options.items() if k in names})

    @classmethod
    def coerce(
        cls, options: "RangeOptions | Mapping[str, Any] | None" = None, **overrides: Any
    ) -> "RangeOptions":
        """
        Normalize the argument forms accepted by the store API.

        Args:
            options: Existing RangeOptions, a mapping, or None.
            **overrides: Individual fields that take precedence over options.

        Returns:
            A validated RangeOptions.
        """
        if options is None:
            return cls(**overrides)
        if isinstance(options, RangeOptions):
            return dataclasses.replace(options, **overrides) if overrides else options
        return cls.from_mapping({**options, **overrides})
