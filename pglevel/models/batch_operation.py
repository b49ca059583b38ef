"""
BatchOperation and OperationType for atomic multi-key writes.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class OperationType(str, Enum):
    """Kind of write in a batch."""

    PUT = "put"  # Upsert key with value
    DEL = "del"  # Remove key if present


@dataclass(frozen=True)
class BatchOperation:
    """
    One write in a batch.

    Attributes:
        type: Whether this writes or removes the key.
        key: The key to write or remove.
        value: The value to store (put only).
    """

    type: OperationType
    key: str
    value: str | None = None

    def __post_init__(self) -> None:
        try:
            op_type = OperationType(self.type)
        except ValueError:
            raise ValueError(f"Unknown batch operation type: {self.type!r}") from None
        object.__setattr__(self, "type", op_type)

        if not isinstance(self.key, str):
            raise TypeError(f"key must be a string, got {type(self.key).__name__}")
        if op_type is OperationType.PUT and not isinstance(self.value, str):
            raise TypeError(
                f"put of {self.key!r} needs a string value, got {type(self.value).__name__}"
            )

    @classmethod
    def put(cls, key: str, value: str) -> "BatchOperation":
        return cls(type=OperationType.PUT, key=key, value=value)

    @classmethod
    def delete(cls, key: str) -> "BatchOperation":
        return cls(type=OperationType.DEL, key=key)

    @classmethod
    def from_mapping(cls, operation: Mapping[str, Any]) -> "BatchOperation":
        """Build from {"type": "put" | "del", "key": ..., "value": ...}."""
        return cls(
            type=operation.get("type"),
            key=operation.get("key"),
            value=operation.get("value"),
        )

    @classmethod
    def coerce(cls, operation: "BatchOperation | Mapping[str, Any]") -> "BatchOperation":
        if isinstance(operation, BatchOperation):
            return operation
        if isinstance(operation, Mapping):
            return cls.from_mapping(operation)
        raise TypeError(
            f"Batch operations must be BatchOperation or mapping, got {type(operation).__name__}"
        )
