"""
Database utility functions for common operations.

Provides reusable helpers for:
- Query building
- Result mapping
- pgvector literal encoding
"""

import math
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

import asyncpg


class DatabaseError(Exception):
    """Base exception for database errors."""

    pass


class EmbeddingDimensionError(ValueError):
    """Raised when an embedding of the wrong size is about to be written."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Embedding has {actual} dimensions, expected {expected}")
        self.expected = expected
        self.actual = actual


def record_to_dict(record: asyncpg.Record) -> Dict[str, Any]:
    """Convert asyncpg Record to dictionary."""
    return dict(record)


def records_to_list(records: List[asyncpg.Record]) -> List[Dict[str, Any]]:
    """Convert list of asyncpg Records to list of dictionaries."""
    return [record_to_dict(record) for record in records]


def build_insert_query(
    table: str,
    data: Dict[str, Any],
    returning: str = "*",
) -> tuple[str, List[Any]]:
    """
    Build INSERT query with parameterized values.

    Args:
        table: Table name
        data: Dictionary of column: value pairs
        returning: RETURNING clause (default: "*")

    Returns:
        Tuple of (query, values)

    Example:
        query, values = build_insert_query(
            "chat_messages",
            {"conversation_id": conv_uuid, "role": "user", "content": "Hi"}
        )
    """
    if not data:
        raise ValueError("No data provided")

    columns = list(data.keys())
    values = list(data.values())
    placeholders = [f"${i+1}" for i in range(len(values))]

    query = f"""
        INSERT INTO {table} ({', '.join(columns)})
        VALUES ({', '.join(placeholders)})
        RETURNING {returning}
    """

    return query, values


def parse_uuid(value: Any) -> Optional[UUID]:
    """
    Safely parse UUID from various input types.

    Raises:
        ValueError: If value is not a valid UUID
    """
    if value is None:
        return None

    if isinstance(value, UUID):
        return value

    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            raise ValueError(f"Invalid UUID: {value}") from None

    raise ValueError(f"Cannot parse UUID from type {type(value)}")


def to_vector_literal(embedding: Sequence[float]) -> str:
    """
    Encode an embedding as a pgvector text literal (``[0.1,0.2,...]``).

    Passed as a text parameter and cast with ``$n::vector`` so no custom
    asyncpg codec is needed.

    Raises:
        ValueError: If the vector is empty or has non-finite components
    """
    if not embedding:
        raise ValueError("Embedding cannot be empty")

    components = []
    for value in embedding:
        number = float(value)
        if not math.isfinite(number):
            raise ValueError("Embedding contains a non-finite component")
        components.append(repr(number))
    return "[" + ",".join(components) + "]"

