"""Shared validation helpers for frozen dataclass models.

Private module, not part of the public API. Used only by
``__post_init__`` methods in sibling model modules to enforce runtime
type constraints and null-byte safety.
"""

from __future__ import annotations

from typing import Any


_HEX_DIGITS = frozenset("0123456789abcdef")


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_timestamp(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_str_no_null(value: Any, name: str) -> None:
    """Raise if *value* is not a ``str`` or contains null bytes."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if "\x00" in value:
        raise ValueError(f"{name} contains null bytes")


def validate_str_not_empty(value: Any, name: str) -> None:
    """Raise if *value* is not a non-empty ``str`` without null bytes."""
    validate_str_no_null(value, name)
    if not value:
        raise ValueError(f"{name} must not be empty")


def validate_hex_id(value: Any, name: str) -> None:
    """Raise if *value* is not a 64-character lowercase hex string."""
    validate_str_not_empty(value, name)
    if len(value) != 64 or not set(value) <= _HEX_DIGITS:
        raise ValueError(f"{name} must be 64 lowercase hex characters")


def freeze_tags(tags: Any, name: str) -> tuple[tuple[str, ...], ...]:
    """Convert a sequence of tag sequences into nested tuples of strings.

    Raises:
        TypeError: If *tags* is not a list/tuple of lists/tuples of strings.
        ValueError: If a tag is empty or a value contains null bytes.
    """
    if not isinstance(tags, (list, tuple)):
        raise TypeError(f"{name} must be a sequence, got {type(tags).__name__}")
    frozen: list[tuple[str, ...]] = []
    for tag in tags:
        if not isinstance(tag, (list, tuple)):
            raise TypeError(f"{name} entries must be sequences, got {type(tag).__name__}")
        if not tag:
            raise ValueError(f"{name} entries must not be empty")
        for value in tag:
            validate_str_no_null(value, name)
        frozen.append(tuple(tag))
    return tuple(frozen)
