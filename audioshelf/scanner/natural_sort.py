"""Human-friendly ordering of file and directory names.

Names are split into alternating runs of non-digits and digits. Because
``re.split`` with a capturing group always starts with a (possibly empty)
non-digit run, the same index in two keys always holds the same kind of
token, so keys compare element-wise without type clashes:

    "Chapter 2.mp3"  -> ["Chapter ", (2, "2"), ".mp3"]
    "Chapter 10.mp3" -> ["Chapter ", (10, "10"), ".mp3"]

Digit runs compare by value first and by their literal text second, so
``"01"`` and ``"1"`` are ordered deterministically instead of tying. A key
that is a strict prefix of another sorts first.
"""

import re
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")

_DIGITS_RE = re.compile(r"(\d+)")


def natural_key(name: str) -> tuple[Any, ...]:
    key: list[Any] = []
    for index, part in enumerate(_DIGITS_RE.split(name)):
        if index % 2:
            key.append((int(part), part))
        else:
            key.append(part)
    return tuple(key)


def natural_compare(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` sorts before, equal to, or after ``b``."""
    key_a = natural_key(a)
    key_b = natural_key(b)
    return (key_a > key_b) - (key_a < key_b)


def natural_sorted(items: Iterable[T], key: Callable[[T], str] | None = None) -> list[T]:
    if key is None:
        return sorted(items, key=lambda item: natural_key(str(item)))
    return sorted(items, key=lambda item: natural_key(key(item)))
