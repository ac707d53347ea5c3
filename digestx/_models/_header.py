"""
HTTP Headers implementation.

Provides a case-insensitive, order-preserving, multi-valued headers
container.
"""

from __future__ import annotations

import typing
from collections.abc import Mapping

from .._types import HeaderTypes
from .._utils import HEADERS


# ============================================================================
# Headers Implementation
# ============================================================================


class Headers(typing.MutableMapping[str, str]):
    """Case-insensitive HTTP headers preserving insertion order.

    A header may occur several times (e.g. one WWW-Authenticate line per
    challenge). Item access joins repeated values with ", " as RFC 7230
    allows for list-valued headers; get_list() returns them separately.

    Examples:
        >>> h = Headers({"www-authenticate": 'Digest realm="a", nonce="b"'})
        >>> h["WWW-AUTHENTICATE"]  # Case-insensitive access
        'Digest realm="a", nonce="b"'
        >>> h.add("WWW-Authenticate", 'Basic realm="a"')
        >>> h.get_list("WWW-Authenticate")
        ['Digest realm="a", nonce="b"', 'Basic realm="a"']
        >>> list(h.keys())  # Canonical casing
        ['WWW-Authenticate']
    """

    __slots__ = ("_store", "_order")

    @staticmethod
    def _canonical(name: str) -> str:
        """
        Convert header name to canonical display form.

        Examples:
        - 'www-authenticate' -> 'WWW-Authenticate' (mapped header)
        - 'content-type' -> 'Content-Type' (title-case fallback)
        - 'X-Custom' -> 'X-Custom' (already capitalized, returned as-is)
        """
        name = name.strip()
        lower_name = name.lower()
        if lower_name in HEADERS:
            return HEADERS[lower_name]
        if name.islower():
            return "-".join(part.capitalize() for part in name.split("-"))
        return name

    def __init__(
        self,
        headers: HeaderTypes | typing.Iterable[tuple[str, str]] | None = None,
    ) -> None:
        """
        Initialize Headers container.

        Args:
            headers: Initial headers as Headers, Mapping or (name, value) pairs
        """
        # _store maps lowercase name -> (display_name, values)
        self._store: dict[str, tuple[str, list[str]]] = {}
        self._order: list[str] = []

        if isinstance(headers, Headers):
            self._store = {
                key: (display, list(values))
                for key, (display, values) in headers._store.items()
            }
            self._order = headers._order.copy()
        elif isinstance(headers, Mapping):
            for key, value in headers.items():
                self[key] = value
        elif headers is not None:
            for key, value in headers:
                self.add(key, value)

    def __getitem__(self, key: str) -> str:
        """Get header value (case-insensitive); repeated values are comma-joined."""
        lower_name = key.strip().lower()
        if lower_name not in self._store:
            raise KeyError(key)
        return ", ".join(self._store[lower_name][1])

    def __setitem__(self, key: str, value: str) -> None:
        """Set a header value, replacing any existing values for this key."""
        lower_name = key.strip().lower()
        if lower_name not in self._store:
            self._order.append(lower_name)
        self._store[lower_name] = (self._canonical(key), [str(value)])

    def __delitem__(self, key: str) -> None:
        """Delete all values of a header (case-insensitive)."""
        lower_name = key.strip().lower()
        if lower_name not in self._store:
            raise KeyError(key)
        del self._store[lower_name]
        self._order.remove(lower_name)

    def __iter__(self) -> typing.Iterator[str]:
        """Iterate over header names (canonical casing, insertion order)."""
        for lower_name in self._order:
            yield self._store[lower_name][0]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return key.strip().lower() in self._store

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._store == other._store and self._order == other._order

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self.multi_items())
        return f"Headers([{items}])"

    def add(self, key: str, value: str) -> None:
        """Append a value, keeping any existing values for this key."""
        lower_name = key.strip().lower()
        if lower_name not in self._store:
            self[key] = value
            return
        self._store[lower_name][1].append(str(value))

    def get_list(self, key: str) -> list[str]:
        """Return every value of a header, in arrival order."""
        lower_name = key.strip().lower()
        if lower_name not in self._store:
            return []
        return list(self._store[lower_name][1])

    def multi_items(self) -> typing.Iterator[tuple[str, str]]:
        """Iterate over (name, value) pairs, one per header line."""
        for lower_name in self._order:
            display, values = self._store[lower_name]
            for value in values:
                yield display, value

    def copy(self) -> Headers:
        """Create a copy of this Headers instance."""
        return Headers(self)


__all__ = ["Headers"]
