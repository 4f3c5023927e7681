"""
View key ordering and document path helpers shared by the stores.

Keys sort the way CouchDB collates JSON values:
null < false < true < numbers < strings < arrays < objects.
Strings compare by code point rather than ICU collation.
"""

from __future__ import annotations

from typing import Any

from docmigrate.documents import Document

_NULL, _FALSE, _TRUE, _NUMBER, _STRING, _ARRAY, _OBJECT = range(7)


def collation_key(value: Any) -> tuple[Any, ...]:
    """
    Build a sort key for a JSON value.

    Args:
        value: Any JSON-compatible value

    Returns:
        A tuple that orders values of different JSON types consistently

    Example:
        >>> sorted([3, "a", None, [1]], key=collation_key)
        [None, 3, 'a', [1]]
    """
    if value is None:
        return (_NULL,)
    if value is False:
        return (_FALSE,)
    if value is True:
        return (_TRUE,)
    if isinstance(value, int | float):
        return (_NUMBER, value)
    if isinstance(value, str):
        return (_STRING, value)
    if isinstance(value, list | tuple):
        return (_ARRAY, tuple(collation_key(item) for item in value))
    if isinstance(value, dict):
        return (
            _OBJECT,
            tuple((collation_key(k), collation_key(v)) for k, v in value.items()),
        )
    raise TypeError(f"Unsupported view key type: {type(value).__name__}")


def row_key(key: Any, doc_id: str | None) -> tuple[tuple[Any, ...], str]:
    """Sort key for a view row: collated key, then document id."""
    return (collation_key(key), doc_id or "")


def extract_path(document: Document, path: str) -> Any:
    """
    Resolve a ``$.a.b`` style path against a document.

    Only dotted object member access is supported; a missing member
    resolves to None, matching SQLite's ``json_extract``.

    Args:
        document: Document to read from
        path: Path starting with ``$``

    Returns:
        The value at the path, or None
    """
    if path != "$" and not path.startswith("$."):
        raise ValueError(f"Unsupported key path: {path!r}")
    value: Any = document
    for part in path[2:].split(".") if path != "$" else []:
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value
