"""
Response-shape helpers shared by the upstream connectors.

Both upstream systems wrap the same payload in several ways (top level,
under ``data``, under ``result``, ...). Instead of probing each nesting path
inline, callers describe the accepted shapes as an ordered list of accessor
callables and take the first one that yields a value.
"""

from typing import Any, Callable, List, Sequence

Accessor = Callable[[Any], Any]


def path(*keys: str) -> Accessor:
    """
    Build an accessor that walks nested mappings by key.

    Missing keys or non-mapping intermediate values yield None.

    Example:
        >>> path("data", "token")({"data": {"token": "abc"}})
        'abc'
    """

    def accessor(payload: Any) -> Any:
        current = payload
        for key in keys:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
        return current

    return accessor


def first_item(*keys: str) -> Accessor:
    """Build an accessor returning the first element of a nested list."""
    inner = path(*keys)

    def accessor(payload: Any) -> Any:
        value = inner(payload)
        if isinstance(value, list) and value:
            return value[0]
        return None

    return accessor


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def first_present(
    payload: Any,
    accessors: Sequence[Accessor],
    accept: Callable[[Any], bool] = _is_present,
) -> Any:
    """
    Return the first accepted value produced by an ordered list of accessors.

    Args:
        payload: Decoded JSON response (any shape)
        accessors: Accessor callables tried in order
        accept: Predicate deciding whether a produced value counts; by default
            None and blank strings are skipped

    Returns:
        The first accepted value, or None when no accessor produces one
    """
    for accessor in accessors:
        value = accessor(payload)
        if accept(value):
            return value
    return None


def first_list(payload: Any, accessors: Sequence[Accessor]) -> List[Any]:
    """Return the first list produced by the accessors, or an empty list."""
    value = first_present(payload, accessors, accept=lambda v: isinstance(v, list))
    return value if value is not None else []


def unwrap_data(payload: Any) -> Any:
    """Return ``payload["data"]`` when it is a non-empty mapping, else the payload."""
    data = path("data")(payload)
    if isinstance(data, dict) and data:
        return data
    return payload
