"""
Ordered multi-value maps used for headers, query parameters and form parameters.
"""
from collections.abc import MutableMapping
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

Values = List[Optional[str]]
MapSource = Union["StringsMap", Mapping[str, Any]]


def _as_values(values: Any) -> Values:
    """Normalize a single value or an iterable of values into a list."""
    if values is None or isinstance(values, (str, bytes)):
        return [values]
    return list(values)


class StringsMap(MutableMapping):
    """
    Ordered mapping of a name to an ordered list of string values.
    Names are case-sensitive; see CaseInsensitiveStringsMap for header semantics.
    """

    def __init__(self, source: Optional[MapSource] = None):
        # lookup key -> name as first given, lookup key -> values
        self._names: Dict[str, str] = {}
        self._values: Dict[str, Values] = {}
        if source is not None:
            self.add_all(source)

    def _lookup_key(self, name: str) -> str:
        return name

    # MutableMapping protocol

    def __getitem__(self, name: str) -> Values:
        return list(self._values[self._lookup_key(name)])

    def __setitem__(self, name: str, values: Any) -> None:
        self.replace(name, *_as_values(values))

    def __delitem__(self, name: str) -> None:
        key = self._lookup_key(name)
        del self._values[key]
        del self._names[key]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names.values()))

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._lookup_key(name) in self._values

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"

    # Fluent operations

    def add(self, name: Optional[str], *values: Optional[str]) -> "StringsMap":
        """Append values for a name, creating the entry if needed."""
        if name is None:
            return self
        key = self._lookup_key(name)
        if key not in self._values:
            self._names[key] = name
            self._values[key] = []
        self._values[key].extend(values)
        return self

    def add_all(self, source: MapSource) -> "StringsMap":
        for name, values in source.items():
            self.add(name, *_as_values(values))
        return self

    def replace(self, name: Optional[str], *values: Optional[str]) -> "StringsMap":
        """Replace all values for a name. No values removes the entry."""
        if name is None:
            return self
        key = self._lookup_key(name)
        if not values:
            self._names.pop(key, None)
            self._values.pop(key, None)
            return self
        self._names[key] = name
        self._values[key] = list(values)
        return self

    def replace_all(self, source: MapSource) -> "StringsMap":
        for name, values in source.items():
            self.replace(name, *_as_values(values))
        return self

    def delete(self, name: str) -> "StringsMap":
        if name in self:
            del self[name]
        return self

    def delete_all(self, names: Iterable[str]) -> "StringsMap":
        for name in names:
            self.delete(name)
        return self

    def get_first_value(self, name: str) -> Optional[str]:
        values = self._values.get(self._lookup_key(name))
        if not values:
            return None
        return values[0]

    def get_joined_value(self, name: str, delimiter: str = ", ") -> Optional[str]:
        values = self._values.get(self._lookup_key(name))
        if values is None:
            return None
        return delimiter.join("" if v is None else v for v in values)

    def copy(self) -> "StringsMap":
        return type(self)(self)


class CaseInsensitiveStringsMap(StringsMap):
    """
    StringsMap with case-insensitive name lookup.
    The casing of the most recent replace (or first add) is kept for iteration.
    """

    def _lookup_key(self, name: str) -> str:
        return name.lower()
