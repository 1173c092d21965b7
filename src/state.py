"""
Resource State - The declarative field set for one resource.

Holds the declared values for a resource along with the remote identifier
once a write has assigned one. Handlers read declared values from it when
building requests and write reconciled values back into it after a read.
"""

import copy
from typing import Any, Dict, Optional, Tuple


def _is_zero(value: Any) -> bool:
    return value is None or value is False or value == 0 or value == "" or value == {} or value == []


class ResourceData:
    """
    Typed key/value store with schema defaults.

    The schema maps every known field to its default (zero) value. Values
    that were never declared read back as that default.
    """

    def __init__(
        self,
        schema: Dict[str, Any],
        values: Optional[Dict[str, Any]] = None,
        resource_id: str = "",
    ):
        self.schema = schema
        self._values: Dict[str, Any] = {}
        self._id = resource_id or ""

        for key, value in (values or {}).items():
            self.set(key, value)

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, resource_id: Optional[str]) -> None:
        """Assign the remote identifier. Empty means the resource is gone."""
        self._id = resource_id or ""

    def get(self, key: str) -> Any:
        """Get a field value, falling back to the schema default."""
        if key in self._values:
            return self._values[key]
        if key not in self.schema:
            raise KeyError(f"Unknown field: {key}")
        return copy.deepcopy(self.schema[key])

    def get_ok(self, key: str) -> Tuple[Any, bool]:
        """
        Get a field value and whether it holds a non-zero value.

        Returns:
            Tuple of (value, ok). ok is False when the field is unset or set
            to its zero value.
        """
        value = self.get(key)
        return value, key in self._values and not _is_zero(value)

    def set(self, key: str, value: Any) -> None:
        if key not in self.schema:
            raise KeyError(f"Unknown field: {key}")
        self._values[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """All fields with defaults applied, plus the identifier."""
        data = {key: self.get(key) for key in self.schema}
        data["id"] = self._id
        return data

    def __repr__(self) -> str:
        return f"ResourceData(id={self._id!r}, fields={sorted(self._values)})"
