"""
Request payload container for policygate.

Parameters wraps an incoming payload (a decoded form or JSON body) and
offers the two operations permitted-attribute extraction needs:

    require(key)      -> the value under a top-level key, or ParameterMissingError
    permit(*fields)   -> only the listed fields, everything else dropped

Field specs follow a small grammar:

    "title"                  keep a scalar value
    {"tags": []}             keep a list of scalars
    {"address": ["city"]}    keep a nested mapping (or list of mappings),
                             itself filtered down to the listed fields

A plain string field never keeps a mapping or a list, so a payload cannot
smuggle nested data through a scalar field.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from policygate.exceptions import ParameterMissingError

logger = logging.getLogger(__name__)

_SEQUENCE_TYPES = (list, tuple)

# Marker for nested values that do not match their field spec
_DROP = object()


def _is_scalar(value: Any) -> bool:
    return not isinstance(value, (Mapping, list, tuple, set, frozenset))


class Parameters(Mapping[str, Any]):
    """
    Read-only mapping over a request payload.

    Example:
        >>> params = Parameters({"post": {"title": "Hi", "admin": True}})
        >>> params.require("post").permit("title")
        {'title': 'Hi'}
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    @classmethod
    def from_model(cls, model: Any, exclude_unset: bool = True) -> Parameters:
        """
        Build parameters from a pydantic model.

        Only fields the client actually sent are included by default, so a
        model default never reaches the permitted attributes.

        Requires: pip install policygate[pydantic]

        Raises:
            TypeError: If model is not a pydantic model instance.
        """
        from pydantic import BaseModel

        if not isinstance(model, BaseModel):
            raise TypeError(f"Expected a pydantic model instance, got {type(model).__name__}")
        return cls(model.model_dump(exclude_unset=exclude_unset))

    @classmethod
    def wrap(cls, payload: Any) -> Parameters:
        """
        Coerce a payload into Parameters.

        Accepts Parameters, any mapping, a pydantic model, or None.
        """
        if isinstance(payload, Parameters):
            return payload
        if payload is None or isinstance(payload, Mapping):
            return cls(payload)
        return cls.from_model(payload)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Parameters({self._data!r})"

    def require(self, key: str) -> Any:
        """
        Get the value under a required top-level key.

        Nested mappings come back wrapped as Parameters so they can be
        permitted in turn.

        Raises:
            ParameterMissingError: If the key is absent or its value is
                None or empty.
        """
        value = self._data.get(key)
        if value is None or (not isinstance(value, (bool, int, float)) and not value):
            raise ParameterMissingError(key)
        if isinstance(value, Mapping):
            return Parameters(value)
        return value

    def permit(self, *fields: Any) -> dict[str, Any]:
        """
        Filter the payload down to the permitted fields.

        Fields that are permitted but absent are simply left out.

        Returns:
            A new dict holding only permitted, present fields.
        """
        permitted: dict[str, Any] = {}
        for spec in fields:
            if isinstance(spec, Mapping):
                for key, nested in spec.items():
                    if key not in self._data:
                        continue
                    value = _permit_nested(self._data[key], nested)
                    if value is not _DROP:
                        permitted[key] = value
            elif spec in self._data and _is_scalar(self._data[spec]):
                permitted[spec] = self._data[spec]

        dropped = [key for key in self._data if key not in permitted]
        if dropped:
            logger.debug(f"Unpermitted parameters dropped: {', '.join(map(str, dropped))}")
        return permitted

    def to_dict(self) -> dict[str, Any]:
        """Plain dict copy of the payload."""
        return dict(self._data)


def _permit_nested(value: Any, nested: Any) -> Any:
    """Filter a nested value against its field spec, or return _DROP."""
    if not nested:
        # {"tags": []}: a list of scalars
        if isinstance(value, _SEQUENCE_TYPES):
            return [item for item in value if _is_scalar(item)]
        return _DROP

    if isinstance(value, Mapping):
        return Parameters(value).permit(*nested)
    if isinstance(value, _SEQUENCE_TYPES):
        return [Parameters(item).permit(*nested) for item in value if isinstance(item, Mapping)]
    return _DROP
