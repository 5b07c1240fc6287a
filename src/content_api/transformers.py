# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Transformer registry — maps transformer names to transformer functions.

A transformer receives a field value and optional extra arguments from the
schema and returns a JSON-safe value:

    registry = TransformerRegistry()
    registry.register("upper", lambda field: field.to_string().upper())

Built-in transformers:
- string: raw field value as string
- integer: field value as int
- float: field value as float
- split: field value split on a delimiter (default ",")
- page: referenced page serialized with a nested schema, None if unresolved
- collection: list of referenced pages serialized with a nested schema,
  unresolved references are dropped
"""

from __future__ import annotations

from typing import Any, Callable

from .content import FieldValue
from .errors import UnknownTransformerError

Transformer = Callable[..., Any]


def to_string(field: FieldValue) -> str:
    return field.to_string()


def to_integer(field: FieldValue) -> int:
    return field.to_int()


def to_float(field: FieldValue) -> float:
    return field.to_float()


def split(field: FieldValue, delimiter: str = ",") -> list[str]:
    return field.split(delimiter)


class TransformerRegistry:
    """Named transformers available to schemas.

    Each ``ContentAPI`` owns its own registry. Schemas resolve names when a
    field transformer is requested, so transformers registered after a
    schema was built are still picked up.
    """

    def __init__(self, defaults: bool = True):
        self._transformers: dict[str, Transformer] = {}
        if defaults:
            self.register("string", to_string)
            self.register("integer", to_integer)
            self.register("float", to_float)
            self.register("split", split)
            self.register("page", self.page)
            self.register("collection", self.collection)

    def register(self, name: str, transformer: Transformer) -> TransformerRegistry:
        """Register a transformer, replacing any existing one with that name."""
        if not callable(transformer):
            raise TypeError(f"Transformer '{name}' must be callable")
        self._transformers[name] = transformer
        return self

    def unregister(self, name: str) -> None:
        self._transformers.pop(name, None)

    def resolve(self, name: str) -> Transformer:
        """Return the transformer registered under ``name``.

        Raises:
            UnknownTransformerError: If no transformer has that name.
        """
        try:
            return self._transformers[name]
        except (KeyError, TypeError):
            raise UnknownTransformerError(name) from None

    def names(self) -> list[str]:
        return list(self._transformers)

    def copy(self) -> TransformerRegistry:
        """Return an independent registry with the same transformers.

        Built-in ``page``/``collection`` transformers are rebound to the copy.
        """
        clone = TransformerRegistry(defaults=False)
        for name, transformer in self._transformers.items():
            if getattr(transformer, "__self__", None) is self:
                transformer = getattr(clone, transformer.__name__)
            clone._transformers[name] = transformer
        return clone

    def __contains__(self, name: object) -> bool:
        return name in self._transformers

    # =========================================================================
    # Reference transformers
    # =========================================================================

    def page(self, field: FieldValue, schema: Any = None) -> dict[str, Any] | None:
        """Serialize the page referenced by ``field`` (None if it doesn't resolve)."""
        from .serializers import PageSerializer

        page = field.to_page()
        if page is None:
            return None
        return PageSerializer(page, schema, registry=self).to_dict()

    def collection(self, field: FieldValue, schema: Any = None) -> list[dict[str, Any]]:
        """Serialize the pages listed in ``field``, skipping unresolved ids."""
        from .serializers import PageSerializer

        return [
            PageSerializer(page, schema, registry=self).to_dict()
            for page in field.to_pages("yaml")
            if page is not None
        ]
