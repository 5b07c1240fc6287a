# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Schemas describe the JSON representation of a page.

A schema lists the fields to include in a response, each with a
transformer: a function receiving the raw field value and returning
something JSON-safe. Transformers are referenced by registry name, passed
directly as callables, or given as a list whose head is the transformer
and whose tail holds extra arguments:

    product_schema = [
        "title",
        "description",
        {"price": "float"},
        {"tags": ["split", "|"]},
        {"manufacturer": ["page", ["title"]]},
    ]

When the transformer is omitted the ``string`` transformer is used, so the
schema above is equivalent to:

    product_schema = {
        "title": "string",
        "description": "string",
        "price": "float",
        "tags": ["split", "|"],
        "manufacturer": ["page", ["title"]],
    }
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence, Union

from .errors import UnknownTransformerError
from .transformers import TransformerRegistry

TransformerSpec = Union[str, Callable[..., Any], Sequence[Any], None]
SchemaSpec = Union[Sequence[Any], Mapping[str, TransformerSpec], None]

DEFAULT_TRANSFORMER = "string"

# Page identifier key, added by the serializers ahead of the schema fields
RESERVED_FIELD = "slug"


class Schema:
    """Field list plus transformer lookup for one page shape.

    Nothing is resolved when the schema is built; ``transformer()`` reads the
    spec and the registry every time it is called.
    """

    def __init__(self, spec: SchemaSpec = None, registry: TransformerRegistry | None = None):
        self.spec = spec if spec is not None else []
        self.registry = registry if registry is not None else TransformerRegistry()
        # Reject malformed specs early
        self._entries()

    def _entries(self) -> list[tuple[str, TransformerSpec]]:
        """Normalize the spec into ordered ``(field, transformer spec)`` pairs."""
        spec = self.spec

        if isinstance(spec, Mapping):
            entries = list(spec.items())
        elif isinstance(spec, (list, tuple)):
            entries = []
            for entry in spec:
                if isinstance(entry, str):
                    # Transformer omitted: the entry is the field name itself
                    entries.append((entry, None))
                elif isinstance(entry, Mapping):
                    entries.extend(entry.items())
                elif isinstance(entry, tuple) and len(entry) == 2:
                    entries.append(entry)
                else:
                    raise TypeError(f"Invalid schema entry: {entry!r}")
        else:
            raise TypeError(
                f"Schema must be a list or a mapping, got {type(spec).__name__}"
            )

        seen: set[str] = set()
        for name, _ in entries:
            if not isinstance(name, str):
                raise TypeError(f"Schema field names must be strings, got {name!r}")
            if name == RESERVED_FIELD:
                raise ValueError(f"'{RESERVED_FIELD}' is always serialized and cannot be a schema field")
            if name in seen:
                raise ValueError(f"Duplicate schema field '{name}'")
            seen.add(name)

        return entries

    def fields(self) -> list[str]:
        """Return all field names present in the schema, in declaration order."""
        return [name for name, _ in self._entries()]

    def transformer(self, field: str) -> Callable[[Any], Any]:
        """Return the transformer function for the given field.

        Raises:
            UnknownTransformerError: If the field is not part of the schema or
                its transformer name is not registered.
        """
        entries = dict(self._entries())
        if field not in entries:
            raise UnknownTransformerError(None, field=field)

        spec = entries[field]
        arguments: tuple[Any, ...] = ()

        if spec is None:
            spec = DEFAULT_TRANSFORMER

        if isinstance(spec, (list, tuple)):
            if not spec:
                raise UnknownTransformerError(spec, field=field)
            spec, arguments = spec[0], tuple(spec[1:])

        if callable(spec):
            function = spec
        elif isinstance(spec, str) and spec in self.registry:
            function = self.registry.resolve(spec)
        else:
            raise UnknownTransformerError(spec, field=field)

        def transform(value: Any) -> Any:
            return function(value, *arguments)

        return transform

    def __len__(self) -> int:
        return len(self._entries())

    def __repr__(self) -> str:
        return f"Schema({self.fields()!r})"
