# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Page and collection serializers."""

from __future__ import annotations

from typing import Any

from .content import ContentPage, PageCollection
from .schema import Schema, SchemaSpec
from .transformers import TransformerRegistry


def _as_schema(schema: Schema | SchemaSpec, registry: TransformerRegistry | None) -> Schema:
    if isinstance(schema, Schema):
        return schema
    return Schema(schema, registry)


class PageSerializer:
    """JSON-ready representation of a single page."""

    def __init__(
        self,
        page: ContentPage,
        schema: Schema | SchemaSpec = None,
        registry: TransformerRegistry | None = None,
    ):
        self.page = page
        self.schema = _as_schema(schema, registry)

    def to_dict(self) -> dict[str, Any]:
        """Return the page slug followed by every schema field, in schema order.

        Transformer errors are not caught.
        """
        data: dict[str, Any] = {"slug": self.page.slug}

        for field in self.schema.fields():
            transformer = self.schema.transformer(field)
            data[field] = transformer(self.page.get_field(field))

        return data


class CollectionSerializer:
    """JSON-ready representation of an ordered collection of pages."""

    def __init__(
        self,
        collection: PageCollection,
        schema: Schema | SchemaSpec = None,
        registry: TransformerRegistry | None = None,
    ):
        self.collection = collection
        self.schema = _as_schema(schema, registry)

    def to_list(self) -> list[dict[str, Any]]:
        """Serialize every page in iteration order; the first failure aborts."""
        return [PageSerializer(page, self.schema).to_dict() for page in self.collection]
