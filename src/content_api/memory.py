# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""In-memory content host.

Implements the ``FieldValue`` / ``ContentPage`` contracts on top of plain
dicts. Pages are addressed by slash-separated ids ("products/product-a");
the last segment is the slug. Field names are case-insensitive.

    site = MemorySite.from_yaml('''
    products/product-a:
      title: Product A
      price: "99.99"
      manufacturer: manufacturers/brand-a
    manufacturers/brand-a:
      title: Brand A
      products: |
        - products/product-a
    ''')
"""

from __future__ import annotations

import json
from typing import Any, Iterator, Mapping

import yaml


class MemoryField:
    """A raw field value with host-style coercions."""

    def __init__(self, value: Any = None, site: MemorySite | None = None):
        self.value = value
        self.site = site

    def is_empty(self) -> bool:
        if self.value is None:
            return True
        if isinstance(self.value, str):
            return not self.value.strip()
        if isinstance(self.value, (list, tuple, dict)):
            return not self.value
        return False

    def to_string(self) -> str:
        if self.value is None:
            return ""
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return str(self.value)

    def to_int(self, default: int = 0) -> int:
        """Interpret the value as integer; non-numeric values give ``default``."""
        if isinstance(self.value, (bool, int)):
            return int(self.value)
        try:
            return int(float(self.to_string().strip()))
        except (TypeError, ValueError, OverflowError):
            return default

    def to_float(self, default: float = 0.0) -> float:
        """Interpret the value as float; non-numeric values give ``default``."""
        if isinstance(self.value, (bool, int, float)):
            return float(self.value)
        try:
            return float(self.to_string().strip())
        except (TypeError, ValueError):
            return default

    def split(self, delimiter: str = ",") -> list[str]:
        """Split the value, trimming parts and dropping empty ones."""
        if isinstance(self.value, (list, tuple)):
            parts = [str(item) for item in self.value]
        else:
            parts = self.to_string().split(delimiter)
        return [part.strip() for part in parts if part.strip()]

    def to_list(self, format: str = "yaml") -> list[Any]:
        """Decode the value as a list (YAML or JSON encoded)."""
        if self.value is None:
            return []
        if isinstance(self.value, (list, tuple)):
            return list(self.value)

        if format == "yaml":
            data = yaml.safe_load(self.to_string())
        elif format == "json":
            data = json.loads(self.to_string()) if not self.is_empty() else None
        else:
            raise ValueError(f"Unsupported list format '{format}'")

        if data is None:
            return []
        if isinstance(data, list):
            return data
        return [data]

    def to_page(self) -> MemoryPage | None:
        if self.site is None or self.is_empty():
            return None
        return self.site.find(self.to_string().strip())

    def to_pages(self, format: str = "yaml") -> list[MemoryPage | None]:
        ids = self.to_list(format)
        if self.site is None:
            return [None for _ in ids]
        return [self.site.find(str(page_id)) for page_id in ids]

    def __repr__(self) -> str:
        return f"MemoryField({self.value!r})"


class MemoryPage:
    """A page stored in a ``MemorySite``."""

    def __init__(self, id: str, content: Mapping[str, Any] | None = None, site: MemorySite | None = None):
        self.id = id.strip("/")
        self.content = {str(key).lower(): value for key, value in (content or {}).items()}
        self.site = site

    @property
    def slug(self) -> str:
        return self.id.rsplit("/", 1)[-1]

    @property
    def parent_id(self) -> str:
        return self.id.rsplit("/", 1)[0] if "/" in self.id else ""

    def get_field(self, name: str) -> MemoryField:
        return MemoryField(self.content.get(name.lower()), self.site)

    def children(self) -> list[MemoryPage]:
        if self.site is None:
            return []
        return self.site.children(self.id)

    def __repr__(self) -> str:
        return f"MemoryPage({self.id!r})"


class MemorySite:
    """Ordered store of pages keyed by id."""

    def __init__(self):
        self._pages: dict[str, MemoryPage] = {}

    @classmethod
    def from_mapping(cls, pages: Mapping[str, Mapping[str, Any] | None]) -> MemorySite:
        site = cls()
        for page_id, content in pages.items():
            site.add(page_id, content)
        return site

    @classmethod
    def from_yaml(cls, text: str) -> MemorySite:
        """Build a site from a YAML mapping of page id to field values."""
        data = yaml.safe_load(text) or {}
        if not isinstance(data, Mapping):
            raise ValueError("Site YAML must be a mapping of page ids to fields")
        return cls.from_mapping(data)

    def add(self, id: str, content: Mapping[str, Any] | None = None, **fields: Any) -> MemoryPage:
        """Add (or replace) a page and return it."""
        page = MemoryPage(id, {**(content or {}), **fields}, site=self)
        self._pages[page.id] = page
        return page

    def find(self, id: str) -> MemoryPage | None:
        if not id:
            return None
        return self._pages.get(id.strip("/"))

    def children(self, parent: str = "") -> list[MemoryPage]:
        """Direct children of ``parent`` in insertion order ("" for top level)."""
        parent = parent.strip("/")
        return [page for page in self._pages.values() if page.parent_id == parent]

    def __iter__(self) -> Iterator[MemoryPage]:
        return iter(list(self._pages.values()))

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, id: object) -> bool:
        return isinstance(id, str) and id.strip("/") in self._pages
