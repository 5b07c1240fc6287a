# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Contracts the content host has to fulfil.

The serializers never talk to a storage backend. They only consume page and
field objects that follow these protocols. ``content_api.memory`` ships an
in-memory implementation.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable


@runtime_checkable
class FieldValue(Protocol):
    """A raw, typed field value of a content page."""

    def to_string(self) -> str:
        ...

    def to_int(self) -> int:
        ...

    def to_float(self) -> float:
        ...

    def split(self, delimiter: str = ",") -> list[str]:
        ...

    def to_page(self) -> ContentPage | None:
        """Resolve the value as a reference to a single page."""
        ...

    def to_pages(self, format: str = "yaml") -> list[ContentPage | None]:
        """Resolve the value as an encoded list of page references.

        Returns one entry per listed identifier, ``None`` where the
        identifier does not resolve to a page.
        """
        ...


@runtime_checkable
class ContentPage(Protocol):
    """A content node (page) of the host."""

    @property
    def slug(self) -> str:
        ...

    def get_field(self, name: str) -> FieldValue:
        ...


PageCollection = Iterable[ContentPage]
