# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Content API — schema-driven JSON serialization of content pages.

Declare schemas for page shapes, register routes whose handlers return pages,
collections or plain data, and serve uniform JSON envelopes through FastAPI.
"""

__version__ = "0.1.0"

from .api import ContentAPI
from .errors import (
    ContentAPIError,
    FilterRejectedError,
    InvalidHandlerResultError,
    UnknownFilterError,
    UnknownTransformerError,
)
from .routing import RequestContext, Route, RouteEntry
from .schema import Schema
from .serializers import CollectionSerializer, PageSerializer
from .transformers import TransformerRegistry

__all__ = [
    "__version__",
    "ContentAPI",
    "ContentAPIError",
    "FilterRejectedError",
    "InvalidHandlerResultError",
    "UnknownFilterError",
    "UnknownTransformerError",
    "RequestContext",
    "Route",
    "RouteEntry",
    "Schema",
    "CollectionSerializer",
    "PageSerializer",
    "TransformerRegistry",
]
