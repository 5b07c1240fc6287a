# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pytest configuration and shared fixtures."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from content_api import ContentAPI
from content_api.config import clear_settings_cache
from content_api.memory import MemorySite

SITE_YAML = """
products:
  title: Products
products/product-a:
  title: Product A
  rating: "5"
  price: "99.99"
  categories: category-a, category-b
  manufacturer: manufacturers/brand-a
products/product-b:
  title: Product B
  rating: "3"
  price: "19.5"
  categories: category-b
  manufacturer: manufacturers/invalid-brand
products/product-c:
  title: Product C
  rating: "4"
  price: "5"
  categories: category-c|category-d
  manufacturer: manufacturers/brand-b
manufacturers:
  title: Manufacturers
manufacturers/brand-a:
  title: Brand A
  products: |
    - products/product-a
    - products/product-b
manufacturers/brand-b:
  title: Brand B
  products: |
    - products/invalid-product
    - products/product-c
manufacturers/brand-c:
  title: Brand C
  products: |
    - products/product-a
    - products/invalid-product
    - products/product-c
"""


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def site() -> MemorySite:
    """In-memory site with products and manufacturers."""
    return MemorySite.from_yaml(SITE_YAML)


@pytest.fixture
def api() -> ContentAPI:
    """API rooted at /v1/ with metrics disabled."""
    return ContentAPI("/v1/", enable_metrics=False)


@pytest.fixture
def make_client():
    """Build a test client serving the route table of an API."""

    def _make(content_api: ContentAPI) -> TestClient:
        app = FastAPI()
        app.include_router(content_api.router())
        return TestClient(app)

    return _make
