"""Fixtures for HTTP-level provider tests"""

import httpx
import pytest
import respx


API_BASE_URL = "https://llm.test/v1"


@pytest.fixture(name="respx_router")
def respx_router_fixture():
    """A respx router intercepting every request made to API_BASE_URL."""
    with respx.mock(base_url=API_BASE_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture(name="client")
def client_fixture():
    with httpx.Client(timeout=5.0) as c:
        yield c
