import os
import sys
from collections.abc import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from backend.app.dependencies import get_fetch_page  # noqa: E402
from backend.app.main import create_app  # noqa: E402


@pytest.fixture
def test_app() -> Iterator[FastAPI]:
    app = create_app()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def use_catalogue(test_app) -> Callable[..., FastAPI]:
    """Route the app's pipeline fetches to the given catalogue."""

    def install(catalogue) -> FastAPI:
        test_app.dependency_overrides[get_fetch_page] = lambda: catalogue.fetch_page
        return test_app

    return install


@pytest.fixture
def client_for(use_catalogue) -> Callable[..., TestClient]:
    """
    Build a TestClient whose pipeline fetches from the given catalogue.

    The lifespan is not entered, so no real upstream session is opened.
    """

    def build(catalogue) -> TestClient:
        return TestClient(use_catalogue(catalogue))

    return build
