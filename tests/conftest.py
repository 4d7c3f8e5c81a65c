"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient

from capture_inbox.app import app
from capture_inbox.errors import ClassificationUnavailable
from capture_inbox.models.capture import Capture


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a TestClient for the FastAPI app."""
    return TestClient(app)


async def unavailable_classifier(content, content_type, context) -> Capture:
    """Classifier stand-in for a remote that is always down."""
    raise ClassificationUnavailable("remote classifier is down")


@pytest.fixture
def offline_classifier():
    return unavailable_classifier
