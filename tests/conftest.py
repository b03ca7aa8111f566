"""Pytest configuration and shared fixtures for catalog tests."""

import pytest

from catalog.service import CatalogService
from tests.fixtures.documents import TODAY, document_text
from tests.fixtures.documents import sample_texts as build_sample_texts


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_text():
    return document_text


@pytest.fixture
def sample_texts():
    return build_sample_texts()


@pytest.fixture
def service():
    return CatalogService(clock=lambda: TODAY)


@pytest.fixture
def populated_service(service, sample_texts):
    for ref, text in sample_texts.items():
        service.ingest(ref, text)
    return service
