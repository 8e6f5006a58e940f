"""Test configuration: package imports and shared fixtures."""

import os
import sys

import pytest

# Add the repository root (the directory containing this file) to ``sys.path``
# if it is not already present, mirroring ``python -m pytest``.
ROOT_DIR = os.path.abspath(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from collective_sync.adapters.identity import LocalIdentityProvider  # noqa: E402
from collective_sync.app import Services  # noqa: E402
from collective_sync.core.storage import JSONDocumentStore  # noqa: E402


@pytest.fixture
def store() -> JSONDocumentStore:
    return JSONDocumentStore()


@pytest.fixture
def services(store: JSONDocumentStore) -> Services:
    return Services(store, LocalIdentityProvider())
