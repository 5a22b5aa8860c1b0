"""Shared fixtures: a small Swedish navigation document."""

from __future__ import annotations

import pytest

from rut.contracts import NavigationDocument
from tests.factories import make_sample_document


@pytest.fixture
def sample_document() -> NavigationDocument:
    return make_sample_document()
