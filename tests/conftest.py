"""Shared fixtures for deeproute tests."""

from __future__ import annotations

import pytest

from deeproute import Router
from deeproute.testing import HandlerRecorder


@pytest.fixture
def recorder() -> HandlerRecorder:
    return HandlerRecorder()


@pytest.fixture
def router() -> Router:
    return Router()
