"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It points APP_ENV at the testing environment before any settings import and
builds apps around store doubles that count calls, so tests can assert which
stores a request touched.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from animequotes.core.app_factory import create_app
from tests.fakes import (
    EDWARD_QUOTE,
    NARUTO_QUOTE,
    ORPHAN_QUOTE,
    VALID_KEY,
    CountingCounterStore,
    FakeClock,
    FakeRecordStore,
    make_settings,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def counter_store(clock: FakeClock) -> CountingCounterStore:
    return CountingCounterStore(clock=clock)


@pytest.fixture
def record_store() -> FakeRecordStore:
    return FakeRecordStore(
        api_keys=(VALID_KEY,),
        quotes=(NARUTO_QUOTE, EDWARD_QUOTE, ORPHAN_QUOTE),
    )


@pytest.fixture
def app_factory(counter_store, record_store) -> Callable[..., FastAPI]:
    """Build an app around the shared store doubles with setting overrides."""

    def _factory(**app_overrides) -> FastAPI:
        return create_app(
            make_settings(**app_overrides),
            counter_store=counter_store,
            record_store=record_store,
        )

    return _factory


@pytest.fixture
def client(app_factory) -> TestClient:
    return TestClient(app_factory())
