"""Shared fixtures for consumer tests."""

import io

import pytest

from fakes import FakeKafkaClient, make_metadata


@pytest.fixture
def sink():
    return io.BytesIO()


@pytest.fixture
def fake_client():
    return FakeKafkaClient(metadata=make_metadata())
