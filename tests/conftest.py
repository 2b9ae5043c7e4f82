"""
Global test configuration for RelayTV.

This module provides global pytest fixtures.
"""

import pytest

from fixtures.fakes import FakeTimerFactory, RecordingChannel


@pytest.fixture
def timer_factory() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def recording_channel() -> RecordingChannel:
    return RecordingChannel()
