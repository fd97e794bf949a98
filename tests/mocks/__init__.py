"""Shared stub collaborators for the test suite."""

from tests.mocks.callbacks import RecordingCallback
from tests.mocks.clock import FakeClock
from tests.mocks.transport import StubTransport

__all__ = [
    "FakeClock",
    "RecordingCallback",
    "StubTransport",
]
