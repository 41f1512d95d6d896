"""
Shared fixtures.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from lexrt.experiment.stimuli import StimulusSet
from tests.fakes import WORDS_PAYLOAD, FakeClock, RecordingToken


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token():
    return RecordingToken()


@pytest.fixture
def stimulus_set():
    """Practice [A, B], scored [C]."""
    return StimulusSet.from_payload(WORDS_PAYLOAD)
