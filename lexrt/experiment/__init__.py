"""
Experiment module for the word classification task.

This module provides:
- Word stimuli and the practice/scored stimulus set
- Participant identification
- Response latency measurement
- Trial recording

The phase state machine lives in ``lexrt.experiment.phases``; it depends
on the service layer and is imported from there directly.
"""

from .participant import ParticipantId
from .recorder import TrialRecord, TrialRecorder
from .stimuli import Block, Emotion, StimulusSet, WordStimulus
from .timing import ResponseTimer

__all__ = [
    "Block",
    "Emotion",
    "ParticipantId",
    "ResponseTimer",
    "StimulusSet",
    "TrialRecord",
    "TrialRecorder",
    "WordStimulus",
]
