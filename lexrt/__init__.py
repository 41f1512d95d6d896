"""
Word Classification Reaction-Time Experiment

Runtime for a single-participant word classification task: words are shown
one at a time, the participant classifies each as positive or negative, and
the latency and polarity of every response is submitted to a results service.

Modules:
    - experiment: Stimuli, timing, trial recording and the phase state machine
    - services: Word-list loading and results submission over HTTP
    - console: Terminal presentation of a session
    - export: Offline export of result records
    - utils: Utility functions
"""

__version__ = "1.0.0"
__author__ = "Research Team"
__email__ = "research@example.com"

from config.settings import get_config, config

__all__ = [
    "__version__",
    "get_config",
    "config",
]
