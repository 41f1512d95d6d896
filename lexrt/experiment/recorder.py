"""
Per-trial response records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from .stimuli import Block, Emotion, WordStimulus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrialRecord:
    """One completed exposure: the word shown and how it was classified."""

    word: str
    emotion: Emotion
    language: str
    response: Emotion
    latency_ms: int
    block: Block

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the results service wire format."""
        return {
            "word": self.word,
            "emotion": self.emotion.value,
            "language": self.language,
            "response": self.response.value,
            "responseTime": self.latency_ms,
        }


class TrialRecorder:
    """
    Append-only log of trial records in exposure order.

    There is a single writer (the phase controller's event path), so no
    locking is done. Records are never reordered or removed.
    """

    def __init__(self):
        self._records: List[TrialRecord] = []

    def record(
        self,
        stimulus: WordStimulus,
        response: Emotion,
        latency_ms: int,
        block: Block,
    ) -> TrialRecord:
        """
        Append the record of one exposure.

        Parameters
        ----------
        stimulus : WordStimulus
            The word that was displayed
        response : Emotion
            The participant's classification
        latency_ms : int
            Onset-to-response latency, must be >= 0
        block : Block
            Block the exposure belonged to

        Returns
        -------
        TrialRecord
            The appended record
        """
        if latency_ms < 0:
            raise ValueError(f"Latency must be non-negative, got {latency_ms}")

        trial = TrialRecord(
            word=stimulus.word,
            emotion=stimulus.emotion,
            language=stimulus.language,
            response=Emotion(response),
            latency_ms=int(latency_ms),
            block=block,
        )
        self._records.append(trial)
        logger.debug(
            f"Trial {len(self._records)} ({block.value}): "
            f"{trial.word} -> {trial.response.value} in {trial.latency_ms} ms"
        )
        return trial

    def all(self) -> Tuple[TrialRecord, ...]:
        """Full history in exposure order."""
        return tuple(self._records)

    def for_block(self, block: Block) -> Tuple[TrialRecord, ...]:
        """Records of one block, in exposure order."""
        return tuple(r for r in self._records if r.block is block)

    def __len__(self) -> int:
        return len(self._records)
