"""
Word stimuli for the classification experiment.

This module provides:
- The emotion polarity of a word (also used for participant responses)
- Immutable word stimuli and the practice/scored stimulus set
- Parsing and validation of the word-list service payload
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from ..errors import ValidationFailure


class Emotion(str, Enum):
    """Polarity of a word, and of a participant's classification of it."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class Block(str, Enum):
    """The two stimulus blocks of a session."""

    PRACTICE = "practice"
    SCORED = "scored"


@dataclass(frozen=True)
class WordStimulus:
    """A single word shown for classification."""

    word: str
    emotion: Emotion
    language: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WordStimulus":
        """
        Build a stimulus from one entry of the word-list payload.

        Parameters
        ----------
        data : Mapping[str, Any]
            Entry with ``word``, ``emotion`` and ``language`` keys

        Returns
        -------
        WordStimulus
            The parsed stimulus

        Raises
        ------
        ValidationFailure
            If a field is missing or has an unexpected value
        """
        if not isinstance(data, Mapping):
            raise ValidationFailure(f"Stimulus entry must be an object, got {type(data).__name__}")

        word = data.get("word")
        if not isinstance(word, str) or not word.strip():
            raise ValidationFailure(f"Stimulus has no word: {data!r}")

        try:
            emotion = Emotion(data.get("emotion"))
        except ValueError:
            raise ValidationFailure(
                f"Stimulus '{word}' has invalid emotion: {data.get('emotion')!r}"
            ) from None

        language = data.get("language")
        if not isinstance(language, str):
            raise ValidationFailure(f"Stimulus '{word}' has no language")

        return cls(word=word, emotion=emotion, language=language)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "word": self.word,
            "emotion": self.emotion.value,
            "language": self.language,
        }


@dataclass(frozen=True)
class StimulusSet:
    """
    The ordered practice and scored word lists of a session.

    Presentation order is list order. Both blocks are tuples so the set
    cannot be changed once loaded.
    """

    practice_words: Tuple[WordStimulus, ...]
    scored_words: Tuple[WordStimulus, ...]

    def __post_init__(self):
        # Accept any sequence but always store tuples
        object.__setattr__(self, "practice_words", tuple(self.practice_words))
        object.__setattr__(self, "scored_words", tuple(self.scored_words))

    @classmethod
    def from_payload(cls, payload: Any) -> "StimulusSet":
        """
        Parse the word-list service response body.

        Parameters
        ----------
        payload : Any
            Decoded JSON ``{"trialWords": [...], "testWords": [...]}``

        Returns
        -------
        StimulusSet
            The parsed stimulus set

        Raises
        ------
        ValidationFailure
            If the payload is malformed or the scored block is empty
        """
        if not isinstance(payload, Mapping):
            raise ValidationFailure("Word list payload must be a JSON object")

        blocks = {}
        for key in ("trialWords", "testWords"):
            entries = payload.get(key)
            if not isinstance(entries, list):
                raise ValidationFailure(f"Word list payload has no '{key}' list")
            blocks[key] = [WordStimulus.from_dict(entry) for entry in entries]

        if not blocks["testWords"]:
            raise ValidationFailure("Word list payload has an empty 'testWords' list")

        return cls(
            practice_words=blocks["trialWords"],
            scored_words=blocks["testWords"],
        )

    def block(self, block: Block) -> Tuple[WordStimulus, ...]:
        """Return the word sequence of the given block."""
        if block is Block.PRACTICE:
            return self.practice_words
        return self.scored_words

    def __len__(self) -> int:
        return len(self.practice_words) + len(self.scored_words)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        """Convert to the word-list service wire format."""
        return {
            "trialWords": [w.to_dict() for w in self.practice_words],
            "testWords": [w.to_dict() for w in self.scored_words],
        }


def validate_stimulus_set(stimulus_set: StimulusSet) -> Tuple[bool, List[str]]:
    """
    Check a stimulus set for problems that do not prevent a session.

    Parameters
    ----------
    stimulus_set : StimulusSet
        Stimulus set to validate

    Returns
    -------
    Tuple[bool, List[str]]
        (is_valid, list of issues)
    """
    issues = []

    if not stimulus_set.practice_words:
        issues.append("Practice block is empty")

    for name, words in (
        ("practice", stimulus_set.practice_words),
        ("scored", stimulus_set.scored_words),
    ):
        seen = set()
        for stim in words:
            if stim.word in seen:
                issues.append(f"Duplicate word '{stim.word}' in {name} block")
            seen.add(stim.word)

        emotions = {stim.emotion for stim in words}
        if words and len(emotions) < len(Emotion):
            issues.append(f"The {name} block contains only {emotions.pop().value} words")

    is_valid = len(issues) == 0
    return is_valid, issues


def _count_by_emotion(words: Sequence[WordStimulus]) -> Dict[str, int]:
    counts = {e.value: 0 for e in Emotion}
    for stim in words:
        counts[stim.emotion.value] += 1
    return counts


def describe_stimulus_set(stimulus_set: StimulusSet) -> Dict[str, Dict[str, int]]:
    """Per-block word counts by emotion, for logging."""
    return {
        Block.PRACTICE.value: _count_by_emotion(stimulus_set.practice_words),
        Block.SCORED.value: _count_by_emotion(stimulus_set.scored_words),
    }
