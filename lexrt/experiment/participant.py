"""
Participant identification.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ValidationFailure


@dataclass(frozen=True)
class ParticipantId:
    """The participant's e-mail address, trimmed and accepted once."""

    value: str

    @classmethod
    def parse(cls, raw: str) -> "ParticipantId":
        """
        Validate a raw identifier entered by the participant.

        The identifier is trimmed; it must then be non-empty and contain
        an ``@``. No further address validation is done.

        Raises
        ------
        ValidationFailure
            If the identifier is rejected
        """
        trimmed = (raw or "").strip()
        if not trimmed or "@" not in trimmed:
            raise ValidationFailure("Please enter a valid email address")
        return cls(trimmed)

    def __str__(self) -> str:
        return self.value
