"""
Session phase state machine.

This module provides:
- The session phases and input signals
- SessionCursor: the position of the session within its blocks
- PhaseController: the single owner of session progress

Session lifecycle::

    AwaitingIdentifier -> Loading -> Intro -> Instructions -> Practice
        -> PracticeComplete -> Scored -> Completed

    Loading -> LoadError -> (manual retry) -> Loading

All mutation happens in the controller's event methods, one event at a
time. The only blocking points are the word-list load and the results
submission.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional

from ..errors import InvalidTransition, LoadCancelled, LoadFailure, SubmissionFailure, ValidationFailure
from ..services.loader import CancellationToken, SessionLoader
from ..services.submitter import ResultsPayload, ResultsSubmitter
from .participant import ParticipantId
from .recorder import TrialRecorder
from .stimuli import Block, Emotion, StimulusSet, WordStimulus
from .timing import ResponseTimer

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    AWAITING_IDENTIFIER = "awaiting_identifier"
    LOADING = "loading"
    LOAD_ERROR = "load_error"
    INTRO = "intro"
    INSTRUCTIONS = "instructions"
    PRACTICE = "practice"
    PRACTICE_COMPLETE = "practice_complete"
    SCORED = "scored"
    COMPLETED = "completed"


class Signal(str, Enum):
    """Logical inputs; the key binding is up to the presentation layer."""

    CONFIRM = "confirm"
    POSITIVE = "positive"
    NEGATIVE = "negative"

    @property
    def response(self) -> Optional[Emotion]:
        """The classification a directional signal stands for."""
        if self is Signal.POSITIVE:
            return Emotion.POSITIVE
        if self is Signal.NEGATIVE:
            return Emotion.NEGATIVE
        return None


@dataclass(frozen=True)
class SessionCursor:
    """
    Where the session currently is.

    ``current_index`` is None whenever no stimulus is on screen, which
    includes a block that has been exhausted and awaits acknowledgement.
    ``stimulus_onset`` is the monotonic onset (ns) of the displayed word.
    """

    phase: Phase = Phase.AWAITING_IDENTIFIER
    block_is_practice: bool = True
    current_index: Optional[int] = None
    stimulus_onset: Optional[int] = None

    @property
    def block(self) -> Block:
        return Block.PRACTICE if self.block_is_practice else Block.SCORED

    @property
    def showing_stimulus(self) -> bool:
        return self.current_index is not None


class PhaseController:
    """
    Drives one participant's session from identifier entry to completion.

    The controller exclusively owns the SessionCursor; every change of
    phase or stimulus goes through one of its event methods. Observers
    are notified of phase changes and of operator notices (rejected
    identifiers, load and submission failures).
    """

    def __init__(
        self,
        loader: SessionLoader,
        submitter: ResultsSubmitter,
        timer: Optional[ResponseTimer] = None,
        recorder: Optional[TrialRecorder] = None,
        submit_practice_records: bool = False,
        token: Optional[CancellationToken] = None,
    ):
        """
        Parameters
        ----------
        loader : SessionLoader
            Source of the stimulus set
        submitter : ResultsSubmitter
            Destination of the finished results
        timer : Optional[ResponseTimer]
            Latency timer; a monotonic one is created if None
        recorder : Optional[TrialRecorder]
            Record log; a new one is created if None
        submit_practice_records : bool
            Submit the full history instead of the scored block only
        token : Optional[CancellationToken]
            Cancels pending waits on teardown; a new one is created if None
        """
        self.loader = loader
        self.submitter = submitter
        self.timer = timer or ResponseTimer()
        self.recorder = recorder or TrialRecorder()
        self.submit_practice_records = submit_practice_records

        self.participant: Optional[ParticipantId] = None
        self.stimulus_set: Optional[StimulusSet] = None
        self.submitted: Optional[ResultsPayload] = None
        self.last_submission_error: Optional[SubmissionFailure] = None
        self.submission_attempts = 0

        self._cursor = SessionCursor()
        self._token = token or CancellationToken()
        self._torn_down = False
        self._phase_subscribers: List[Callable[[Phase], None]] = []
        self._notice_subscribers: List[Callable[[str], None]] = []

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> SessionCursor:
        return self._cursor

    @property
    def phase(self) -> Phase:
        return self._cursor.phase

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    @property
    def current_stimulus(self) -> Optional[WordStimulus]:
        """The word on screen, or None."""
        index = self._cursor.current_index
        if index is None or self.stimulus_set is None:
            return None
        return self.stimulus_set.block(self._cursor.block)[index]

    @property
    def can_retry_submission(self) -> bool:
        return (
            self.phase is Phase.SCORED
            and not self._cursor.showing_stimulus
            and self.last_submission_error is not None
        )

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe_phase(self, callback: Callable[[Phase], None]) -> None:
        self._phase_subscribers.append(callback)

    def subscribe_notice(self, callback: Callable[[str], None]) -> None:
        self._notice_subscribers.append(callback)

    def _notice(self, message: str) -> None:
        for callback in self._notice_subscribers:
            callback(message)

    def _move(self, cursor: SessionCursor) -> None:
        previous = self._cursor.phase
        self._cursor = cursor
        if cursor.phase is not previous:
            logger.info(f"Phase {previous.value} -> {cursor.phase.value}")
            for callback in self._phase_subscribers:
                callback(cursor.phase)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def submit_identifier(self, raw: str) -> bool:
        """
        Accept the participant identifier and load the stimulus set.

        An invalid identifier is reported as a notice and leaves the
        session awaiting a new one.

        Returns
        -------
        bool
            Whether the identifier was accepted
        """
        if self._torn_down:
            return False
        if self.phase is not Phase.AWAITING_IDENTIFIER:
            raise InvalidTransition(f"Identifier already accepted (phase {self.phase.value})")

        try:
            participant = ParticipantId.parse(raw)
        except ValidationFailure as e:
            logger.info(f"Rejected participant identifier {raw!r}")
            self._notice(str(e))
            return False

        self.participant = participant
        logger.info(f"Participant {participant} accepted")
        self._load(self.loader.load)
        return True

    def retry_load(self) -> None:
        """Manually restart loading after the automatic retries ran out."""
        if self._torn_down:
            return
        if self.phase is not Phase.LOAD_ERROR:
            raise InvalidTransition(f"Nothing to retry in phase {self.phase.value}")
        self._load(self.loader.retry)

    def _load(self, load: Callable[[CancellationToken], StimulusSet]) -> None:
        self._move(replace(self._cursor, phase=Phase.LOADING))
        try:
            stimulus_set = load(self._token)
        except LoadCancelled:
            # Torn down while waiting; leave the session as it is
            return
        except LoadFailure as e:
            if self._torn_down:
                return
            self._move(replace(self._cursor, phase=Phase.LOAD_ERROR))
            self._notice(f"Could not load the word list: {e}")
            return

        if self._torn_down:
            return
        self.stimulus_set = stimulus_set
        self._move(replace(self._cursor, phase=Phase.INTRO))

    def handle(self, signal: Signal) -> None:
        """
        Process one input signal.

        Signals that are not meaningful in the current phase are ignored.
        """
        if self._torn_down:
            return
        signal = Signal(signal)
        phase = self.phase

        if phase is Phase.INTRO:
            if signal is Signal.CONFIRM:
                self._move(replace(self._cursor, phase=Phase.INSTRUCTIONS))
                return
        elif phase is Phase.INSTRUCTIONS:
            if signal is Signal.CONFIRM:
                self._start_block(Phase.PRACTICE, practice=True)
                return
        elif phase is Phase.PRACTICE_COMPLETE:
            if signal is Signal.CONFIRM:
                self._start_block(Phase.SCORED, practice=False)
                return
        elif phase in (Phase.PRACTICE, Phase.SCORED):
            if signal is not Signal.CONFIRM and self._cursor.showing_stimulus:
                self._respond(signal.response)
                return

        logger.debug(f"Ignored {signal.value} in phase {phase.value}")

    def _start_block(self, phase: Phase, practice: bool) -> None:
        block = Block.PRACTICE if practice else Block.SCORED
        words = self.stimulus_set.block(block)
        cursor = SessionCursor(phase=phase, block_is_practice=practice)
        if not words:
            logger.warning(f"The {block.value} block is empty")
            self._move(cursor)
            self._block_exhausted()
            return

        onset = self.timer.on_stimulus_shown()
        self._move(replace(cursor, current_index=0, stimulus_onset=onset))

    def _respond(self, response: Emotion) -> None:
        cursor = self._cursor
        block = cursor.block
        words = self.stimulus_set.block(block)
        stimulus = words[cursor.current_index]

        latency_ms = self.timer.on_response()
        self.recorder.record(stimulus, response, latency_ms, block)

        next_index = cursor.current_index + 1
        if next_index < len(words):
            onset = self.timer.on_stimulus_shown()
            self._move(replace(cursor, current_index=next_index, stimulus_onset=onset))
        else:
            self._block_exhausted()

    def _block_exhausted(self) -> None:
        if self._cursor.block_is_practice:
            # Wait for an explicit confirm before the scored block
            self._move(SessionCursor(phase=Phase.PRACTICE_COMPLETE, block_is_practice=False))
            return

        self._move(replace(self._cursor, current_index=None, stimulus_onset=None))
        self._submit()

    def _submission_records(self):
        if self.submit_practice_records:
            return self.recorder.all()
        return self.recorder.for_block(Block.SCORED)

    def _submit(self) -> None:
        self.submission_attempts += 1
        try:
            payload = self.submitter.submit(self.participant, self._submission_records())
        except SubmissionFailure as e:
            self.last_submission_error = e
            if self._torn_down:
                return
            notice = f"Error saving results: {e}"
            if e.backup_path is not None:
                notice += f" (saved to {e.backup_path})"
            self._notice(notice)
            return

        self.submitted = payload
        self.last_submission_error = None
        if self._torn_down:
            return
        self._move(replace(self._cursor, phase=Phase.COMPLETED))

    def retry_submission(self) -> None:
        """Resubmit the results after a failed submission."""
        if self._torn_down:
            return
        if not self.can_retry_submission:
            raise InvalidTransition(f"No failed submission to retry in phase {self.phase.value}")
        logger.info("Manual results resubmission")
        self._submit()

    def teardown(self) -> None:
        """End the session; pending waits are cancelled and later events ignored."""
        if self._torn_down:
            return
        self._torn_down = True
        self._token.cancel()
        self.timer.reset()
        logger.info(f"Session torn down in phase {self.phase.value}")
