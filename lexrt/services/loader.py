"""
Acquisition of the stimulus set from the word-list service.

This module provides:
- A cancellation token for the backoff wait between attempts
- An observable loading status for the presentation layer
- SessionLoader: bounded retry with exponential backoff
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import requests

from config.settings import get_config
from ..errors import LoadCancelled, LoadFailure, ValidationFailure
from ..experiment.stimuli import StimulusSet, describe_stimulus_set, validate_stimulus_set
from .api import ExperimentApiClient, is_success

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Cooperative cancellation for a session's pending waits.

    ``wait`` returns early as soon as ``cancel`` is called from any thread.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Block for up to ``seconds``; return True if cancelled meanwhile."""
        return self._event.wait(seconds)


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RETRYING = "retrying"
    FAILED = "failed"
    LOADED = "loaded"


@dataclass(frozen=True)
class LoadingStatus:
    """Loading progress as seen by the presentation layer.

    ``retry`` is the 1-based number of the automatic retry in progress
    and is only meaningful in the ``retrying`` state.
    """

    state: LoadState
    retry: int = 0

    def __str__(self) -> str:
        if self.state is LoadState.RETRYING:
            return f"retrying({self.retry})"
        return self.state.value


def backoff_delay_ms(attempt: int, base_ms: int = 1000, cap_ms: int = 10000) -> int:
    """
    Delay before the automatic retry with 0-based index ``attempt``.

    ``min(base_ms * 2**attempt, cap_ms)``: 1000, 2000, 4000 ms with the
    defaults.
    """
    if attempt < 0:
        raise ValueError(f"attempt must be >= 0, got {attempt}")
    return min(base_ms * (2 ** attempt), cap_ms)


class SessionLoader:
    """
    Loads the session's StimulusSet with bounded automatic retries.

    A load is one initial attempt plus up to ``max_retries`` automatic
    retries. When they are all spent the loader reports ``failed`` and
    raises LoadFailure; only an explicit ``retry()`` starts a new
    sequence. The stimulus set is exposed only once fully parsed.
    """

    def __init__(
        self,
        client: Optional[ExperimentApiClient] = None,
        max_retries: Optional[int] = None,
        backoff_base_ms: Optional[int] = None,
        backoff_cap_ms: Optional[int] = None,
    ):
        """
        Initialize the loader.

        Parameters
        ----------
        client : Optional[ExperimentApiClient]
            Service client. A default client is created if None.
        max_retries : Optional[int]
            Automatic retries after the first failed attempt
        backoff_base_ms : Optional[int]
            Delay before the first retry
        backoff_cap_ms : Optional[int]
            Upper bound for any delay
        """
        service = get_config().service
        self.client = client or ExperimentApiClient()
        self.max_retries = service.max_retries if max_retries is None else max_retries
        self.backoff_base_ms = service.backoff_base_ms if backoff_base_ms is None else backoff_base_ms
        self.backoff_cap_ms = service.backoff_cap_ms if backoff_cap_ms is None else backoff_cap_ms

        self.stimulus_set: Optional[StimulusSet] = None
        self.attempts = 0
        self.last_error: Optional[LoadFailure] = None
        self._status = LoadingStatus(LoadState.IDLE)
        self._subscribers: List[Callable[[LoadingStatus], None]] = []

    @property
    def status(self) -> LoadingStatus:
        return self._status

    def subscribe(self, callback: Callable[[LoadingStatus], None]) -> None:
        """Register a callback for loading status changes."""
        self._subscribers.append(callback)

    def _set_status(self, status: LoadingStatus) -> None:
        self._status = status
        logger.debug(f"Loading status: {status}")
        for callback in self._subscribers:
            callback(status)

    def load(self, token: Optional[CancellationToken] = None) -> StimulusSet:
        """
        Acquire the stimulus set, retrying with backoff on failure.

        Parameters
        ----------
        token : Optional[CancellationToken]
            Cancels the backoff wait when the session is torn down

        Returns
        -------
        StimulusSet
            The loaded stimulus set

        Raises
        ------
        LoadCancelled
            If the token was cancelled before the sequence finished
        LoadFailure
            If the first attempt and every automatic retry failed
        """
        if self.stimulus_set is not None:
            return self.stimulus_set

        token = token or CancellationToken()
        self.attempts = 0
        self._set_status(LoadingStatus(LoadState.LOADING))

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay_ms = backoff_delay_ms(attempt - 1, self.backoff_base_ms, self.backoff_cap_ms)
                self._set_status(LoadingStatus(LoadState.RETRYING, retry=attempt))
                logger.info(f"Retrying word list in {delay_ms} ms (retry {attempt}/{self.max_retries})")
                if token.wait(delay_ms / 1000):
                    logger.info("Word list loading cancelled")
                    raise LoadCancelled("Loading cancelled", attempts=self.attempts)

            if token.cancelled:
                raise LoadCancelled("Loading cancelled", attempts=self.attempts)

            self.attempts += 1
            try:
                stimulus_set = self._fetch()
            except LoadFailure as e:
                self.last_error = e
                logger.warning(f"Word list attempt {self.attempts} failed: {e}")
                continue

            # A late success after teardown must not touch the session
            if token.cancelled:
                raise LoadCancelled("Loading cancelled", attempts=self.attempts)

            self.stimulus_set = stimulus_set
            self.last_error = None
            self._set_status(LoadingStatus(LoadState.LOADED))
            logger.info(
                f"Loaded {len(stimulus_set)} words after {self.attempts} attempt(s): "
                f"{describe_stimulus_set(stimulus_set)}"
            )
            return stimulus_set

        self._set_status(LoadingStatus(LoadState.FAILED))
        logger.error(f"All {self.attempts} word list attempts failed")
        raise LoadFailure(
            f"Could not load word list: {self.last_error}",
            attempts=self.attempts,
        )

    def retry(self, token: Optional[CancellationToken] = None) -> StimulusSet:
        """Manually restart loading with a fresh attempt counter."""
        logger.info("Manual word list retry")
        return self.load(token)

    def _fetch(self) -> StimulusSet:
        """Perform a single attempt."""
        try:
            response = self.client.get_words()
        except requests.RequestException as e:
            raise LoadFailure(f"Word list request failed: {e}") from e

        if not is_success(response):
            raise LoadFailure(f"Word list request returned status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise LoadFailure("Word list response is not valid JSON") from e

        try:
            stimulus_set = StimulusSet.from_payload(payload)
        except ValidationFailure as e:
            raise LoadFailure(f"Malformed word list: {e}") from e

        is_valid, issues = validate_stimulus_set(stimulus_set)
        if not is_valid:
            for issue in issues:
                logger.warning(f"Stimulus set: {issue}")

        return stimulus_set
