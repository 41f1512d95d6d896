"""
Response latency measurement.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from ..errors import TimerError

NS_PER_MS = 1_000_000


class ResponseTimer:
    """
    Measures the time from stimulus onset to the participant's response.

    Uses a monotonic nanosecond clock so that wall-clock adjustments
    during a session cannot corrupt latencies. Each onset can be consumed
    by exactly one response.
    """

    def __init__(self, clock: Callable[[], int] = time.perf_counter_ns):
        """
        Parameters
        ----------
        clock : Callable[[], int]
            Monotonic clock returning nanoseconds
        """
        self._clock = clock
        self._onset: Optional[int] = None

    @property
    def onset(self) -> Optional[int]:
        """Onset of the current exposure in clock nanoseconds, if any."""
        return self._onset

    @property
    def running(self) -> bool:
        return self._onset is not None

    def on_stimulus_shown(self) -> int:
        """Record the current instant as the onset of a new exposure."""
        self._onset = self._clock()
        return self._onset

    def on_response(self) -> int:
        """
        Consume the current onset and return the latency.

        Returns
        -------
        int
            Milliseconds since onset, rounded half up

        Raises
        ------
        TimerError
            If there is no onset to measure from (never shown, or
            already consumed by an earlier response)
        """
        if self._onset is None:
            raise TimerError("No stimulus onset recorded for this response")

        elapsed_ns = self._clock() - self._onset
        self._onset = None
        if elapsed_ns < 0:
            raise TimerError("Clock went backwards between onset and response")
        return (elapsed_ns + NS_PER_MS // 2) // NS_PER_MS

    def reset(self) -> None:
        """Discard the current onset without measuring."""
        self._onset = None
