"""
Submission of a finished session to the results service.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import requests

from config.settings import get_config
from ..errors import SubmissionFailure
from ..experiment.participant import ParticipantId
from ..experiment.recorder import TrialRecord
from ..experiment.stimuli import Block, Emotion
from ..utils.helpers import get_timestamp, save_json
from .api import ExperimentApiClient, is_success

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to save results"


@dataclass(frozen=True)
class ResultsPayload:
    """The participant and the ordered records submitted for a session."""

    participant_id: str
    records: Tuple[TrialRecord, ...]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the results service wire format."""
        return {
            "email": self.participant_id,
            "results": [record.to_dict() for record in self.records],
        }

    def to_backup_dict(self) -> Dict[str, Any]:
        """Wire format plus the block of each record, for local backups."""
        data = self.to_dict()
        for row, record in zip(data["results"], self.records):
            row["block"] = record.block.value
        return data


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return GENERIC_FAILURE_MESSAGE
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return GENERIC_FAILURE_MESSAGE


class ResultsSubmitter:
    """
    Sends a ResultsPayload to the results service.

    Failures are never retried here. If a backup directory is set, a
    payload that could not be delivered is written there as JSON so it
    can be resubmitted later.
    """

    def __init__(
        self,
        client: Optional[ExperimentApiClient] = None,
        backup_dir: Optional[Path] = None,
    ):
        self.client = client or ExperimentApiClient()
        self.backup_dir = backup_dir

    @classmethod
    def from_config(cls, client: Optional[ExperimentApiClient] = None) -> "ResultsSubmitter":
        return cls(client=client, backup_dir=get_config().session.backup_dir)

    def submit(
        self,
        participant_id: Union[ParticipantId, str],
        records: Iterable[TrialRecord],
    ) -> ResultsPayload:
        """
        Submit a session's records.

        Parameters
        ----------
        participant_id : Union[ParticipantId, str]
            Accepted participant identifier
        records : Iterable[TrialRecord]
            Records to submit, in exposure order

        Returns
        -------
        ResultsPayload
            The payload the service accepted

        Raises
        ------
        SubmissionFailure
            On a transport error, a non-2xx status, or a 2xx response
            without a JSON body
        """
        payload = ResultsPayload(participant_id=str(participant_id), records=tuple(records))
        return self.submit_payload(payload)

    def submit_payload(self, payload: ResultsPayload) -> ResultsPayload:
        """Submit an already built payload."""
        body = payload.to_dict()
        logger.info(f"Submitting {len(payload.records)} results for {payload.participant_id}")

        try:
            response = self.client.post_results(body)
        except requests.RequestException as e:
            raise self._failure(payload, f"Error saving results: {e}") from e

        if not is_success(response):
            message = _error_message(response)
            raise self._failure(payload, message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise self._failure(
                payload, "Results service returned an invalid response",
                status_code=response.status_code,
            ) from e

        logger.info(f"Results saved successfully: {data}")
        return payload

    def _failure(
        self,
        payload: ResultsPayload,
        message: str,
        status_code: Optional[int] = None,
    ) -> SubmissionFailure:
        logger.error(f"Error saving results: {message}")
        backup_path = None
        if self.backup_dir is not None:
            # Unique per failure; repeated failures within a second must not overwrite
            name = f"results_{get_timestamp()}_{uuid.uuid4().hex[:8]}.json"
            backup_path = Path(self.backup_dir) / name
            try:
                save_json(payload.to_backup_dict(), backup_path)
            except OSError as e:
                logger.error(f"Could not write results backup to {backup_path}: {e}")
                backup_path = None
        return SubmissionFailure(message, status_code=status_code, backup_path=backup_path)


def payload_from_dict(data: Dict[str, Any]) -> ResultsPayload:
    """
    Rebuild a payload from a saved backup or its wire format.

    Rows without a block (plain wire format) are taken as scored.
    """
    if not isinstance(data, dict) or "email" not in data or "results" not in data:
        raise ValueError("Not a results payload: expected 'email' and 'results'")

    records = tuple(
        TrialRecord(
            word=row["word"],
            emotion=Emotion(row["emotion"]),
            language=row["language"],
            response=Emotion(row["response"]),
            latency_ms=int(row["responseTime"]),
            block=Block(row.get("block", Block.SCORED.value)),
        )
        for row in data["results"]
    )
    return ResultsPayload(participant_id=data["email"], records=records)
