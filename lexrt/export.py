"""
Export of trial records for offline inspection.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from .experiment.recorder import TrialRecord

logger = logging.getLogger(__name__)

COLUMNS = ["word", "emotion", "language", "response", "responseTime", "block"]


def records_to_frame(records: Iterable[TrialRecord], participant_id: str = "") -> pd.DataFrame:
    """
    Build a DataFrame with one row per trial, in exposure order.

    Parameters
    ----------
    records : Iterable[TrialRecord]
        Records to convert
    participant_id : str
        Added as an ``email`` column when given

    Returns
    -------
    pd.DataFrame
        Records in wire column order plus the block
    """
    rows = []
    for record in records:
        row = record.to_dict()
        row["block"] = record.block.value
        rows.append(row)

    df = pd.DataFrame(rows, columns=COLUMNS)
    if participant_id:
        df.insert(0, "email", participant_id)
    return df


def export_records(
    records: Iterable[TrialRecord],
    output_path: Path,
    format: str = "csv",
    participant_id: str = "",
) -> Path:
    """
    Write trial records to disk.

    Parameters
    ----------
    records : Iterable[TrialRecord]
        Records to export
    output_path : Path
        Output file path
    format : str
        Output format ("csv" or "json")
    participant_id : str
        Participant to tag every row with

    Returns
    -------
    Path
        The written path
    """
    data = records_to_frame(records, participant_id=participant_id)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if format == "csv":
        data.to_csv(output_path, index=False)
    elif format == "json":
        data.to_json(output_path, orient="records", indent=2, force_ascii=False)
    else:
        raise ValueError(f"Unknown format: {format}")

    logger.info(f"Exported {len(data)} records to {output_path}")
    return output_path
