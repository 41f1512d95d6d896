"""
Unit tests for record export and the command-line interface.
"""

import pytest
import pandas as pd
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from lexrt import cli
from lexrt.errors import SubmissionFailure
from lexrt.experiment.recorder import TrialRecorder
from lexrt.experiment.stimuli import Block, Emotion, WordStimulus
from lexrt.export import COLUMNS, export_records, records_to_frame
from lexrt.services.api import ExperimentApiClient
from lexrt.services.submitter import ResultsPayload, ResultsSubmitter
from lexrt.utils.helpers import load_json, save_json
from tests.fakes import FakeResponse, FakeSession


@pytest.fixture
def records():
    recorder = TrialRecorder()
    recorder.record(WordStimulus("güneş", Emotion.POSITIVE, "tr"), Emotion.POSITIVE, 512, Block.PRACTICE)
    recorder.record(WordStimulus("kayıp", Emotion.NEGATIVE, "tr"), Emotion.NEGATIVE, 634, Block.SCORED)
    return recorder.all()


class TestExport:
    """Tests for exporting records."""

    def test_frame_columns_and_order(self, records):
        df = records_to_frame(records)

        assert list(df.columns) == COLUMNS
        assert df["word"].tolist() == ["güneş", "kayıp"]
        assert df["responseTime"].tolist() == [512, 634]
        assert df["block"].tolist() == ["practice", "scored"]

    def test_frame_with_participant(self, records):
        df = records_to_frame(records, participant_id="p@example.com")

        assert df.columns[0] == "email"
        assert set(df["email"]) == {"p@example.com"}

    def test_empty_frame(self):
        df = records_to_frame([])

        assert len(df) == 0
        assert list(df.columns) == COLUMNS

    def test_export_csv(self, records, tmp_path):
        path = export_records(records, tmp_path / "out" / "results.csv")

        df = pd.read_csv(path)
        assert len(df) == 2
        assert df["response"].tolist() == ["positive", "negative"]

    def test_export_json(self, records, tmp_path):
        path = export_records(records, tmp_path / "results.json", format="json")

        rows = pd.read_json(path).to_dict(orient="records")
        assert rows[1]["word"] == "kayıp"

    def test_unknown_format(self, records, tmp_path):
        with pytest.raises(ValueError, match="Unknown format"):
            export_records(records, tmp_path / "results.xlsx", format="xlsx")


class TestCli:
    """Tests for the command-line entry point."""

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_export_backup(self, records, tmp_path):
        backup = save_json(
            ResultsPayload("p@example.com", records).to_dict(),
            tmp_path / "results_20260101_120000.json",
        )

        assert cli.main(["export", str(backup)]) == 0

        df = pd.read_csv(backup.with_suffix(".csv"))
        assert df["email"].tolist() == ["p@example.com", "p@example.com"]

    def test_export_failed_submission_keeps_blocks(self, records, tmp_path):
        """Practice rows in a failed-submission backup export as practice."""
        session = FakeSession(post=[FakeResponse(503, {"error": "down"})])
        client = ExperimentApiClient(base_url="http://api.test", session=session)
        submitter = ResultsSubmitter(client, backup_dir=tmp_path)

        with pytest.raises(SubmissionFailure) as excinfo:
            submitter.submit("p@example.com", records)
        backup = excinfo.value.backup_path

        assert cli.main(["export", str(backup)]) == 0

        df = pd.read_csv(backup.with_suffix(".csv"))
        assert df["block"].tolist() == ["practice", "scored"]

    def test_resubmit_failure_exit_code(self, records, tmp_path, monkeypatch):
        backup = save_json(ResultsPayload("p@example.com", records).to_dict(), tmp_path / "b.json")

        from lexrt.services import submitter as submitter_module

        def _fail(self, payload):
            raise SubmissionFailure("down")

        monkeypatch.setattr(submitter_module.ResultsSubmitter, "submit_payload", _fail)

        assert cli.main(["resubmit", str(backup)]) == 1
        assert load_json(backup)["email"] == "p@example.com"

    def test_parser_commands(self):
        parser = cli.build_parser()

        args = parser.parse_args(["stub", "--fail-words", "2", "--port", "5050"])
        assert args.command == "stub"
        assert args.fail_words == 2
        assert args.port == 5050


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
