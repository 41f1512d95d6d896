"""
End-to-end integration tests for the experiment runtime.

Runs complete sessions against the Flask stub of the word-list and
results services.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest
from lexrt.experiment.phases import Phase, PhaseController, Signal
from lexrt.experiment.stimuli import Emotion
from lexrt.experiment.timing import ResponseTimer
from lexrt.services.api import ExperimentApiClient
from lexrt.services.loader import SessionLoader
from lexrt.services.submitter import ResultsSubmitter
from lexrt.stub_server import DEFAULT_WORDS, create_app
from lexrt.utils.helpers import load_json
from tests.fakes import FakeClock, FlaskSession, RecordingToken


class TestEndToEndSession:
    """Test complete sessions against the stub services."""

    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        """Set up test environment."""
        self.results_dir = tmp_path / "stub_results"
        self.backup_dir = tmp_path / "backups"
        self.clock = FakeClock()

    def _controller(self, app, **kwargs):
        client = ExperimentApiClient(base_url="http://localhost:5000", session=FlaskSession(app))
        return PhaseController(
            loader=SessionLoader(client),
            submitter=ResultsSubmitter(client, backup_dir=self.backup_dir),
            timer=ResponseTimer(clock=self.clock),
            token=RecordingToken(),
            **kwargs,
        )

    def _play(self, controller, answer_correctly=True):
        """Answer every word, confirming screens in between."""
        controller.handle(Signal.CONFIRM)
        controller.handle(Signal.CONFIRM)
        while controller.phase is not Phase.COMPLETED and not controller.can_retry_submission:
            stimulus = controller.current_stimulus
            if stimulus is None:
                controller.handle(Signal.CONFIRM)
                continue
            self.clock.advance_ms(450)
            correct = stimulus.emotion is Emotion.POSITIVE
            if not answer_correctly:
                correct = not correct
            controller.handle(Signal.POSITIVE if correct else Signal.NEGATIVE)

    def test_default_session(self):
        """A full session is stored by the results service."""
        app = create_app(results_dir=self.results_dir)
        controller = self._controller(app)

        assert controller.submit_identifier("katilimci@example.com")
        self._play(controller)

        assert controller.phase is Phase.COMPLETED
        n_practice = len(DEFAULT_WORDS["trialWords"])
        n_scored = len(DEFAULT_WORDS["testWords"])
        assert len(controller.recorder) == n_practice + n_scored

        stored = [load_json(p) for p in self.results_dir.glob("*.json")]
        assert len(stored) == 1
        assert stored[0]["email"] == "katilimci@example.com"
        results = stored[0]["results"]
        assert [r["word"] for r in results] == [w["word"] for w in DEFAULT_WORDS["testWords"]]
        assert all(r["responseTime"] == 450 for r in results)
        assert all(r["response"] == r["emotion"] for r in results)

    def test_full_history_submission(self):
        app = create_app()
        controller = self._controller(app, submit_practice_records=True)

        controller.submit_identifier("katilimci@example.com")
        self._play(controller, answer_correctly=False)

        submissions = app.config["STUB_STATE"]["submissions"]
        assert len(submissions[0]["results"]) == len(controller.recorder)
        assert all(r["response"] != r["emotion"] for r in submissions[0]["results"])

    def test_word_list_outage_recovers(self):
        """Three outages are absorbed by the automatic retries."""
        app = create_app(words_failures=3)
        controller = self._controller(app)

        controller.submit_identifier("katilimci@example.com")

        assert controller.phase is Phase.INTRO
        assert app.config["STUB_STATE"]["word_requests"] == 4

    def test_word_list_outage_needs_manual_retry(self):
        app = create_app(words_failures=4)
        controller = self._controller(app)

        controller.submit_identifier("katilimci@example.com")
        assert controller.phase is Phase.LOAD_ERROR

        controller.retry_load()
        assert controller.phase is Phase.INTRO
        assert app.config["STUB_STATE"]["word_requests"] == 5

    def test_rejected_results_are_backed_up(self):
        """A results service error leaves the data recoverable."""
        app = create_app(results_dir=self.results_dir)
        save_results = app.view_functions["save_results"]
        app.view_functions["save_results"] = lambda: ({"error": "Database unavailable"}, 503)
        controller = self._controller(app)
        notices = []
        controller.subscribe_notice(notices.append)

        controller.submit_identifier("katilimci@example.com")
        self._play(controller)

        assert controller.phase is Phase.SCORED
        assert len(notices) == 1
        assert notices[0].startswith("Error saving results: Database unavailable")
        backups = list(self.backup_dir.glob("results_*.json"))
        assert len(backups) == 1
        assert load_json(backups[0])["email"] == "katilimci@example.com"

        # Service is back; the participant's data is sent on manual retry
        app.view_functions["save_results"] = save_results
        controller.retry_submission()

        assert controller.phase is Phase.COMPLETED
        assert len(list(self.results_dir.glob("*.json"))) == 1

    def test_stub_rejects_bad_payload(self):
        client = create_app().test_client()

        response = client.post("/api/results", json={"email": "nope", "results": []})

        assert response.status_code == 400
        assert response.get_json()["error"] == "A valid email is required"

    def test_stub_rejects_missing_fields(self):
        client = create_app().test_client()

        response = client.post("/api/results", json={
            "email": "p@example.com",
            "results": [{"word": "x", "emotion": "positive", "language": "tr", "response": "positive"}],
        })

        assert response.status_code == 400
        assert "responseTime" in response.get_json()["error"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
