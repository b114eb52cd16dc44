"""Tests for the qbank-eval CLI commands."""

import json
import re
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from qbank_eval.cli.main import app

FIXTURES = Path(__file__).parent.parent / "fixtures"
CONFIG = str(FIXTURES / "cli_config.yaml")

runner = CliRunner()


def _question_json() -> str:
    return json.dumps(
        {
            "stem": (
                "A 27-year-old woman presents with depigmented macules on the "
                "hands and perioral skin for 6 months."
            ),
            "lead_in": "Which of the following is the most likely diagnosis?",
            "options": [
                "Vitiligo",
                "Tinea versicolor",
                "Pityriasis alba",
                "Idiopathic guttate hypomelanosis",
                "Post-inflammatory hypopigmentation",
            ],
            "correct_answer": 0,
            "explanation": "Vitiligo is correct because the macules are depigmented.",
        }
    )


def _make_acompletion_response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@pytest.fixture(autouse=True)
def store_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "store.json"
    monkeypatch.setenv("QBANK_STORE_PATH", str(path))
    return path


def _invoke(*args: str) -> tuple[int, str]:
    result = runner.invoke(app, [*args, "--log-format", "json"])
    return result.exit_code, result.output


def _create_job(user: str = "cli") -> str:
    code, output = _invoke("start", CONFIG, "--no-process", "--user", user)
    assert code == 0, output
    match = re.search(r"Created job (\w+): 2 tests", output)
    assert match is not None, output
    return match.group(1)


class TestStart:
    def test_creates_pending_job(self, store_path: Path) -> None:
        job_id = _create_job()

        code, output = _invoke("status", job_id, "--config", CONFIG)

        assert code == 0
        assert "pending" in output
        assert "0/2" in output
        assert store_path.exists()

    def test_start_processes_to_completion(self) -> None:
        mock = AsyncMock(return_value=_make_acompletion_response(_question_json()))

        with patch("litellm.acompletion", mock):
            code, output = _invoke("start", CONFIG, "--batch-size", "2")

        assert code == 0, output
        assert "finished" in output
        assert "2/2 succeeded" in output
        assert mock.await_count == 2

    def test_missing_config_file(self) -> None:
        code, output = _invoke("start", str(FIXTURES / "nope.yaml"), "--no-process")

        assert code == 1
        assert "nope.yaml" in output

    def test_missing_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("QBANK_STORE_PATH")

        code, output = _invoke("start", CONFIG, "--no-process")

        assert code == 1
        assert "missing environment variables: QBANK_STORE_PATH" in output

    def test_invalid_log_format(self) -> None:
        result = runner.invoke(app, ["start", CONFIG, "--log-format", "xml"])

        assert result.exit_code == 1
        assert "Invalid log format" in result.output


class TestProcess:
    def test_single_chunk_then_resume(self) -> None:
        job_id = _create_job()
        mock = AsyncMock(return_value=_make_acompletion_response(_question_json()))

        with patch("litellm.acompletion", mock):
            code, output = _invoke("process", job_id, "--config", CONFIG, "--batch-size", "1")
            assert code == 0, output
            assert "--start-index 1" in output

            code, output = _invoke(
                "process", job_id, "--config", CONFIG, "--start-index", "1"
            )

        assert code == 0, output
        assert "finished" in output
        code, output = _invoke("status", job_id, "--config", CONFIG)
        assert "completed" in output
        assert "Success rate" in output

    def test_generation_failures_are_recorded_not_fatal(self) -> None:
        job_id = _create_job()
        mock = AsyncMock(side_effect=RuntimeError("model overloaded"))

        with patch("litellm.acompletion", mock):
            code, output = _invoke("process", job_id, "--config", CONFIG, "--all")

        assert code == 0, output
        assert "0/" in output
        code, output = _invoke("status", job_id, "--config", CONFIG)
        assert "completed" in output
        assert "Errors" in output

    def test_unknown_job(self) -> None:
        code, output = _invoke("process", "ghost", "--config", CONFIG)

        assert code == 1
        assert "Evaluation job not found: ghost" in output


class TestCancel:
    def test_owner_cancels_then_processing_stops(self) -> None:
        job_id = _create_job(user="alice")

        code, output = _invoke(
            "cancel", job_id, "--config", CONFIG, "--user", "alice", "--reason", "Wrong topics"
        )
        assert code == 0, output
        assert "Cancellation requested" in output

        code, output = _invoke("process", job_id, "--config", CONFIG, "--all")
        assert code == 0, output
        code, output = _invoke("status", job_id, "--config", CONFIG)
        assert "cancelled" in output
        assert "Wrong topics" in output

    def test_other_user_is_denied(self) -> None:
        job_id = _create_job(user="alice")

        code, output = _invoke("cancel", job_id, "--config", CONFIG, "--user", "mallory")

        assert code == 1
        assert "may not cancel" in output

    def test_admin_may_cancel(self) -> None:
        job_id = _create_job(user="alice")

        code, output = _invoke(
            "cancel", job_id, "--config", CONFIG, "--user", "ops", "--admin"
        )

        assert code == 0, output


class TestInspection:
    def test_status_of_unknown_job(self) -> None:
        code, output = _invoke("status", "ghost", "--config", CONFIG)

        assert code == 1
        assert "not found" in output

    def test_summary_missing_before_completion(self) -> None:
        job_id = _create_job()

        code, output = _invoke("summary", job_id, "--config", CONFIG)

        assert code == 1
        assert f"No summary for job {job_id}" in output

    def test_summary_after_completion(self) -> None:
        mock = AsyncMock(return_value=_make_acompletion_response(_question_json()))
        with patch("litellm.acompletion", mock):
            code, output = _invoke("start", CONFIG)
        assert code == 0, output
        match = re.search(r"Created job (\w+):", output)
        assert match is not None

        code, output = _invoke("summary", match.group(1), "--config", CONFIG)

        assert code == 0, output
        assert "legacy" in output
        assert "2/2 succeeded" in output


class TestMaintenance:
    def test_enqueue_review_without_ai_scores(self) -> None:
        mock = AsyncMock(return_value=_make_acompletion_response(_question_json()))
        with patch("litellm.acompletion", mock):
            _, output = _invoke("start", CONFIG)
        match = re.search(r"Created job (\w+):", output)
        assert match is not None

        code, output = _invoke("enqueue-review", match.group(1), "--config", CONFIG)

        assert code == 0, output
        assert "Added 0 of 2 results" in output

    def test_stop_stalled_with_nothing_stalled(self) -> None:
        _create_job()

        code, output = _invoke("stop-stalled", "--config", CONFIG)

        assert code == 0, output
        assert "No stalled jobs" in output
