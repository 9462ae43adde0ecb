"""Tests for the media-heuristics command line."""

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import orjson
import pytest
from structlog.testing import capture_logs

from media_heuristics.cli import main


@pytest.fixture(autouse=True)
def quiet_logging() -> Iterator[list[dict]]:
    """Keep structlog output off stdout so the JSON payload parses."""
    with patch("media_heuristics.cli.setup_logging"), capture_logs() as logs:
        yield logs


def write_json(path: Path, payload: object) -> Path:
    path.write_bytes(orjson.dumps(payload))
    return path


class TestEmailCommand:
    """Tests for `media-heuristics email`."""

    def test_alias_with_suggestions(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["email", "tips@nytimes.com", "--name", "Jane Smith"])

        result = orjson.loads(capsys.readouterr().out)
        assert result["email_type"] == "alias"
        assert result["alias_type"] == "tips"
        assert result["suggestions"]["alternative_emails"][0] == "jane.smith@nytimes.com"

    def test_personal(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["email", "john.doe@wsj.com"])

        result = orjson.loads(capsys.readouterr().out)
        assert result["email_type"] == "personal"
        assert result["confidence"] == 0.95


class TestBatchCommands:
    """Tests for `media-heuristics contacts` and `media-heuristics content`."""

    def test_contacts(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_json(
            tmp_path / "contacts.json",
            [
                {"id": "c-1", "name": "Jane Smith", "email": "jane.smith@example.com"},
                {"id": "c-2", "name": "Tips Desk", "email": "tips@example.com"},
            ],
        )

        main(["contacts", str(path)])

        result = orjson.loads(capsys.readouterr().out)
        assert [a["contact_id"] for a in result["successes"]] == ["c-1", "c-2"]
        assert result["failures"] == []

    def test_content(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        published = datetime(2026, 1, 15, 12, 0, tzinfo=UTC).isoformat()
        story = {
            "url": "https://apnews.com/article/senate-budget",
            "title": "Senate Passes Budget Bill",
            "byline": "By Lisa Mascaro",
            "domain": "apnews.com",
            "published_at": published,
        }
        copy = {**story, "url": "https://localpaper.com/news/senate", "domain": "localpaper.com"}
        path = write_json(tmp_path / "content.json", [story, copy])

        main(["content", str(path)])

        result = orjson.loads(capsys.readouterr().out)
        assert [e["content"]["url"] for e in result["original_content"]] == [story["url"]]
        assert [e["content"]["url"] for e in result["syndicated_content"]] == [copy["url"]]

    def test_custom_rules_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        rules = write_json(
            tmp_path / "rules.json",
            {
                "email": {
                    "patterns": [
                        {
                            "pattern": "^scoops@",
                            "type": "alias",
                            "alias_type": "tips",
                            "priority": "medium",
                            "confidence": 0.9,
                            "description": "Scoops inbox",
                        }
                    ]
                }
            },
        )

        main(["--rules", str(rules), "email", "scoops@example.com"])

        result = orjson.loads(capsys.readouterr().out)
        assert result["alias_type"] == "tips"
        assert result["reasoning"] == "Scoops inbox"


class TestErrors:
    """Bad input exits with status 1."""

    def test_missing_file(self, tmp_path: Path, quiet_logging: list[dict]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["contacts", str(tmp_path / "missing.json")])

        assert exc_info.value.code == 1
        assert any(entry["event"] == "Invalid input" for entry in quiet_logging)

    def test_invalid_payload(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_json(tmp_path / "contacts.json", [{"id": "c-1"}])

        with pytest.raises(SystemExit) as exc_info:
            main(["contacts", str(path)])

        assert exc_info.value.code == 1
        assert "error:" in capsys.readouterr().err

    def test_bad_rules_file(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text("{not json")

        with pytest.raises(SystemExit) as exc_info:
            main(["--rules", str(path), "email", "tips@example.com"])

        assert exc_info.value.code == 1

    def test_unknown_command(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["bogus"])

        assert exc_info.value.code == 2
