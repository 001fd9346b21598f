"""Unit tests for the ragassist command-line interface."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ragassist.cli.main import _build_parser, _guess_content_type, _run, main
from ragassist.models.rag import IngestionResult, QueryResult, StorageMethod
from ragassist.pipeline.orchestrator import RetrievalOrchestrator
from ragassist.utils.errors import DocumentNotFoundError


@pytest.fixture
def orchestrator() -> MagicMock:
    mock = MagicMock(spec=RetrievalOrchestrator)
    mock.ingest = AsyncMock(
        return_value=IngestionResult(
            document_id="doc-1",
            document_name="notes.txt",
            chunks_created=3,
            storage_method=StorageMethod.RELATIONAL,
            file_extension="txt",
            text_length=120,
            processed_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
    )
    mock.query = AsyncMock(
        return_value=QueryResult(answer="Light.", references=["Plants... (Score: 0.900)"])
    )
    mock.delete_document = AsyncMock(return_value=None)
    return mock


def _patched_services(orchestrator: MagicMock):
    return (
        patch("ragassist.cli.main.build_services", AsyncMock(return_value={"orchestrator": orchestrator})),
        patch("ragassist.cli.main.close_services", AsyncMock()),
    )


class TestParser:
    def test_ingest_args(self) -> None:
        args = _build_parser().parse_args(["ingest", "--owner", "alice", "--file", "a.pdf"])
        assert args.command == "ingest"
        assert args.owner == "alice"
        assert args.content_type is None

    def test_quiz_defaults(self) -> None:
        args = _build_parser().parse_args(["quiz", "--owner", "alice", "--document", "d1"])
        assert args.questions == 5
        assert args.show_answers is False

    def test_owner_required(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["ask", "question"])

    def test_no_command_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "usage" in capsys.readouterr().out.lower()


class TestGuessContentType:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("notes.PDF", "application/pdf"),
            ("essay.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
            ("readme.txt", "text/plain"),
        ],
    )
    def test_known_suffixes(self, name: str, expected: str) -> None:
        assert _guess_content_type(Path(name)) == expected

    def test_unknown_suffix(self) -> None:
        assert _guess_content_type(Path("blob")) == "application/octet-stream"


class TestRun:
    @pytest.mark.asyncio
    async def test_ingest(self, tmp_path, settings, orchestrator, capsys) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("Plants need light.")
        args = _build_parser().parse_args(["ingest", "--owner", "alice", "--file", str(path)])

        build, close = _patched_services(orchestrator)
        with build, close as close_mock:
            code = await _run(args, settings)

        assert code == 0
        orchestrator.ingest.assert_awaited_once_with(
            "alice", b"Plants need light.", "text/plain", "notes.txt"
        )
        close_mock.assert_awaited_once()
        assert "Chunks created: 3" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_ask_prints_references(self, settings, orchestrator, capsys) -> None:
        args = _build_parser().parse_args(["ask", "--owner", "alice", "What do plants need?"])

        build, close = _patched_services(orchestrator)
        with build, close:
            code = await _run(args, settings)

        captured = capsys.readouterr()
        assert code == 0
        assert "Light." in captured.out
        assert "(Score: 0.900)" in captured.out
        assert "could not be saved" in captured.err

    @pytest.mark.asyncio
    async def test_domain_error_exit_code(self, settings, orchestrator, capsys) -> None:
        orchestrator.delete_document.side_effect = DocumentNotFoundError()
        args = _build_parser().parse_args(["delete", "--owner", "bob", "--document", "d1"])

        build, close = _patched_services(orchestrator)
        with build, close as close_mock:
            code = await _run(args, settings)

        assert code == 1
        assert "Document not found or access denied" in capsys.readouterr().err
        close_mock.assert_awaited_once()
