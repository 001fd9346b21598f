"""Command-line interface for ragassist.

Usage::

    python -m ragassist.cli ingest --owner alice --file notes.pdf
    python -m ragassist.cli ask --owner alice "What is photosynthesis?"
    python -m ragassist.cli quiz --owner alice --document <id> --questions 5
    python -m ragassist.cli documents --owner alice
    python -m ragassist.cli delete --owner alice --document <id>
    python -m ragassist.cli history --owner alice [--clear]
    python -m ragassist.cli stats --owner alice

Configuration comes from environment variables / ``.env`` (see
:class:`ragassist.config.settings.Settings`).
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import Any

from ragassist.config.settings import Settings
from ragassist.main import build_services, close_services
from ragassist.pipeline.orchestrator import RetrievalOrchestrator
from ragassist.services.ingestion.extractor import DOCX_TYPE, PDF_TYPE, TEXT_TYPE
from ragassist.utils.errors import RagAssistError

_TYPES_BY_SUFFIX = {
    ".pdf": PDF_TYPE,
    ".docx": DOCX_TYPE,
    ".txt": TEXT_TYPE,
}


def _guess_content_type(path: Path) -> str:
    known = _TYPES_BY_SUFFIX.get(path.suffix.lower())
    if known:
        return known
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, orchestrator: RetrievalOrchestrator) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    content_type = args.content_type or _guess_content_type(path)
    print(f"Ingesting {path.name} ({content_type})")
    result = await orchestrator.ingest(args.owner, path.read_bytes(), content_type, path.name)

    print("\nIngestion complete:")
    print(f"  Document ID:    {result.document_id}")
    print(f"  Chunks created: {result.chunks_created}")
    print(f"  Storage:        {result.storage_method.value}")
    print(f"  Text length:    {result.text_length}")
    return 0


async def _handle_ask(args: argparse.Namespace, orchestrator: RetrievalOrchestrator) -> int:
    result = await orchestrator.query(args.owner, args.query)
    print(result.answer)
    if result.references:
        print("\nReferences:")
        for ref in result.references:
            print(f"  - {ref}")
    if result.chat_id is None:
        print("\n(chat history could not be saved)", file=sys.stderr)
    return 0


async def _handle_quiz(args: argparse.Namespace, orchestrator: RetrievalOrchestrator) -> int:
    quiz = await orchestrator.generate_quiz(args.owner, args.document, args.questions)
    print(f"Quiz: {quiz.document_name}")
    print("=" * 40)
    letters = "ABCD"
    for index, question in enumerate(quiz.questions, start=1):
        print(f"\n{index}. {question.question}")
        for letter, option in zip(letters, question.options):
            print(f"   {letter}) {option}")
        if args.show_answers:
            print(f"   Answer: {letters[question.correct_answer]}")
            if question.explanation:
                print(f"   {question.explanation}")
    return 0


async def _handle_documents(args: argparse.Namespace, orchestrator: RetrievalOrchestrator) -> int:
    documents = (
        await orchestrator.list_quiz_documents(args.owner)
        if args.quiz_ready
        else await orchestrator.list_documents(args.owner)
    )
    if not documents:
        print("No documents.")
        return 0
    for doc in documents:
        method = doc.storage_method.value if doc.storage_method else "none"
        print(f"{doc.document_id}  {doc.name:<40} chunks={doc.chunk_count:<5} storage={method}")
    return 0


async def _handle_delete(args: argparse.Namespace, orchestrator: RetrievalOrchestrator) -> int:
    if args.document:
        await orchestrator.delete_document(args.owner, args.document)
        print(f"Deleted document {args.document}")
        return 0
    if not args.yes:
        answer = input(f"Delete ALL data for owner '{args.owner}'? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("  Aborted.")
            return 0
    removed = await orchestrator.delete_owner(args.owner)
    print(f"Deleted {removed} documents for owner {args.owner}")
    return 0


async def _handle_history(args: argparse.Namespace, orchestrator: RetrievalOrchestrator) -> int:
    if args.clear:
        removed = await orchestrator.clear_chat_history(args.owner)
        print(f"Cleared {removed} chats")
        return 0
    for chat in await orchestrator.get_chat_history(args.owner, args.limit):
        print(f"[{chat.created_at:%Y-%m-%d %H:%M}] Q: {chat.query}")
        print(f"  A: {chat.answer}\n")
    return 0


async def _handle_stats(args: argparse.Namespace, orchestrator: RetrievalOrchestrator) -> int:
    stats = await orchestrator.get_chat_stats(args.owner)
    index = await orchestrator.index_stats()
    print("Statistics")
    print("=" * 40)
    print(f"  Documents:  {stats.total_documents}")
    print(f"  Chats:      {stats.total_chats}")
    for method, count in sorted(index.items()):
        print(f"  Vectors ({method}): {count}")
    if stats.recent_chats:
        print("\n  Recent chats:")
        for chat in stats.recent_chats:
            print(f"    {chat.query[:60]}")
    return 0


_HANDLERS = {
    "ingest": _handle_ingest,
    "ask": _handle_ask,
    "quiz": _handle_quiz,
    "documents": _handle_documents,
    "delete": _handle_delete,
    "history": _handle_history,
    "stats": _handle_stats,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m ragassist.cli",
        description="Ingest documents and ask grounded questions about them.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest a PDF, DOCX or text file")
    ingest_parser.add_argument("--owner", required=True, help="Owner identifier")
    ingest_parser.add_argument("--file", required=True, help="Path to the document")
    ingest_parser.add_argument(
        "--content-type",
        dest="content_type",
        default=None,
        help="Override the content type guessed from the file suffix",
    )

    ask_parser = subparsers.add_parser("ask", help="Ask a question about your documents")
    ask_parser.add_argument("--owner", required=True, help="Owner identifier")
    ask_parser.add_argument("query", help="Question text")

    quiz_parser = subparsers.add_parser("quiz", help="Generate a quiz from a document")
    quiz_parser.add_argument("--owner", required=True, help="Owner identifier")
    quiz_parser.add_argument("--document", required=True, help="Document ID")
    quiz_parser.add_argument("--questions", type=int, default=5, help="Number of questions (1-20)")
    quiz_parser.add_argument(
        "--show-answers", action="store_true", dest="show_answers", help="Print answers"
    )

    docs_parser = subparsers.add_parser("documents", help="List documents")
    docs_parser.add_argument("--owner", required=True, help="Owner identifier")
    docs_parser.add_argument(
        "--quiz-ready",
        action="store_true",
        dest="quiz_ready",
        help="Only documents with stored chunks",
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a document or all owner data")
    delete_parser.add_argument("--owner", required=True, help="Owner identifier")
    delete_parser.add_argument("--document", default=None, help="Document ID (omit to delete all)")
    delete_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    history_parser = subparsers.add_parser("history", help="Show or clear chat history")
    history_parser.add_argument("--owner", required=True, help="Owner identifier")
    history_parser.add_argument("--limit", type=int, default=None, help="Maximum chats to show")
    history_parser.add_argument("--clear", action="store_true", help="Delete the chat history")

    stats_parser = subparsers.add_parser("stats", help="Show owner and index statistics")
    stats_parser.add_argument("--owner", required=True, help="Owner identifier")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    services: dict[str, Any] = await build_services(app_settings)
    try:
        return await _HANDLERS[args.command](args, services["orchestrator"])
    except RagAssistError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await close_services(services)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, build services and dispatch to the command handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    exit_code = asyncio.run(_run(args, Settings()))
    sys.exit(exit_code)
