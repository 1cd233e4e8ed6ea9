#!/usr/bin/env python3
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from local_rag_engine.app import Engine, QueryRequest
from local_rag_engine.config import load_config
from local_rag_engine.errors import LocalRagError
from local_rag_engine.ingest.md_txt import load_text_documents
from local_rag_engine.ingest.samples import sample_documents
from local_rag_engine.logging_utils import setup_logging
from local_rag_engine.utils.log import ActivityLog
from local_rag_engine.utils.output import FORMATS, infer_format, render, write_output

logger = logging.getLogger(__name__)


def _add_corpus_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--docs", nargs="*", default=[], help="Text/markdown files or folders to load into the knowledge base"
    )
    p.add_argument("--samples", action="store_true", help="Also load the built-in seed resources")


def build_engine(args, activity: Optional[ActivityLog] = None) -> Engine:
    config_path = args.config or ("config.yaml" if Path("config.yaml").is_file() else None)
    engine = Engine(load_config(config_path), activity=activity)

    docs = sample_documents() if args.samples else []
    for path in args.docs:
        docs.extend(load_text_documents(path))
    for doc in docs:
        engine.ingest(doc)
    if not docs:
        logger.warning("Knowledge base is empty; pass --docs or --samples.")
    return engine


def _print_stats(engine: Engine, out: TextIO) -> None:
    st = engine.stats()
    print(f"Resources: {st.document_count}", file=out)
    print(f"Search segments: {st.chunk_count}", file=out)
    print(f"Characters indexed: {st.total_chars}", file=out)


def _print_docs(engine: Engine, out: TextIO) -> None:
    for d in engine.documents():
        print(f"{d.id}\t{d.chunk_count} chunk(s)\t{d.title}", file=out)


def cmd_ask(args) -> int:
    engine = build_engine(args)
    result = engine.answer(args.question)
    fmt = infer_format(args.out, args.format)
    if args.out:
        target = write_output(args.question, result, out_path=args.out, fmt=fmt)
        print(f"[saved] {target}")
    else:
        sys.stdout.write(render(args.question, result, fmt))
    return 0


def cmd_stats(args) -> int:
    engine = build_engine(args)
    _print_stats(engine, sys.stdout)
    _print_docs(engine, sys.stdout)
    return 0


def chat_loop(engine: Engine, lines, out: TextIO) -> int:
    """Read questions (or :commands) line by line and print each answer."""
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if line in (":quit", ":q", ":exit"):
            break
        if line == ":stats":
            _print_stats(engine, out)
            continue
        if line == ":docs":
            _print_docs(engine, out)
            continue
        if line == ":log":
            for entry in engine.activity.entries():
                print(entry, file=out)
            continue
        if line.startswith(":remove "):
            doc_id = line.split(None, 1)[1].strip()
            n = engine.remove_document(doc_id)
            print(f"Removed {doc_id} ({n} segment(s)).", file=out)
            continue

        resp = engine.handle(QueryRequest(text=line))
        out.write(render(line, resp.result, "txt"))
        tag = "cached" if resp.cached else f"{resp.elapsed_ms} ms"
        print(f"({tag})\n", file=out)
    return 0


def cmd_chat(args) -> int:
    activity = ActivityLog(path=Path(args.log_file)) if args.log_file else None
    engine = build_engine(args, activity=activity)
    print("Ask a question (:stats, :docs, :log, :remove ID, :quit).", file=sys.stderr)

    def _prompt():
        while True:
            try:
                yield input("> ")
            except EOFError:
                return

    return chat_loop(engine, _prompt(), sys.stdout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="local-rag-engine",
        description="Offline lexical question answering over your own text resources.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable DEBUG logs (to stderr).")
    parser.add_argument("--quiet", "-q", action="store_true", help="Reduce logs to WARNING and above.")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines (stderr).")
    parser.add_argument("--config", type=str, default=None, help="YAML config (default: ./config.yaml if present)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_ask = sub.add_parser("ask", help="Answer one question")
    p_ask.add_argument("question", type=str)
    _add_corpus_args(p_ask)
    p_ask.add_argument("--format", type=str, default=None, choices=list(FORMATS))
    p_ask.add_argument("--out", type=str, default=None, help="Write the answer to a file")
    p_ask.set_defaults(func=cmd_ask)

    p_chat = sub.add_parser("chat", help="Interactive question loop")
    _add_corpus_args(p_chat)
    p_chat.add_argument("--log-file", type=str, default=None, help="Mirror the activity log to a JSONL file")
    p_chat.set_defaults(func=cmd_chat)

    p_stats = sub.add_parser("stats", help="Show knowledge base summary")
    _add_corpus_args(p_stats)
    p_stats.set_defaults(func=cmd_stats)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose and args.quiet:
        print("Cannot use --verbose and --quiet together.", file=sys.stderr)
        return 2
    level = "DEBUG" if args.verbose else "WARNING" if args.quiet else "INFO"
    setup_logging(level=level, json_logs=args.log_json)
    logger.debug("CLI args parsed: %s", vars(args))

    try:
        return args.func(args)
    except (LocalRagError, FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
