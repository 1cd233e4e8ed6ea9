from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..index.schema import AnswerResult

FORMATS = ("json", "md", "txt")


def infer_format(out_path: Optional[str], fmt: Optional[str]) -> str:
    if fmt:
        return fmt.lower()
    if out_path:
        ext = Path(out_path).suffix.lower().lstrip(".")
        if ext in FORMATS:
            return ext
    return "txt"


def as_dict(question: str, result: AnswerResult) -> Dict[str, Any]:
    return {
        "question": question,
        "answer": result.answer,
        "confidence": result.confidence,
        "sources": [s.model_dump() for s in result.sources],
    }


def as_json(question: str, result: AnswerResult) -> str:
    return json.dumps(as_dict(question, result), ensure_ascii=False, indent=2) + "\n"


def as_markdown(question: str, result: AnswerResult) -> str:
    lines: List[str] = [f"# {question}", ""]
    lines.append(result.answer.strip())
    lines.append("")
    lines.append(f"_Match: {round(result.confidence * 100)}%_")
    if result.sources:
        lines.append("")
        lines.append("## Sources")
        for s in result.sources:
            lines.append(f"- **{s.doc_title}** (`{s.id}`, score {s.score:.2f})")
    return "\n".join(lines).strip() + "\n"


def as_text(question: str, result: AnswerResult) -> str:
    lines: List[str] = [f"QUESTION: {question}", "", result.answer.strip(), ""]
    lines.append(f"MATCH: {round(result.confidence * 100)}%")
    if result.sources:
        lines.append("")
        lines.append("SOURCES:")
        for i, s in enumerate(result.sources, start=1):
            lines.append(f"[{i}] {s.doc_title} | {s.id} | score={s.score:.3f}")
    return "\n".join(lines).strip() + "\n"


def render(question: str, result: AnswerResult, fmt: str = "txt") -> str:
    if fmt == "json":
        return as_json(question, result)
    if fmt == "md":
        return as_markdown(question, result)
    if fmt == "txt":
        return as_text(question, result)
    raise ValueError(f"Unsupported format: {fmt}")


def write_output(question: str, result: AnswerResult, out_path: str, fmt: Optional[str] = None) -> Path:
    fmt2 = infer_format(out_path, fmt)
    target = Path(out_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render(question, result, fmt2), encoding="utf-8")
    return target
