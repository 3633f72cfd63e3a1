from __future__ import annotations

import ast
import sys
from collections.abc import Iterable
from pathlib import Path


def iter_python_files(roots: Iterable[str]) -> Iterable[Path]:
    for root in roots:
        base = Path(root)
        if not base.exists():
            continue
        if base.is_file():
            yield base
            continue
        yield from sorted(base.rglob("*.py"))


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:  # pragma: no cover - guard must not crash silently
        sys.stderr.write(f"{path}: READ_ERROR {exc}\n")
        raise


def parse_source(path: Path, text: str) -> ast.Module:
    try:
        return ast.parse(text, filename=str(path))
    except SyntaxError as exc:
        # Surface parse errors explicitly and re-raise to fail the check
        sys.stderr.write(f"{path}: PARSE_ERROR {exc}\n")
        raise


def report(errors: list[str]) -> int:
    if errors:
        sys.stderr.write("\n".join(errors) + "\n")
        return 1
    return 0
