from __future__ import annotations

import ast
import sys
from pathlib import Path

from tools.guards._scan import iter_python_files, parse_source, read_source, report


def check_path(path: Path) -> list[str]:
    tree = parse_source(path, read_source(path))
    return [
        f"{path}:{n.lineno} use logger; 'print' is forbidden"
        for n in ast.walk(tree)
        if (
            isinstance(n, ast.Call)
            and isinstance(n.func, ast.Name)
            and n.func.id == "print"
        )
    ]


def run(roots: list[str]) -> int:
    errors: list[str] = []
    for path in iter_python_files(roots):
        errors.extend(check_path(path))
    return report(errors)


def main() -> int:
    return run(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
