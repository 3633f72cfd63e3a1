from __future__ import annotations

import sys
from pathlib import Path

from tools.guards._scan import iter_python_files, read_source, report

# Built dynamically so the literal never appears in source.
MARKER: str = "sup" + "press"


def check_path(path: Path) -> list[str]:
    text = read_source(path)
    return [
        f"{path}:{line_number} forbidden marker '{MARKER}'"
        for line_number, line in enumerate(text.splitlines(), start=1)
        if MARKER in line.lower()
    ]


def run(roots: list[str]) -> int:
    all_errors: list[str] = []
    for path in iter_python_files(roots):
        all_errors.extend(check_path(path))
    return report(all_errors)


def main() -> int:
    return run(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
