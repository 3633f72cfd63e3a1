"""Flag view-mode blocks that hand their binding back out.

Only lambda blocks are inspected: ``bind_ref(p, lambda db: db)`` or
``bind_mut(p, lambda db: (db, 1))`` return a view that is revoked the moment
the call returns. Blocks written as named functions are not analysed.
"""
from __future__ import annotations

import ast
import sys
from pathlib import Path

from tools.guards._scan import iter_python_files, parse_source, read_source, report

VIEW_BINDERS = frozenset({"bind_ref", "bind_mut"})
VIEW_MODES = frozenset({"ref", "mut"})


def _callee_name(func: ast.expr) -> str | None:
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute):
        return func.attr
    return None


def _argument(call: ast.Call, index: int, keyword: str) -> ast.expr | None:
    if len(call.args) > index:
        return call.args[index]
    for kw in call.keywords:
        if kw.arg == keyword:
            return kw.value
    return None


def view_block(call: ast.Call) -> ast.expr | None:
    """Return the block expression of a view-mode binder call, if any."""
    name = _callee_name(call.func)
    if name in VIEW_BINDERS:
        return _argument(call, 1, "block")
    if name == "bind":
        mode = _argument(call, 0, "mode")
        if isinstance(mode, ast.Constant) and mode.value in VIEW_MODES:
            return _argument(call, 2, "block")
    return None


def exposes(node: ast.expr, param: str) -> bool:
    if isinstance(node, ast.Name):
        return node.id == param
    if isinstance(node, (ast.Tuple, ast.List, ast.Set)):
        return any(exposes(elt, param) for elt in node.elts)
    if isinstance(node, ast.Dict):
        keys = [k for k in node.keys if k is not None]
        return any(exposes(e, param) for e in [*keys, *node.values])
    if isinstance(node, ast.IfExp):
        return exposes(node.body, param) or exposes(node.orelse, param)
    return False


def check_path(path: Path) -> list[str]:
    tree = parse_source(path, read_source(path))
    errors: list[str] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        block = view_block(node)
        if not isinstance(block, ast.Lambda) or len(block.args.args) != 1:
            continue
        param = block.args.args[0].arg
        if exposes(block.body, param):
            errors.append(
                f"{path}:{block.lineno} view binding '{param}' escapes its block"
            )
    return errors


def run(roots: list[str]) -> int:
    errors: list[str] = []
    for path in iter_python_files(roots):
        errors.extend(check_path(path))
    return report(errors)


def main() -> int:
    return run(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
