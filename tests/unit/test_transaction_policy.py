"""Static checks on how routes and services handle sessions.

Public service coroutines own their transaction (``async with db.begin()``),
so nothing under ``routes/`` or ``services/`` may commit or roll back by hand,
and services get their session passed in rather than importing the engine.
"""

from __future__ import annotations

import ast
from collections.abc import Callable, Iterator
from pathlib import Path

PACKAGE = Path(__file__).resolve().parents[2] / "quizdeck"

# Resolves the acting user for route dependencies, so it wires get_session itself
SERVICES_ALLOWED_TO_WIRE_SESSIONS = frozenset({"authz.py"})


def _find(
    folders: tuple[str, ...],
    matches: Callable[[ast.AST], bool],
    skip: frozenset[str] = frozenset(),
) -> Iterator[str]:
    for folder in folders:
        for path in sorted((PACKAGE / folder).rglob("*.py")):
            if path.name in skip:
                continue
            tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
            for node in ast.walk(tree):
                if matches(node):
                    yield f"{path.relative_to(PACKAGE.parent)}:{node.lineno}"


def _manual_transaction_end(node: ast.AST) -> bool:
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Attribute)
        and node.func.attr in {"commit", "rollback"}
    )


def _imports_engine_or_settings(node: ast.AST) -> bool:
    wiring = {"quizdeck.utils.db_async", "quizdeck.config"}
    if isinstance(node, ast.ImportFrom):
        return node.module in wiring
    if isinstance(node, ast.Import):
        return any(alias.name in wiring for alias in node.names)
    return False


def test_no_manual_commit_or_rollback_in_routes_or_services() -> None:
    hits = list(_find(("routes", "services"), _manual_transaction_end))

    assert not hits, "commit()/rollback() called directly:\n" + "\n".join(hits)


def test_services_receive_their_session() -> None:
    hits = list(
        _find(
            ("services",),
            _imports_engine_or_settings,
            skip=SERVICES_ALLOWED_TO_WIRE_SESSIONS,
        )
    )

    assert not hits, "service imports the engine or settings:\n" + "\n".join(hits)
