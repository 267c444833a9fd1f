"""Builders for Watchman request JSON.

Requests are plain lists and dicts, ready for ``json.dumps``. See
https://facebook.github.io/watchman/docs/cmd/query.html for the shapes.
"""

from __future__ import annotations

from typing import Any, Iterable, Literal

from hhwatch.models.config import FilterConfig

Command = Literal["query", "subscribe"]


def pred(name: str, args: list[Any]) -> list[Any]:
    """Prepend a predicate name to its arguments, e.g. ``["allof", ...]``."""
    return [name, *args]


def clock(root: str) -> list[Any]:
    return ["clock", root]


def watch_project(root: str) -> list[Any]:
    return ["watch-project", root]


def capability_check(
    required: Iterable[str], optional: Iterable[str] = ()
) -> list[Any]:
    """Build a ``version`` request asking for capabilities."""
    return [
        "version",
        {"optional": list(optional), "required": list(required)},
    ]


def file_expression(
    filters: FilterConfig, extra_expressions: Iterable[Any] = ()
) -> list[Any]:
    """Match ordinary source files outside of VCS metadata directories."""
    return pred(
        "allof",
        [
            *extra_expressions,
            ["type", "f"],
            pred(
                "anyof",
                [
                    ["name", filters.config_file],
                    pred("anyof", [["suffix", s] for s in filters.suffixes]),
                ],
            ),
            pred("not", [pred("anyof", [["dirname", d] for d in filters.vcs_dirs])]),
        ],
    )


def request_json(
    command: Command,
    watch_root: str,
    relative_path: str,
    filters: FilterConfig,
    extra_kv: dict[str, Any] | None = None,
    extra_expressions: Iterable[Any] = (),
) -> list[Any]:
    """Build a ``query`` or ``subscribe`` request."""
    header: list[Any] = [command, watch_root]
    if command == "subscribe":
        header.append(filters.subscription_name)

    directives: dict[str, Any] = dict(extra_kv or {})
    directives["fields"] = ["name"]
    directives["relative_root"] = relative_path
    directives["expression"] = file_expression(filters, extra_expressions)

    return [*header, directives]


def all_query(
    watch_root: str, relative_path: str, filters: FilterConfig
) -> list[Any]:
    return request_json(
        "query", watch_root, relative_path, filters, extra_expressions=["exists"]
    )


def since_query(
    watch_root: str, relative_path: str, filters: FilterConfig, clockspec: str
) -> list[Any]:
    return request_json(
        "query", watch_root, relative_path, filters, extra_kv={"since": clockspec}
    )


def subscribe(
    watch_root: str, relative_path: str, filters: FilterConfig, clockspec: str
) -> list[Any]:
    return request_json(
        "subscribe",
        watch_root,
        relative_path,
        filters,
        extra_kv={"since": clockspec, "defer": list(filters.defer)},
    )
