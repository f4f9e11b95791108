"""Logging utilities.

Every record carries the scope of the fitting run it was emitted in (run id, iteration,
template id), so interleaved runs in one API process stay readable.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from dataclasses import dataclass, replace
from typing import Any, Iterator

from rich.logging import RichHandler


@dataclass(frozen=True)
class LogScope:
    run_id: str = "-"
    iteration: str = "-"
    template_id: str = "-"


# Decorates log records only. Service calls receive run identity explicitly.
_scope_var: contextvars.ContextVar[LogScope] = contextvars.ContextVar(
    "templatefit_log_scope", default=LogScope()
)


class _ScopeFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        scope = _scope_var.get()
        record.run_id = scope.run_id  # type: ignore[attr-defined]
        record.iteration = scope.iteration  # type: ignore[attr-defined]
        record.template_id = scope.template_id  # type: ignore[attr-defined]
        return True


@contextlib.contextmanager
def run_context(
    *,
    run_id: str | None,
    template_id: str | None = None,
    iteration: int | None = None,
) -> Iterator[LogScope]:
    """Bind a run scope for the records logged inside the block.

    Untracked runs pass ``run_id=None`` and show up as ``run=-``.
    """

    scope = LogScope(
        run_id=run_id or "-",
        iteration=str(iteration) if iteration is not None else "-",
        template_id=template_id or "-",
    )
    token = _scope_var.set(scope)
    try:
        yield scope
    finally:
        _scope_var.reset(token)


def set_iteration(iteration: int) -> None:
    """Advance the iteration shown by the current scope."""

    _scope_var.set(replace(_scope_var.get(), iteration=str(iteration)))


def current_scope() -> LogScope:
    return _scope_var.get()


def configure_logging(level: str = "INFO") -> None:
    """Install a rich console handler on the root logger.

    Safe to call repeatedly (CLI and app factory both call it); an existing rich handler
    is reconfigured instead of duplicated.
    """

    formatter = logging.Formatter(
        fmt="%(levelname)s run=%(run_id)s iter=%(iteration)s tpl=%(template_id)s "
        "%(name)s: %(message)s",
    )

    root = logging.getLogger()
    root.setLevel(level)

    handler = next((h for h in root.handlers if isinstance(h, RichHandler)), None)
    if handler is None:
        handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=False)
        root.addHandler(handler)
    if not any(isinstance(f, _ScopeFilter) for f in handler.filters):
        handler.addFilter(_ScopeFilter())
    handler.setFormatter(formatter)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""

    return logging.getLogger(name)


def log_exception(logger: logging.Logger, msg: str, **context: Any) -> None:
    """Log the active exception with structured context."""

    if context:
        logger.exception("%s | context=%s", msg, context)
    else:
        logger.exception("%s", msg)
