"""Request-scoped logging context.

Values bound here live in structlog's context variables, which
``setup_logging`` merges into every log line via ``merge_contextvars``.
They follow the current asyncio task, so concurrent retrievals for
different sessions never see each other's context.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind ``values`` onto every log line emitted inside the block.

    ``None`` values are dropped so optional identifiers don't clutter output.
    Previously bound values are restored on exit.
    """
    bound = {key: value for key, value in values.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def get_log_context() -> dict[str, Any]:
    """Copy of the values currently bound for this task."""
    return dict(structlog.contextvars.get_contextvars())


def update_log_context(**values: Any) -> None:
    structlog.contextvars.bind_contextvars(**values)


def clear_log_context() -> None:
    structlog.contextvars.clear_contextvars()
