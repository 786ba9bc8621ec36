import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar

import structlog

from docbridge.client.base import Transport
from docbridge.errors import InvalidParameterError, format_error
from docbridge.ledger import UsageLedger
from docbridge.metrics import MetricsUpdater
from docbridge.models import ApiResponse, LedgerEntry, ToolResult

logger = structlog.get_logger()

PAGE_RANGE_SCHEMA: "dict[str, Any]" = {
    "type": "object",
    "properties": {
        "start": {"type": "integer", "description": "Start page (0-based)"},
        "end": {"type": "integer", "description": "End page (0-based, -1 = last)"},
    },
}


@dataclass
class ToolContext:
    """
    ToolContext holds the collaborators shared by every tool. It is
    created once at registration time.
    """

    client: "Transport"
    ledger: "UsageLedger"
    metrics: "MetricsUpdater"
    sandbox_dir: "str | None" = None


class Tool(ABC):
    """
    Tool is the base for every operation exposed to the host.

    Subclasses implement execute(); run() is the error boundary that
    turns any exception into a failed ToolResult and records the
    outcome in the metrics.
    """

    name: "ClassVar[str]"
    label: "ClassVar[str]"
    description: "ClassVar[str]"
    parameters: "ClassVar[dict[str, Any]]"

    @abstractmethod
    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult": ...

    async def run(self, args: "dict[str, Any] | None", ctx: "ToolContext") -> "ToolResult":
        started = time.monotonic()
        logger.info("tool_started", tool=self.name)
        try:
            result = await self.execute(dict(args or {}), ctx)
        except Exception as e:
            result = format_error(e)
            logger.warning("tool_failed", tool=self.name, error=result.error)
        else:
            logger.info(
                "tool_succeeded",
                tool=self.name,
                credits_used=result.credits_used,
            )

        ctx.metrics.observe_tool_call(
            self.name, result.success, time.monotonic() - started
        )
        return result


def require(args: "dict[str, Any]", key: "str") -> "Any":
    value = args.get(key)
    if value is None or value == "":
        raise InvalidParameterError(f"{key} is required")
    return value


def choice(
    args: "dict[str, Any]",
    key: "str",
    allowed: "tuple[str, ...]",
    default: "str | None" = None,
) -> "str":
    value = args.get(key) or default
    if value is None:
        raise InvalidParameterError(f"{key} is required")
    if value not in allowed:
        raise InvalidParameterError(
            f"{key} must be one of {', '.join(allowed)} (got {value!r})"
        )
    return value


def record_usage(
    ctx: "ToolContext", operation: "str", response: "ApiResponse"
) -> "None":
    """
    appends the ledger entry for a successful call. Missing or
    negative cost is recorded as zero.
    """
    ctx.ledger.append(
        LedgerEntry(
            operation=operation,
            cost=max(response.credits_used or 0.0, 0.0),
            remaining_balance=response.credits_remaining,
        )
    )
    ctx.metrics.record_credits(
        operation, response.credits_used, response.credits_remaining
    )
