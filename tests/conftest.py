import os
from datetime import datetime, timezone
from typing import Any, Callable

import pytest
from prometheus_client import CollectorRegistry

from docbridge.ledger import UsageLedger
from docbridge.metrics import MetricsUpdater
from docbridge.models import ApiResponse, RequestBody
from docbridge.tools.base import ToolContext


class FakeTransport:
    """
    A transport that records every call and returns a canned response
    (or raises a canned error).
    """

    def __init__(
        self,
        response: "ApiResponse | None" = None,
        error: "Exception | None" = None,
    ) -> "None":
        self.response = response or ApiResponse(
            status=200,
            data=b"%PDF-1.7 result",
            credits_used=1.0,
            credits_remaining=999.0,
        )
        self.error = error
        self.calls: "list[tuple[str, RequestBody, float | None]]" = []
        self.closed = False

    async def post(
        self,
        endpoint: "str",
        body: "RequestBody",
        timeout: "float | None" = None,
    ) -> "ApiResponse":
        self.calls.append((endpoint, body, timeout))
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self) -> "None":
        self.closed = True

    @property
    def last_call(self) -> "tuple[str, RequestBody, float | None]":
        return self.calls[-1]


class FixedClock:
    def __init__(self, now: "datetime") -> "None":
        self.now = now

    def __call__(self) -> "datetime":
        return self.now


@pytest.fixture()
def registry() -> "CollectorRegistry":
    """
    fresh Prometheus registry to avoid cross-test state.
    """
    return CollectorRegistry()


@pytest.fixture()
def sandbox(tmp_path: "Any") -> "str":
    return str(tmp_path)


@pytest.fixture()
def fixed_clock() -> "FixedClock":
    return FixedClock(datetime(2026, 3, 15, 12, 30, 0, tzinfo=timezone.utc))


@pytest.fixture()
def transport() -> "FakeTransport":
    return FakeTransport()


@pytest.fixture()
def ctx(
    sandbox: "str",
    transport: "FakeTransport",
    registry: "CollectorRegistry",
) -> "ToolContext":
    return ToolContext(
        client=transport,
        ledger=UsageLedger.in_directory(sandbox),
        metrics=MetricsUpdater(registry),
        sandbox_dir=sandbox,
    )


@pytest.fixture()
def make_file(sandbox: "str") -> "Callable[..., str]":
    """
    factory writing a file inside the sandbox and returning its name.
    """

    def _make(name: "str", content: "bytes" = b"%PDF-1.0 dummy") -> "str":
        path = os.path.join(sandbox, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
        return name

    return _make
