import enum
import json
import math
import os
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Protocol

from docbridge.models import Balance, LedgerEntry, OperationUsage, Period, UsageSummary

LEDGER_FILENAME = ".docbridge-usage.jsonl"
EPOCH = "1970-01-01T00:00:00.000Z"

Clock = Callable[[], datetime]


def utc_now() -> "datetime":
    return datetime.now(timezone.utc)


def format_timestamp(moment: "datetime") -> "str":
    """
    formats an instant as UTC ISO-8601 with millisecond precision so
    stored timestamps compare correctly as plain strings.
    """
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def round2(value: "float") -> "float":
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class AppendResult(enum.Enum):
    WRITTEN = "written"
    # the write failed and was dropped on purpose
    FAILED = "failed"


class LedgerStore(Protocol):
    """
    LedgerStore is the durable backing of the ledger: an append-only
    sequence of text lines.
    """

    def append_line(self, line: "str") -> "None": ...

    def read_lines(self) -> "list[str]": ...


class JsonlFileStore:
    """
    JsonlFileStore keeps one record per line in a local file. Each
    record goes out in a single write on a file opened in append
    mode, so concurrent appenders never interleave inside a line.
    """

    def __init__(self, path: "str") -> "None":
        self.path = path

    def append_line(self, line: "str") -> "None":
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def read_lines(self) -> "list[str]":
        if not os.path.exists(self.path):
            return []
        with open(self.path, encoding="utf-8") as f:
            return f.read().splitlines()


def _parse_entry(line: "str") -> "LedgerEntry | None":
    try:
        raw = json.loads(line)
        operation = raw["operation"]
        timestamp = raw["timestamp"]
        if not isinstance(operation, str) or not isinstance(timestamp, str):
            return None
        # json.loads accepts Infinity, NaN and overflowing literals like 1e400
        cost = float(raw.get("cost") or 0)
        if not math.isfinite(cost) or cost < 0:
            return None
        remaining = raw.get("remaining_balance")
        if remaining is not None:
            remaining = float(remaining)
            if not math.isfinite(remaining):
                return None
        return LedgerEntry(
            operation=operation,
            cost=cost,
            remaining_balance=remaining,
            timestamp=timestamp,
        )
    except (ValueError, TypeError, KeyError):
        return None


class UsageLedger:
    """
    UsageLedger is the append-only record of billable calls.

    Every public method is total: write failures turn into
    AppendResult.FAILED and read failures into an empty ledger. Usage
    tracking is a side channel and must never break the tool call
    that triggered it.
    """

    def __init__(
        self,
        store: "LedgerStore",
        clock: "Clock" = utc_now,
    ) -> "None":
        self._store = store
        self._clock = clock

    @classmethod
    def in_directory(
        cls, directory: "str | None" = None, clock: "Clock" = utc_now
    ) -> "UsageLedger":
        """
        creates a ledger backed by the JSONL file inside directory,
        or inside the current working directory when none is given.
        """
        base = directory or os.getcwd()
        return cls(JsonlFileStore(os.path.join(base, LEDGER_FILENAME)), clock)

    def append(self, entry: "LedgerEntry") -> "AppendResult":
        record = entry.to_dict()
        if not entry.timestamp:
            record["timestamp"] = format_timestamp(self._clock())

        try:
            self._store.append_line(json.dumps(record))
        except Exception:
            return AppendResult.FAILED
        return AppendResult.WRITTEN

    def entries(self) -> "list[LedgerEntry]":
        """
        reads every parsable entry in append order. Corrupt lines
        are skipped one by one.
        """
        try:
            lines = self._store.read_lines()
        except Exception:
            return []

        entries: "list[LedgerEntry]" = []
        for line in lines:
            if not line.strip():
                continue
            entry = _parse_entry(line)
            if entry is not None:
                entries.append(entry)
        return entries

    def latest_balance(self) -> "Balance | None":
        for entry in reversed(self.entries()):
            if entry.remaining_balance is not None:
                return Balance(remaining=entry.remaining_balance, as_of=entry.timestamp)
        return None

    def resolve_period(self, period: "Period | str") -> "tuple[str, str]":
        """
        turns a period name into a [start, end] range of timestamps
        anchored at the current clock reading. "month" is a trailing
        30 day window, not a calendar month.
        """
        period = Period(period)
        now = self._clock()
        end = format_timestamp(now)

        if period is Period.DAY:
            local_midnight = now.astimezone().replace(
                hour=0, minute=0, second=0, microsecond=0
            )
            return format_timestamp(local_midnight), end
        if period is Period.WEEK:
            return format_timestamp(now - timedelta(days=7)), end
        if period is Period.MONTH:
            return format_timestamp(now - timedelta(days=30)), end
        return EPOCH, end

    def usage(self, period: "Period | str") -> "UsageSummary":
        start, end = self.resolve_period(period)
        filtered = [e for e in self.entries() if start <= e.timestamp <= end]

        # dicts keep insertion order, so ties stay in first-seen order
        groups: "dict[str, list[float]]" = {}
        for entry in filtered:
            groups.setdefault(entry.operation, []).append(entry.cost)

        breakdown = [
            OperationUsage(
                operation=operation,
                count=len(costs),
                cost=round2(sum(costs)),
                avg_cost=round2(sum(costs) / len(costs)),
            )
            for operation, costs in groups.items()
        ]
        breakdown.sort(key=lambda b: b.cost, reverse=True)

        return UsageSummary(
            start=start,
            end=end,
            total_cost=round2(sum(e.cost for e in filtered)),
            total_operations=len(filtered),
            breakdown=breakdown,
        )
