import enum
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class LocalFile:
    content: "bytes"
    # absolute path the content was read from
    path: "str"


@dataclass(frozen=True, slots=True)
class FileReference:
    """
    FileReference represents one input of a request, either as
    bytes read from a local file or as a remote URL the document
    service fetches itself. Exactly one of local/url is set.
    """

    # safe to use as a multipart field name and inside instructions
    key: "str"
    name: "str"
    local: "LocalFile | None" = None
    url: "str | None" = None

    def __post_init__(self) -> "None":
        if (self.local is None) == (self.url is None):
            raise ValueError("FileReference needs exactly one of local or url")

    @property
    def is_remote(self) -> "bool":
        return self.url is not None

    @property
    def pointer(self) -> "str":
        """
        the token instructions use to point at this file: the URL
        literal for remote files, the key otherwise.
        """
        return self.url if self.url is not None else self.key


@dataclass(frozen=True, slots=True)
class JsonBody:
    payload: "Any"


@dataclass(frozen=True, slots=True)
class MultipartFile:
    field: "str"
    filename: "str"
    content: "bytes"


@dataclass(frozen=True, slots=True)
class MultipartBody:
    # plain text form fields (serialized JSON documents)
    fields: "dict[str, str]"
    files: "tuple[MultipartFile, ...]" = ()


RequestBody = Union[JsonBody, MultipartBody]


@dataclass(frozen=True, slots=True)
class ApiResponse:
    status: "int"
    # bytes for binary results, str for JSON-typed responses
    data: "bytes | str"
    headers: "dict[str, str]" = field(default_factory=dict)
    credits_used: "float | None" = None
    credits_remaining: "float | None" = None


class Period(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """
    LedgerEntry is one immutable line of the usage ledger.
    """

    # free-form name of the tool that produced the entry
    operation: "str"
    cost: "float" = 0.0
    # balance reported by the service for this call, if any
    remaining_balance: "float | None" = None
    # ISO-8601 UTC instant, filled in at append time when missing
    timestamp: "str | None" = None

    def to_dict(self) -> "dict[str, Any]":
        return {
            "operation": self.operation,
            "cost": self.cost,
            "remaining_balance": self.remaining_balance,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class Balance:
    remaining: "float"
    as_of: "str"


@dataclass(frozen=True, slots=True)
class OperationUsage:
    operation: "str"
    count: "int"
    cost: "float"
    avg_cost: "float"


@dataclass(frozen=True, slots=True)
class UsageSummary:
    start: "str"
    end: "str"
    total_cost: "float"
    total_operations: "int"
    breakdown: "list[OperationUsage]"

    def to_dict(self) -> "dict[str, Any]":
        return {
            "period": {"start": self.start, "end": self.end},
            "total_cost": self.total_cost,
            "total_operations": self.total_operations,
            "breakdown": [
                {
                    "operation": b.operation,
                    "count": b.count,
                    "cost": b.cost,
                    "avg_cost": b.avg_cost,
                }
                for b in self.breakdown
            ],
        }


@dataclass(frozen=True, slots=True)
class ToolResult:
    """
    ToolResult is the uniform shape every tool hands back to the host.
    """

    success: "bool"
    output: "str | None" = None
    error: "str | None" = None
    credits_used: "float | None" = None

    def to_dict(self) -> "dict[str, Any]":
        result: "dict[str, Any]" = {"success": self.success}
        if self.output is not None:
            result["output"] = self.output
        if self.error is not None:
            result["error"] = self.error
        if self.credits_used is not None:
            result["credits_used"] = self.credits_used
        return result
