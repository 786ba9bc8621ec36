from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram


class MetricsUpdater:
    """
    records tool outcomes, durations and credit consumption as
    Prometheus metrics.
    """

    def __init__(self, registry: "CollectorRegistry" = REGISTRY) -> "None":
        self.registry: "CollectorRegistry" = registry
        self._tool_calls: "Counter" = Counter(
            "docbridge_tool_calls_total",
            "Total tool invocations by tool and outcome",
            ["tool", "outcome"],
            registry=registry,
        )
        self._credits_used: "Counter" = Counter(
            "docbridge_credits_used_total",
            "Total credits consumed by operation",
            ["operation"],
            registry=registry,
        )
        self._remaining_credits: "Gauge" = Gauge(
            "docbridge_remaining_credits",
            "Last credit balance reported by the document service",
            registry=registry,
        )
        self._tool_duration: "Histogram" = Histogram(
            "docbridge_tool_duration_seconds",
            "Duration of tool invocations",
            ["tool"],
            registry=registry,
        )

    def observe_tool_call(
        self, tool: "str", success: "bool", duration_seconds: "float"
    ) -> "None":
        outcome = "success" if success else "error"
        self._tool_calls.labels(tool=tool, outcome=outcome).inc()
        self._tool_duration.labels(tool=tool).observe(duration_seconds)

    def record_credits(
        self,
        operation: "str",
        used: "float | None",
        remaining: "float | None",
    ) -> "None":
        """
        counts credits used by an operation and tracks the latest
        reported balance. Either value may be missing.
        """
        if used is not None and used > 0:
            self._credits_used.labels(operation=operation).inc(used)
        if remaining is not None:
            self._remaining_credits.set(remaining)
