import json
from typing import Any

from docbridge.models import Period, ToolResult
from docbridge.tools.base import Tool, ToolContext, choice

ACTIONS = ("balance", "usage")
PERIODS = tuple(p.value for p in Period)


class CheckCredits(Tool):
    name = "nutrient_check_credits"
    label = "Check Credits"
    description = (
        "Check Nutrient DWS API credit balance and usage from the local usage ledger. "
        "'balance' returns remaining credits and this week's totals. "
        "'usage' returns consumption broken down by operation for a time period."
    )
    parameters = {
        "type": "object",
        "required": ["action"],
        "properties": {
            "action": {
                "type": "string",
                "enum": list(ACTIONS),
                "description": "'balance' returns remaining credits. 'usage' returns the breakdown by operation.",
            },
            "period": {
                "type": "string",
                "enum": list(PERIODS),
                "default": "week",
                "description": "Time period for usage queries (default: 'week')",
            },
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        action = choice(args, "action", ACTIONS)

        if action == "balance":
            balance = ctx.ledger.latest_balance()
            week = ctx.ledger.usage(Period.WEEK)
            report = {
                "remaining": balance.remaining if balance else None,
                "as_of": balance.as_of if balance else None,
                "used_this_week": week.total_cost,
                "operations_this_week": week.total_operations,
            }
            return ToolResult(success=True, output=json.dumps(report, indent=2))

        period = choice(args, "period", PERIODS, default="week")
        summary = ctx.ledger.usage(period)
        return ToolResult(success=True, output=json.dumps(summary.to_dict(), indent=2))
