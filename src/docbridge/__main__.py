import asyncio
import json
import sys

import structlog
from prometheus_client import CollectorRegistry, write_to_textfile

from docbridge.cli import parse_args
from docbridge.logging import setup_logging
from docbridge.models import ToolResult
from docbridge.plugin import Toolkit

logger = structlog.get_logger()


async def _run_tool(toolkit: "Toolkit", name: "str", args: "dict") -> "ToolResult":
    try:
        return await toolkit.run(name, args)
    finally:
        await toolkit.close()


def main(argv: "list[str] | None" = None) -> "int":
    config, args = parse_args(argv)
    setup_logging(config.log_level)

    registry = CollectorRegistry()
    toolkit = Toolkit.from_config(config, registry)

    if args.command == "list":
        for tool in toolkit.tools():
            print(f"{tool.name}\t{tool.description}")
        return 0

    if args.tool not in toolkit.names():
        print(f"unknown tool: {args.tool}", file=sys.stderr)
        return 2

    result = asyncio.run(_run_tool(toolkit, args.tool, args.tool_args))
    print(json.dumps(result.to_dict(), indent=2))

    if config.metrics_textfile:
        write_to_textfile(config.metrics_textfile, registry)
        logger.info("metrics_written", path=config.metrics_textfile)

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
