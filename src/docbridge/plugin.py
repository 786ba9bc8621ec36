from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol

import structlog
from prometheus_client import REGISTRY, CollectorRegistry

from docbridge.client.base import Transport
from docbridge.client.dws import DwsClient, UnconfiguredClient
from docbridge.config import VERSION, Config
from docbridge.ledger import UsageLedger
from docbridge.metrics import MetricsUpdater
from docbridge.models import ToolResult
from docbridge.tools.base import Tool, ToolContext
from docbridge.tools.convert import ConvertToImage, ConvertToOffice, ConvertToPdf
from docbridge.tools.credits import CheckCredits
from docbridge.tools.extract import ExtractText
from docbridge.tools.ocr import Ocr
from docbridge.tools.redact import AiRedact, Redact
from docbridge.tools.sign import Sign
from docbridge.tools.watermark import Watermark

logger = structlog.get_logger()

TOOL_CLASSES: "list[type[Tool]]" = [
    ConvertToPdf,
    ConvertToImage,
    ConvertToOffice,
    ExtractText,
    Ocr,
    Watermark,
    Redact,
    AiRedact,
    Sign,
    CheckCredits,
]


class ToolHost(Protocol):
    """
    the agent host docbridge registers its tools with.
    """

    def register_tool(
        self,
        *,
        name: "str",
        label: "str",
        description: "str",
        parameters: "dict[str, Any]",
        execute: "Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]",
    ) -> "None": ...


@dataclass(frozen=True, slots=True)
class PluginInfo:
    name: "str"
    version: "str"


def make_client(config: "Config") -> "Transport":
    """
    builds the DWS client, or a stand-in that fails on first use when
    no API key is configured.
    """
    if config.api_key_configured:
        return DwsClient(api_key=config.api_key, base_url=config.api_base)
    logger.warning("api_key_missing")
    return UnconfiguredClient()


class Toolkit:
    """
    Toolkit binds every tool to one shared ToolContext.
    """

    def __init__(self, ctx: "ToolContext") -> "None":
        self.ctx = ctx
        self._tools: "dict[str, Tool]" = {cls.name: cls() for cls in TOOL_CLASSES}

    @classmethod
    def from_config(
        cls,
        config: "Config",
        registry: "CollectorRegistry" = REGISTRY,
    ) -> "Toolkit":
        sandbox_dir = config.sandbox_dir or None
        ctx = ToolContext(
            client=make_client(config),
            ledger=UsageLedger.in_directory(sandbox_dir),
            metrics=MetricsUpdater(registry),
            sandbox_dir=sandbox_dir,
        )
        return cls(ctx)

    def names(self) -> "list[str]":
        return list(self._tools)

    def tools(self) -> "list[Tool]":
        return list(self._tools.values())

    def get(self, name: "str") -> "Tool":
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(f"unknown tool: {name}") from None

    async def run(self, name: "str", args: "dict[str, Any] | None" = None) -> "ToolResult":
        return await self.get(name).run(args, self.ctx)

    async def close(self) -> "None":
        await self.ctx.client.close()


def register(
    host: "ToolHost",
    plugin_config: "Mapping[str, Any] | None" = None,
    registry: "CollectorRegistry" = REGISTRY,
) -> "PluginInfo":
    """
    registers all tools with host. Values in plugin_config (api_key,
    sandbox_dir) take precedence over the environment. A missing API
    key does not prevent registration; tools report it when called.
    """
    plugin_config = plugin_config or {}
    config = Config.from_env()
    if plugin_config.get("api_key"):
        config.api_key = str(plugin_config["api_key"])
    if plugin_config.get("sandbox_dir"):
        config.sandbox_dir = str(plugin_config["sandbox_dir"])

    toolkit = Toolkit.from_config(config, registry)

    for tool in toolkit.tools():
        host.register_tool(
            name=tool.name,
            label=tool.label,
            description=tool.description,
            parameters=tool.parameters,
            execute=_executor(toolkit, tool.name),
        )
        logger.debug("tool_registered", tool=tool.name)

    return PluginInfo(name="nutrient", version=VERSION)


def _executor(
    toolkit: "Toolkit", name: "str"
) -> "Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]":
    async def execute(args: "dict[str, Any]") -> "dict[str, Any]":
        result = await toolkit.run(name, args)
        return result.to_dict()

    return execute
