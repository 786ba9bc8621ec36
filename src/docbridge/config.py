import os
from dataclasses import dataclass

VERSION = "0.1.0"
DEFAULT_API_BASE = "https://api.nutrient.io"


@dataclass
class Config:
    api_key: "str" = ""
    # directory all tool paths are confined to; empty means no sandbox
    sandbox_dir: "str" = ""
    api_base: "str" = DEFAULT_API_BASE
    log_level: "str" = "info"
    # when set, the CLI writes Prometheus metrics to this file on exit
    metrics_textfile: "str" = ""

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            api_key=os.environ.get("NUTRIENT_API_KEY", ""),
            sandbox_dir=os.environ.get("NUTRIENT_SANDBOX_DIR", ""),
            api_base=os.environ.get("NUTRIENT_API_BASE", "") or DEFAULT_API_BASE,
        )

    @property
    def api_key_configured(self) -> "bool":
        return bool(self.api_key)
