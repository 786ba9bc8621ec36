import argparse
import json

from docbridge.config import Config


def _json_object(value: "str") -> "dict":
    try:
        parsed = json.loads(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise argparse.ArgumentTypeError("tool arguments must be a JSON object")
    return parsed


def build_parser() -> "argparse.ArgumentParser":
    parser = argparse.ArgumentParser(
        prog="docbridge",
        description="Nutrient DWS document tools for AI agents",
    )
    parser.add_argument(
        "--sandbox-dir",
        dest="sandbox_dir",
        default=None,
        help="Confine all file paths to this directory (default: $NUTRIENT_SANDBOX_DIR)",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: warning)",
    )
    parser.add_argument(
        "--metrics.textfile",
        dest="metrics_textfile",
        default="",
        help="Write Prometheus metrics to this file when the command finishes",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="List the available tools")

    run = commands.add_parser("run", help="Run a single tool")
    run.add_argument("tool", help="Tool name, e.g. nutrient_convert_to_pdf")
    run.add_argument(
        "--args",
        dest="tool_args",
        type=_json_object,
        default={},
        help="Tool arguments as a JSON object",
    )
    return parser


def parse_args(
    argv: "list[str] | None" = None,
) -> "tuple[Config, argparse.Namespace]":
    args = build_parser().parse_args(argv)
    config = Config.from_env()
    if args.sandbox_dir is not None:
        config.sandbox_dir = args.sandbox_dir
    config.log_level = args.log_level
    config.metrics_textfile = args.metrics_textfile
    return config, args
