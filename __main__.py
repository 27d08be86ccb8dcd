"""Command line entry point: `python . {command} [args]`."""

import argparse
import json
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

from figsync.config import (
    EnvVar,
    SyncSettings,
    get_available_llm_providers,
    get_environment,
    list_environment_variables,
)
from figsync.core import (
    CancellationToken,
    OperationCancelled,
    get_logger,
    setup_logging,
)
from figsync.hierarchy import build_order, collect_units
from figsync.parser import ParseError, load_document
from figsync.pipeline import SyncPipeline
from figsync.validation import GraphIntegrityError

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


# =============================================================================
# Sync Command
# =============================================================================


def _settings_from_args(args: argparse.Namespace) -> SyncSettings:
    overrides = {}
    if args.artifact_root:
        overrides["artifact_root"] = args.artifact_root
    if args.classifier:
        overrides["classifier_enabled"] = True
        overrides["classifier_model"] = args.classifier
    if args.workers:
        overrides["classifier_max_workers"] = args.workers
    return SyncSettings.from_environment(**overrides)


def cmd_sync(args: argparse.Namespace) -> int:
    """Handle the sync command."""
    settings = _settings_from_args(args)
    problems = settings.validate()
    if problems:
        for problem in problems:
            logger.error(f"Invalid settings: {problem}")
        return 1

    token = CancellationToken()
    signal.signal(signal.SIGINT, lambda *_: token.cancel())

    def on_progress(stage: str, done: float, message: str) -> None:
        logger.info(f"[{stage} {done:4.0%}] {message}")

    try:
        document = load_document(args.file, settings)
        pipeline = SyncPipeline(settings, match_by_id=args.match_by_id)
        result = pipeline.run(document, token, on_progress)
    except (ParseError, FileNotFoundError) as e:
        logger.error(f"Could not read {args.file}: {e}")
        return 1
    except GraphIntegrityError as e:
        logger.error(str(e))
        return 1
    except OperationCancelled:
        logger.warning("Sync cancelled")
        return 130

    output = {
        "build_order": result.build_order,
        "stats": result.stats.__dict__,
        "artifacts": [a.model_dump(mode="json") for a in result.artifacts],
        "document": result.document.model_dump(mode="json", exclude_none=True),
    }
    result_text = json.dumps(output, indent=2)

    if args.output:
        args.output.write_text(result_text, encoding="utf-8")
        logger.info(f"Result saved to {args.output}")
    else:
        print(result_text)

    stats = result.stats
    logger.info(
        f"Stats: {stats.nodes_classified} classified, "
        f"{stats.external_accepted}/{stats.external_requests} external, "
        f"{stats.approximations} approximation(s), "
        f"{stats.artifacts_built} artifact(s), "
        f"{stats.references_emitted} reference(s)"
    )
    return 0


def handle_sync_command(argv: list[str]) -> int:
    """Handle sync-specific arguments."""
    parser = argparse.ArgumentParser(
        prog="python . sync",
        description="Classify, lay out and build a design-file JSON export",
    )
    parser.add_argument(
        "file",
        type=Path,
        help="Design-file JSON (file endpoint response)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file path (prints to stdout if not specified)",
    )
    parser.add_argument(
        "--classifier",
        "-c",
        type=str,
        default=None,
        help="Enable the external classifier with this LLM model",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Parallel external classifier requests",
    )
    parser.add_argument(
        "--artifact-root",
        type=str,
        default=None,
        help="Prefix of artifact references (default: FIGSYNC_ARTIFACT_ROOT)",
    )
    parser.add_argument(
        "--match-by-id",
        action="store_true",
        help="Match built children to source nodes by id instead of by name",
    )
    args = parser.parse_args(argv)
    return cmd_sync(args)


# =============================================================================
# Order Command
# =============================================================================


def handle_order_command(argv: list[str]) -> int:
    """Print the build order of a design file without building it."""
    parser = argparse.ArgumentParser(
        prog="python . order",
        description="Show the tiered build order of a design-file JSON export",
    )
    parser.add_argument("file", type=Path, help="Design-file JSON")
    args = parser.parse_args(argv)

    try:
        document = load_document(args.file, SyncSettings.from_environment())
    except (ParseError, FileNotFoundError) as e:
        logger.error(f"Could not read {args.file}: {e}")
        return 1

    for tier_units in build_order(collect_units(document)):
        tier = tier_units[0].tier
        print(f"{tier.name.title()} ({len(tier_units)})")
        for unit in tier_units:
            marker = " [component]" if unit.is_definition else ""
            print(f"  {unit.id:<12} {unit.node.name}{marker}")
    return 0


# =============================================================================
# Environment Command
# =============================================================================


def handle_env_command(argv: list[str]) -> int:
    """List configuration variables and their resolved values."""
    parser = argparse.ArgumentParser(
        prog="python . env",
        description="Show figsync configuration variables",
    )
    parser.add_argument(
        "--category",
        type=str,
        default=None,
        choices=["sync", "classifier", "llm", "logging"],
        help="Only show one category",
    )
    args = parser.parse_args(argv)

    for var in list_environment_variables(args.category):
        config = var.value
        value = get_environment(var)
        if config.name.endswith("_API_KEY") and value:
            value = "********"
        print(f"{config.name:<30} {value!s:<30} {config.description}")
    return 0


def cmd_list_models(_argv: list[str]) -> int:
    """List known LLM models and which providers are reachable."""
    from figsync.llm import LLMModel, LLMProviderType

    available = get_available_llm_providers()
    logger.info("Available LLM Models:")
    for provider in LLMProviderType:
        models = LLMModel.for_provider(provider)
        if models:
            status = "ready" if provider.value in available else "unavailable"
            logger.info(f"\n  {provider.value} ({status}):")
            for model in models:
                spec = model.spec
                logger.info(f"    {spec.name:<20} {spec.description}")
    return 0


# =============================================================================
# Development Commands
# =============================================================================

# Test tier flag -> pytest marker expression
TEST_TIERS = {
    "--unit": "unit",
    "--integration": "integration",
}


def cmd_test(extra_args: list[str]) -> int:
    """Run pytest, translating tier flags into marker selections.

    `python . dev test --unit -k spacer` runs the unit tests matching "spacer".
    `--integration` selects the tests that spawn the CLI or reach providers.
    """
    markers = [TEST_TIERS[arg] for arg in extra_args if arg in TEST_TIERS]
    passthrough = [arg for arg in extra_args if arg not in TEST_TIERS]
    selection = ["-m", " or ".join(markers)] if markers else []

    cmd = [sys.executable, "-m", "pytest", *selection, *passthrough]
    logger.info(f"Running: {' '.join(cmd)}")
    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        return 130


DEV_COMMANDS = {
    "test": (cmd_test, "Run pytest (--unit, --integration, any pytest args)"),
    "models": (cmd_list_models, "List LLM models for the external classifier"),
}


def handle_dev_command(argv: list[str]) -> int:
    """Dispatch `python . dev {command}`."""
    if argv and argv[0] in DEV_COMMANDS:
        handler, _ = DEV_COMMANDS[argv[0]]
        return handler(argv[1:])

    if argv:
        logger.error(f"Unknown dev command: {argv[0]}")
    print("Usage: python . dev {command} [args]\n")
    for name, (_, summary) in DEV_COMMANDS.items():
        print(f"  {name:<10} {summary}")
    return 1


# =============================================================================
# Entry Point
# =============================================================================

COMMANDS = {
    "sync": (handle_sync_command, "Classify, lay out and build a design file"),
    "order": (handle_order_command, "Show the tiered build order of a design file"),
    "env": (handle_env_command, "Show configuration variables"),
    "dev": (handle_dev_command, "Development workflows (test, models)"),
}

EXAMPLES = [
    "python . sync app.json -o app.sync.json",
    "python . sync app.json --classifier gpt-4.1-nano -w 8",
    "python . order app.json",
    "python . env --category classifier",
]


def show_help() -> None:
    print("Usage: python . {command} [args]\n")
    for name, (_, summary) in COMMANDS.items():
        print(f"  {name:<10} {summary}")
    print("\nExamples:")
    for example in EXAMPLES:
        print(f"  {example}")


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help"):
        show_help()
        return 0 if argv else 1

    command, rest = argv[0], argv[1:]
    if command not in COMMANDS:
        logger.error(f"Unknown command: {command}")
        show_help()
        return 1

    setup_logging(get_environment(EnvVar.FIGSYNC_LOG_LEVEL))
    handler, _ = COMMANDS[command]
    return handler(rest)


if __name__ == "__main__":
    sys.exit(main())
