# =============================================================================
# EVMOS UPGRADE HELPER
# Module: main.py
# Purpose: CLI entry point
# =============================================================================
#
# USAGE:
# python main.py generate-proposal --network testnet \
#     --previous-version v15.0.0 --target-version v16.0.0-rc1
# python main.py generate-command [--config proposal-Testnet-v16.0.0-rc1.json]
#
# OUTPUT:
# generate-proposal writes proposal-{Network}-{version}.md and .json
# generate-command writes proposal-{Network}-{version}.sh
#
# ENVIRONMENT (.env supported):
# OPENAI_API_KEY  required for generate-proposal
# GITHUB_TOKEN    optional, raises the GitHub API rate limit
#
# =============================================================================

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from clients.chain_client import ChainRestClient
from clients.discussion import check_discussion_link
from clients.github_client import GitHubReleaseClient
from clients.keyring import EvmosdKeyring
from clients.openai_client import OpenAICompletionClient
from core.release_summarizer import ModelRegistry, ReleaseSummarizer
from core.schedule import format_upgrade_time, is_valid_upgrade_time, parse_upgrade_time, planned_upgrade_time
from core.versions import is_valid_version, is_valid_version_for_network
from models.data_models import UpgradeConfig
from proposals.assembler import ProposalAssembler
from proposals.command_generator import CommandGenerator, choose_by_name, first_candidate
from proposals.renderer import TemplateRenderer
from proposals.storage import FileWriter, find_config, read_config, write_config
from shared.enums import Network
from shared.exceptions import ConfigurationError, UpgradeHelperError
from shared.logging_config import setup_logging
from shared.settings import HelperSettings, load_settings

logger = logging.getLogger("upgrade_helper")

PROJECT_ROOT = Path(__file__).parent


def _network(value: str) -> Network:
    try:
        return Network.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _upgrade_time(value: str) -> datetime:
    try:
        return parse_upgrade_time(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid upgrade time: {value} (expected YYYY-MM-DD or ISO 8601)"
        )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with both subcommands."""
    parser = argparse.ArgumentParser(
        prog="upgrade-helper",
        description="Evmos Upgrade Helper - Prepare software upgrade proposals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  upgrade-helper generate-proposal --network mainnet --previous-version v15.0.0 --target-version v16.0.0
  upgrade-helper generate-proposal --network testnet --previous-version v15.0.0 \\
      --target-version v16.0.0-rc1 --upgrade-time 2024-01-17
  upgrade-helper generate-command --discussion-link https://commonwealth.im/evmos/discussion/123
  upgrade-helper generate-command --config proposal-Testnet-v16.0.0-rc1.json --key dev0

Note: The command is only written to a script. Nothing is signed or broadcast.
        """,
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings YAML (default: config/upgrade_helper.yaml)",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    proposal = subparsers.add_parser(
        "generate-proposal",
        parents=[common],
        help="Write the proposal description and upgrade config",
    )
    proposal.add_argument(
        "--network",
        type=_network,
        required=True,
        help="local-node, testnet or mainnet",
    )
    proposal.add_argument(
        "--previous-version",
        required=True,
        help="Version running on the network now (e.g. v15.0.0)",
    )
    proposal.add_argument(
        "--target-version",
        required=True,
        help="Version to upgrade to (testnet: -rcN required, mainnet: no -rc)",
    )
    proposal.add_argument(
        "--upgrade-time",
        type=_upgrade_time,
        default=None,
        help="Upgrade time, YYYY-MM-DD (16:00 UTC) or ISO 8601 (default: after voting ends)",
    )
    proposal.add_argument(
        "--model",
        default=None,
        help="Completion model for the release summary (default from settings)",
    )
    proposal.add_argument(
        "--home",
        type=Path,
        default=None,
        help="evmosd home holding the keyring (default depends on network)",
    )
    proposal.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for the generated files (default: current directory)",
    )

    command = subparsers.add_parser(
        "generate-command",
        parents=[common],
        help="Write the evmosd submission command for a generated proposal",
    )
    command.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Upgrade config JSON (default: the single proposal-*.json in the current directory)",
    )
    command.add_argument(
        "--discussion-link",
        default=None,
        help="Commonwealth discussion link (required for mainnet)",
    )
    command.add_argument(
        "--key",
        default=None,
        help="Signing key name to use if several keys are eligible",
    )

    return parser


def _load_env() -> None:
    env_file = PROJECT_ROOT / ".env"
    if env_file.exists():
        load_dotenv(env_file)
    load_dotenv()


# =============================================================================
# GENERATE PROPOSAL
# =============================================================================

def generate_proposal(args: argparse.Namespace, settings: HelperSettings) -> List[Path]:
    """
    Assemble the proposal and write the .md and .json artifacts.

    Returns:
        Paths of the written files
    """
    network: Network = args.network

    if not is_valid_version(args.previous_version):
        raise ConfigurationError(f"Invalid previous version: {args.previous_version}")
    if not is_valid_version_for_network(network, args.target_version):
        raise ConfigurationError(
            f"Invalid target version for {network.display_name}: {args.target_version}"
        )

    upgrade_time = args.upgrade_time or planned_upgrade_time(
        network.voting_period, datetime.now(timezone.utc)
    )
    if not is_valid_upgrade_time(upgrade_time):
        raise ConfigurationError(
            f"Upgrade time falls on a weekend: {format_upgrade_time(upgrade_time)}"
        )
    logger.info(f"Planned upgrade time: {format_upgrade_time(upgrade_time)}")

    model = args.model or settings.default_model
    registry = ModelRegistry(settings.allowed_models)
    registry.validate(model)

    releases = GitHubReleaseClient(
        owner=settings.github_owner,
        repo=settings.github_repo,
        timeout=settings.request_timeout,
    )
    blocks = ChainRestClient(
        network,
        sample_points=settings.sample_points,
        timeout=settings.request_timeout,
    )
    summarizer = ReleaseSummarizer(
        OpenAICompletionClient(),
        registry=registry,
        max_note_chars=settings.max_note_chars,
        base_delay=settings.summary_base_delay,
        max_delay=settings.summary_max_delay,
    )
    renderer = TemplateRenderer(
        github_owner=settings.github_owner,
        github_repo=settings.github_repo,
    )

    assembler = ProposalAssembler(
        network,
        args.previous_version,
        releases,
        blocks,
        summarizer,
        renderer=renderer,
        block_window=settings.block_window,
        summary_attempts=settings.summary_max_attempts,
        author=settings.author,
    )
    document = assembler.assemble(args.target_version, upgrade_time, model, settings.rounding_unit)

    config = UpgradeConfig(
        network=network,
        previous_version=args.previous_version,
        target_version=args.target_version,
        upgrade_time=document.upgrade_time,
        upgrade_height=document.upgrade_height,
        summary=document.summary,
        home=args.home or network.default_home,
        proposal_name=document.title,
    )

    writer = FileWriter(args.output_dir)
    return [
        writer.write(config.proposal_file_name, document.rendered_markdown),
        write_config(config, writer),
    ]


# =============================================================================
# GENERATE COMMAND
# =============================================================================

def generate_command(args: argparse.Namespace, settings: HelperSettings) -> Path:
    """
    Build the submission command for a written proposal and save it as .sh.

    Returns:
        Path of the written script
    """
    config_path = args.config or find_config(Path.cwd())
    config = read_config(config_path)
    network = config.network

    if args.discussion_link:
        config = config.with_discussion_link(check_discussion_link(args.discussion_link))
    elif network == Network.MAINNET and not config.discussion_link:
        raise ConfigurationError("Mainnet proposals need --discussion-link")

    proposal_path = Path(config_path).parent / config.proposal_file_name
    try:
        description = proposal_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigurationError(f"Proposal description not found: {proposal_path}") from e

    keyring = EvmosdKeyring.from_home(config.home, binary=settings.evmosd_binary)
    releases = GitHubReleaseClient(
        owner=settings.github_owner,
        repo=settings.github_repo,
        timeout=settings.request_timeout,
    )

    generator = CommandGenerator(
        keyring=keyring,
        balances=ChainRestClient(network, timeout=settings.request_timeout),
        release_fetcher=releases,
        upgrade_info=releases,
        renderer=TemplateRenderer(
            github_owner=settings.github_owner,
            github_repo=settings.github_repo,
        ),
        keyring_backend=keyring.keyring_backend,
        min_balance=settings.min_balance,
        balance_attempts=settings.balance_attempts,
        fees=settings.fees,
        choose_key=choose_by_name(args.key) if args.key else first_candidate,
    )
    command = generator.generate(network, config, description)

    writer = FileWriter(Path(config_path).parent)
    return writer.write(config.command_file_name, command.command_text, executable=True)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    _load_env()

    try:
        settings = load_settings(args.settings)
    except ConfigurationError as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_dir=Path(settings.log_dir),
    )

    if args.command == "generate-proposal":
        try:
            written = generate_proposal(args, settings)
        except UpgradeHelperError as e:
            logger.debug("Proposal generation failed", exc_info=True)
            print(f"Error generating proposal: {e}", file=sys.stderr)
            return 1
        for path in written:
            print(f"Written: {path}")
        return 0

    try:
        written_script = generate_command(args, settings)
    except UpgradeHelperError as e:
        logger.debug("Command generation failed", exc_info=True)
        print(f"Error generating command: {e}", file=sys.stderr)
        return 1
    print(f"Written: {written_script}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
