# =============================================================================
# EVMOS UPGRADE HELPER - SUBMISSION COMMAND GENERATOR
# =============================================================================
#
# Produces the evmosd command that submits the upgrade proposal.
#
# STEPS:
#   LIST_KEYS        keyring keys with addresses
#   LOOKUP_BALANCES  native balance per key, transient errors retried
#   SELECT_KEY       ranking via core.key_selector, choice via a callable
#   FETCH_ASSETS     release binaries + checksums -> upgrade info JSON
#   RENDER           command template
#
# Each failure is raised as CommandStepError naming the step. The command
# is returned, never written; the .sh file is the caller's job.
#
# =============================================================================

import logging
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from clients.base import BalanceLookup, KeyringReader, ReleaseFetcher, UpgradeInfoSource
from core.key_selector import select_keys
from models.data_models import KeyEntry, SigningKey, SubmissionCommand, UpgradeConfig
from proposals.renderer import TemplateRenderer
from shared.enums import CommandStep, Network
from shared.exceptions import (
    BalanceLookupFailedError,
    CommandStepError,
    ConfigurationError,
    KeySelectionError,
    TransientError,
    UpgradeHelperError,
)

logger = logging.getLogger(__name__)

DEFAULT_FEES = "10000000000aevmos"

KeyChooser = Callable[[Sequence[SigningKey]], SigningKey]


def first_candidate(candidates: Sequence[SigningKey]) -> SigningKey:
    """Default chooser: the best ranked key."""
    return candidates[0]


def choose_by_name(name: str) -> KeyChooser:
    """Chooser that picks the eligible key with the given name."""

    def _choose(candidates: Sequence[SigningKey]) -> SigningKey:
        for key in candidates:
            if key.name == name:
                return key
        eligible = ", ".join(k.name for k in candidates)
        raise KeySelectionError(f"Key '{name}' is not eligible. Eligible keys: {eligible}")

    return _choose


class CommandGenerator:
    """Builds the SubmissionCommand for a persisted upgrade configuration."""

    def __init__(
        self,
        keyring: KeyringReader,
        balances: BalanceLookup,
        release_fetcher: ReleaseFetcher,
        upgrade_info: UpgradeInfoSource,
        renderer: Optional[TemplateRenderer] = None,
        keyring_backend: str = "os",
        min_balance: Decimal = Decimal("1"),
        balance_attempts: int = 3,
        fees: str = DEFAULT_FEES,
        choose_key: KeyChooser = first_candidate,
    ):
        """
        Initialize the generator.

        Args:
            keyring: Lists the signing keys
            balances: Balance lookups on the target network
            release_fetcher: Looks up the target release
            upgrade_info: Turns the release into --upgrade-info JSON
            renderer: Command template renderer
            keyring_backend: Value passed as --keyring-backend
            min_balance: Minimum balance for a key to be eligible
            balance_attempts: Attempts per balance lookup (>= 1)
            fees: Value passed as --fees
            choose_key: Picks one key out of several eligible ones
        """
        self.keyring = keyring
        self.balances = balances
        self.release_fetcher = release_fetcher
        self.upgrade_info = upgrade_info
        self.renderer = renderer or TemplateRenderer()
        self.keyring_backend = keyring_backend
        self.min_balance = min_balance
        self.balance_attempts = max(1, balance_attempts)
        self.fees = fees
        self.choose_key = choose_key

    def _balance(self, key: KeyEntry, network: Network) -> Decimal:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.balance_attempts + 1):
            try:
                return self.balances.balance_of(key.address, network)
            except TransientError as e:
                last_error = e
                logger.warning(
                    f"Balance lookup for '{key.name}' failed "
                    f"(attempt {attempt}/{self.balance_attempts}): {e}"
                )
            except UpgradeHelperError as e:
                raise BalanceLookupFailedError(key.name, e) from e
        raise BalanceLookupFailedError(key.name, last_error)

    def _signing_keys(self, keys: List[KeyEntry], network: Network) -> List[SigningKey]:
        return [
            SigningKey(
                name=key.name,
                address=key.address,
                balance=self._balance(key, network),
                denom=network.denom,
            )
            for key in keys
        ]

    def generate(
        self,
        network: Network,
        config: UpgradeConfig,
        description: str,
    ) -> SubmissionCommand:
        """
        Generate the submission command.

        Args:
            network: Network the proposal is submitted to
            config: Upgrade configuration written with the proposal
            description: Proposal Markdown used as --description

        Returns:
            SubmissionCommand with the text and the signing key

        Raises:
            ConfigurationError: If config belongs to another network
            CommandStepError: Wrapping the failing step's error
        """
        if config.network != network:
            raise ConfigurationError(
                f"Upgrade config is for {config.network.display_name}, not {network.display_name}"
            )

        step = CommandStep.LIST_KEYS
        try:
            keys = self.keyring.list_keys()

            step = CommandStep.LOOKUP_BALANCES
            signing_keys = self._signing_keys(keys, network)

            step = CommandStep.SELECT_KEY
            candidates = select_keys(signing_keys, network, self.min_balance)
            chosen = candidates[0] if len(candidates) == 1 else self.choose_key(candidates)
            logger.info(
                f"Signing with key '{chosen.name}' ({chosen.balance}{chosen.denom}), "
                f"{len(candidates)} eligible"
            )

            step = CommandStep.FETCH_ASSETS
            release = self.release_fetcher.fetch(config.target_version)
            assets = self.upgrade_info.upgrade_info(release)

            step = CommandStep.RENDER
            text = self.renderer.render_command(
                version=config.target_version,
                title=config.proposal_name,
                upgrade_height=config.upgrade_height,
                description=description,
                keyring_backend=self.keyring_backend,
                key=chosen.name,
                fees=self.fees,
                chain_id=config.chain_id,
                home=config.home,
                tm_rpc=network.rpc_url,
                assets=assets,
                discussion_link=config.discussion_link,
            )
        except (UpgradeHelperError, ValueError) as e:
            logger.error(f"Command generation failed in {step.value}: {e}")
            raise CommandStepError(step, e) from e

        return SubmissionCommand(command_text=text, chosen_key=chosen)
