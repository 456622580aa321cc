# =============================================================================
# EVMOS UPGRADE HELPER - PROPOSAL ASSEMBLER
# =============================================================================
#
# Orchestrates everything needed for the proposal description.
#
# STATE MACHINE:
#
#   PENDING -> FETCH_RELEASE -> ESTIMATE_HEIGHT --+
#                            \-> SUMMARIZE -------+-> RENDER -> DONE
#
#   Any failing step -> FAILED
#
# ESTIMATE_HEIGHT and SUMMARIZE only depend on the fetched release and run
# as two futures joined before RENDER. If both fail, the estimation
# failure is reported.
#
# The assembler never writes files. Persisting the document is the
# caller's job, so a failed run leaves nothing behind.
#
# =============================================================================

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional, Tuple

from clients.base import BlockSampleFetcher, ReleaseFetcher
from core.height_estimator import estimate
from core.release_summarizer import ReleaseSummarizer
from models.data_models import (
    HeightEstimate,
    ProposalDocument,
    ReleaseInfo,
    Summary,
    proposal_title,
)
from proposals.renderer import TemplateRenderer
from shared.enums import Network, ProposalStep
from shared.exceptions import ProposalStepError, UpgradeHelperError

logger = logging.getLogger(__name__)

# Failures wrapped with their step. Anything else is a bug and propagates.
STEP_FAILURES = (UpgradeHelperError, ValueError)


class ProposalAssembler:
    """
    Builds a ProposalDocument for one network and previous version.

    USAGE:
        assembler = ProposalAssembler(network, "v15.0.0", releases, blocks, summarizer)
        document = assembler.assemble("v16.0.0", upgrade_time, "gpt-4o", 500)
    """

    def __init__(
        self,
        network: Network,
        previous_version: str,
        release_fetcher: ReleaseFetcher,
        block_fetcher: BlockSampleFetcher,
        summarizer: ReleaseSummarizer,
        renderer: Optional[TemplateRenderer] = None,
        block_window: int = 50_000,
        summary_attempts: int = 3,
        author: str = "Evmos Core Team",
    ):
        self.network = network
        self.previous_version = previous_version
        self.release_fetcher = release_fetcher
        self.block_fetcher = block_fetcher
        self.summarizer = summarizer
        self.renderer = renderer or TemplateRenderer()
        self.block_window = block_window
        self.summary_attempts = summary_attempts
        self.author = author

        self.state = ProposalStep.PENDING
        self.history: List[ProposalStep] = [ProposalStep.PENDING]

    def _enter(self, step: ProposalStep) -> None:
        self.state = step
        self.history.append(step)
        logger.debug(f"Proposal step: {step.value}")

    def _fail(self, step: ProposalStep, cause: Exception) -> ProposalStepError:
        self._enter(ProposalStep.FAILED)
        logger.error(f"Proposal assembly failed in {step.value}: {cause}")
        return ProposalStepError(step, cause)

    def _estimate_height(self, target_time: datetime, rounding_unit: int) -> HeightEstimate:
        sample = self.block_fetcher.fetch_recent(self.block_window)
        return estimate(sample, target_time, rounding_unit)

    def _join(
        self,
        estimation: "Future[HeightEstimate]",
        summarizing: "Future[Summary]",
    ) -> Tuple[HeightEstimate, Summary]:
        """Wait for both tasks; estimation failures take precedence."""
        failures = []
        results = []
        for step, future in (
            (ProposalStep.ESTIMATE_HEIGHT, estimation),
            (ProposalStep.SUMMARIZE, summarizing),
        ):
            try:
                results.append(future.result())
            except STEP_FAILURES as e:
                failures.append((step, e))

        if failures:
            step, cause = failures[0]
            raise self._fail(step, cause) from cause
        return results[0], results[1]

    def assemble(
        self,
        tag: str,
        target_time: datetime,
        model: str,
        rounding_unit: int,
    ) -> ProposalDocument:
        """
        Assemble the proposal for upgrading to release `tag`.

        Args:
            tag: Target release tag
            target_time: Desired upgrade time (UTC)
            model: Completion model id for the summary
            rounding_unit: Granularity of the upgrade height

        Returns:
            ProposalDocument with the rendered Markdown

        Raises:
            ProposalStepError: Wrapping the first failing step's error
        """
        self.state = ProposalStep.PENDING
        self.history = [ProposalStep.PENDING]

        self._enter(ProposalStep.FETCH_RELEASE)
        try:
            release: ReleaseInfo = self.release_fetcher.fetch(tag)
        except STEP_FAILURES as e:
            raise self._fail(ProposalStep.FETCH_RELEASE, e) from e

        self._enter(ProposalStep.ESTIMATE_HEIGHT)
        self._enter(ProposalStep.SUMMARIZE)
        with ThreadPoolExecutor(max_workers=2) as pool:
            estimation = pool.submit(self._estimate_height, target_time, rounding_unit)
            summarizing = pool.submit(
                self.summarizer.summarize, release.raw_notes, model, self.summary_attempts
            )
            height, summary = self._join(estimation, summarizing)

        logger.info(
            f"Estimated upgrade height {height.rounded_height:,} "
            f"(predicted {height.predicted_height:,}, {height.basis_block_time_seconds:.2f}s/block)"
        )

        self._enter(ProposalStep.RENDER)
        title = proposal_title(self.network, tag)
        try:
            markdown = self.renderer.render_proposal(
                name=title,
                network=self.network,
                previous_version=self.previous_version,
                target_version=tag,
                upgrade_height=height.rounded_height,
                upgrade_time=target_time,
                summary=summary.text,
                voting_period_hours=int(self.network.voting_period.total_seconds() // 3600),
                n_blocks=self.block_window,
                author=self.author,
            )
        except STEP_FAILURES as e:
            raise self._fail(ProposalStep.RENDER, e) from e

        self._enter(ProposalStep.DONE)
        return ProposalDocument(
            title=title,
            summary=summary.text,
            upgrade_height=height.rounded_height,
            upgrade_time=target_time,
            release_url=release.url or self.renderer.release_url(tag),
            rendered_markdown=markdown,
        )
