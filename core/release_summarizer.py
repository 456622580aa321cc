# =============================================================================
# EVMOS UPGRADE HELPER - RELEASE NOTES SUMMARIZER
# =============================================================================
#
# Turns raw release notes into a short bullet-point summary using a
# completion model.
#
# PROMPT:
# The notes are truncated to a character budget keeping the LEADING part,
# on the assumption that the earliest notes are the most relevant ones.
#
# RETRIES:
# - TransientError and empty responses are retried up to max_attempts
# - FatalCompletionError propagates immediately
# - Exponential backoff with jitter between attempts, capped at max_delay
# - Exhaustion raises SummarizationUnavailableError with the last error
#
# =============================================================================

import logging
import random
import time
from typing import Callable, Iterable, Optional

from clients.base import CompletionClient
from models.data_models import Summary
from shared.exceptions import (
    EmptyReleaseNotesError,
    SummarizationUnavailableError,
    TransientError,
    UnsupportedModelError,
)
from shared.settings import DEFAULT_MODELS

logger = logging.getLogger(__name__)

DEFAULT_MAX_NOTE_CHARS = 12_000
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0

SUMMARY_INSTRUCTIONS = (
    "Please provide a brief summary for the following release notes using bullet points. "
    "You do not need to mention the version or release date, only the changes. "
    "Please also just provide a description of the changes but don't mention "
    "the change types like State Machine Breaking. "
    "Please do not include any pull request links. "
    "Please keep the summary to a maximum of 10 bullet points."
)


class ModelRegistry:
    """
    Allow-list of completion model ids.

    Model ids are plain strings so new models only need a settings change.
    """

    def __init__(self, allowed: Iterable[str] = DEFAULT_MODELS):
        self._allowed = frozenset(m.strip() for m in allowed if m.strip())

    @property
    def allowed(self) -> frozenset:
        return self._allowed

    def is_allowed(self, model: str) -> bool:
        return model in self._allowed

    def validate(self, model: str) -> str:
        """
        Return the model id if allowed.

        Raises:
            UnsupportedModelError: If the model is not on the allow-list
        """
        if not self.is_allowed(model):
            raise UnsupportedModelError(model, self._allowed)
        return model


def truncate_notes(notes: str, max_chars: int) -> str:
    """Keep the first max_chars characters of the notes."""
    if len(notes) <= max_chars:
        return notes
    return notes[:max_chars]


def build_summary_prompt(notes: str, max_chars: int = DEFAULT_MAX_NOTE_CHARS) -> str:
    """Build the bounded summarization prompt."""
    return f'{SUMMARY_INSTRUCTIONS}\n"{truncate_notes(notes, max_chars)}"'


def backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    rng: Callable[[], float] = random.random,
) -> float:
    """
    Delay before the retry following `attempt` (1-based).

    The uncapped delay doubles per attempt. Jitter scales it into
    [50%, 100%] of that value, so the expected delay grows strictly until
    max_delay is reached.
    """
    ceiling = min(max_delay, base_delay * (2 ** (attempt - 1)))
    return ceiling * (0.5 + 0.5 * rng())


class ReleaseSummarizer:
    """
    Summarizes release notes with retry on transient failures.

    Stateless between calls: every summarize() call is independent.
    """

    def __init__(
        self,
        client: CompletionClient,
        registry: Optional[ModelRegistry] = None,
        max_note_chars: int = DEFAULT_MAX_NOTE_CHARS,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        rng: Callable[[], float] = random.random,
    ):
        """
        Initialize the summarizer.

        Args:
            client: Completion collaborator
            registry: Allowed model ids (defaults to the built-in list)
            max_note_chars: Character budget for the notes in the prompt
            base_delay: Delay before the first retry, in seconds
            max_delay: Upper bound for any single delay, in seconds
            sleep: Sleep function, replaceable in tests
            rng: Random source in [0, 1), replaceable in tests
        """
        self.client = client
        self.registry = registry or ModelRegistry()
        self.max_note_chars = max_note_chars
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep
        self._rng = rng

    def summarize(self, notes: str, model: str, max_attempts: int = 3) -> Summary:
        """
        Summarize release notes.

        Args:
            notes: Raw release notes
            model: Completion model id (must be allowed)
            max_attempts: Total number of completion calls allowed (>= 1)

        Returns:
            Summary with the stripped model output

        Raises:
            ValueError: If max_attempts < 1
            EmptyReleaseNotesError: If the notes are empty or whitespace
            UnsupportedModelError: If the model is not allowed
            FatalCompletionError: On a non-retryable completion failure
            SummarizationUnavailableError: If all attempts failed transiently
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if not notes or not notes.strip():
            raise EmptyReleaseNotesError("Release notes are empty")

        self.registry.validate(model)
        prompt = build_summary_prompt(notes, self.max_note_chars)
        if len(notes) > self.max_note_chars:
            logger.info(
                f"Release notes truncated from {len(notes)} to {self.max_note_chars} chars"
            )

        last_error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            try:
                logger.debug(f"Summary attempt {attempt}/{max_attempts} with {model}")
                text = self.client.complete(prompt, model)

                if text and text.strip():
                    return Summary(text=text.strip(), model_id=model)

                last_error = TransientError("Model returned an empty summary")
                logger.warning(f"Empty summary on attempt {attempt}")

            except TransientError as e:
                last_error = e
                logger.warning(f"Transient error on attempt {attempt}: {e}")

            if attempt < max_attempts:
                delay = backoff_delay(attempt, self.base_delay, self.max_delay, self._rng)
                logger.info(f"Retrying summary in {delay:.1f}s...")
                self._sleep(delay)

        raise SummarizationUnavailableError(max_attempts, last_error)
