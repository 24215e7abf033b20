"""
Card Assembler

Drives one photo through the pipeline: vision analysis, title, stats,
art prompt, artwork, then numbering and assembly of the final card.
Each step waits for the previous one; the first failure ends the attempt.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from snap_card_generator.exceptions import AssemblerBusyError, CardGenerationError
from snap_card_generator.models import CardRecord
from snap_card_generator.normalizer import normalize_stats
from snap_card_generator.parsing import parse_analysis, parse_stats_reply
from snap_card_generator.prompts import PromptRegistry, TemplatePart

logger = logging.getLogger(__name__)


class CardClient(Protocol):
    """Upstream AI calls the assembler relies on."""

    chat_model: str
    image_model: str

    def analyze_image(self, image_bytes: bytes, prompt: str) -> str:
        ...

    def complete(self, prompt: str, task_type: str = "default") -> str:
        ...

    def generate_image(self, prompt: str) -> str:
        ...


class Counter(Protocol):
    """Source of display numbers."""

    def next(self) -> int:
        ...


class PhaseState(str, Enum):
    """States of the progress signal."""

    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationPhase:
    """Snapshot of where a generation attempt stands."""

    state: PhaseState
    label: str = ""
    card: Optional[CardRecord] = None
    error: Optional[str] = None

    @classmethod
    def idle(cls) -> "GenerationPhase":
        return cls(PhaseState.IDLE)

    @classmethod
    def in_progress(cls, label: str) -> "GenerationPhase":
        return cls(PhaseState.IN_PROGRESS, label=label)

    @classmethod
    def succeeded(cls, card: CardRecord) -> "GenerationPhase":
        return cls(PhaseState.SUCCEEDED, card=card)

    @classmethod
    def failed(cls, message: str) -> "GenerationPhase":
        return cls(PhaseState.FAILED, error=message)

    @property
    def is_busy(self) -> bool:
        return self.state is PhaseState.IN_PROGRESS


class CardAssembler:
    """
    Orchestrates card generation for one card-creation flow.

    The assembler runs at most one attempt at a time. Independent assemblers
    can run side by side; they only share the counter, whose increment is
    atomic.
    """

    def __init__(
        self,
        client: CardClient,
        counter: Counter,
        prompts: Optional[PromptRegistry] = None,
        on_progress: Optional[Callable[[GenerationPhase], None]] = None,
    ):
        """
        Initialize the assembler.

        Args:
            client: Client for the vision, text and image calls
            counter: Display-number counter, advanced once per finished card
            prompts: Template registry (built-in templates by default)
            on_progress: Called with every phase change
        """
        self.client = client
        self.counter = counter
        self.prompts = prompts or PromptRegistry.default()
        self.on_progress = on_progress
        self._phase = GenerationPhase.idle()

    @property
    def phase(self) -> GenerationPhase:
        return self._phase

    def _set_phase(self, phase: GenerationPhase) -> None:
        self._phase = phase
        if phase.state is PhaseState.IN_PROGRESS:
            logger.info(phase.label)
        if self.on_progress:
            self.on_progress(phase)

    def reset(self) -> None:
        """Return to idle after a finished or failed attempt."""
        if self._phase.is_busy:
            raise AssemblerBusyError("Cannot reset while a card is being generated")
        self._set_phase(GenerationPhase.idle())

    async def generate(self, image_bytes: bytes) -> CardRecord:
        """
        Generate a card from a photo.

        Args:
            image_bytes: Raw photo contents

        Returns:
            The assembled card

        Raises:
            AssemblerBusyError: If an attempt is already running
            CardGenerationError: If any step fails; no card is produced
        """
        if self._phase.is_busy:
            raise AssemblerBusyError("A card is already being generated")

        try:
            # 1. Analyze the photo
            self._set_phase(
                GenerationPhase.in_progress(
                    f"Analyzing image with {self.client.chat_model}..."
                )
            )
            reply = await asyncio.to_thread(
                self.client.analyze_image, image_bytes, self.prompts.analysis_prompt
            )
            analysis = parse_analysis(reply)
            logger.info(
                f"Analysis: {analysis.subject} ({analysis.category}) "
                f"STR {analysis.strength} / STA {analysis.stamina} / AGI {analysis.agility}"
            )

            # 2. Title
            self._set_phase(GenerationPhase.in_progress("Naming your creature..."))
            title_prompt = self.prompts.render_for(TemplatePart.TITLE, analysis)
            title = (
                await asyncio.to_thread(self.client.complete, title_prompt, "title")
            ).strip()

            # 3. Stats
            self._set_phase(GenerationPhase.in_progress("Rolling stats..."))
            stats_prompt = self.prompts.render_for(TemplatePart.STATS_JSON, analysis)
            stats_reply = await asyncio.to_thread(
                self.client.complete, stats_prompt, "stats_json"
            )
            stats = normalize_stats(parse_stats_reply(stats_reply))

            # 4. Art prompt
            art_prompt = self.prompts.render_for(TemplatePart.ART_PROMPT, analysis)
            logger.debug(f"Final image generation prompt: {art_prompt}")

            # 5. Artwork
            self._set_phase(
                GenerationPhase.in_progress(
                    f"Generating card art with {self.client.image_model}..."
                )
            )
            image_url = await asyncio.to_thread(self.client.generate_image, art_prompt)

            # 6-7. Number and assemble
            card = CardRecord(
                id=str(uuid.uuid4()),
                display_id=self.counter.next(),
                title=title,
                description=analysis.visual_traits,
                image_reference=image_url,
                stats=tuple(stats),
            )
        except CardGenerationError as e:
            logger.error(f"Card generation failed: {e}")
            self._set_phase(GenerationPhase.failed(e.describe()))
            raise
        except asyncio.CancelledError:
            logger.info("Card generation cancelled")
            self._set_phase(GenerationPhase.failed("Cancelled"))
            raise
        except Exception as e:
            logger.exception("Unexpected error during card generation")
            self._set_phase(GenerationPhase.failed(f"Unexpected error: {e}"))
            raise

        logger.info(f"Created card #{card.display_id} '{card.title}'")
        self._set_phase(GenerationPhase.succeeded(card))
        return card

    async def run(self, image_bytes: bytes) -> GenerationPhase:
        """
        Generate a card and report the final phase instead of raising.

        Args:
            image_bytes: Raw photo contents

        Returns:
            The succeeded or failed phase
        """
        try:
            await self.generate(image_bytes)
        except AssemblerBusyError as e:
            return GenerationPhase.failed(e.describe())
        except Exception:
            # generate() has already recorded the failure
            return self._phase
        return self._phase
