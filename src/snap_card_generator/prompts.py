"""
Prompt Templates Module

Templates for each stage of the card pipeline: the vision analysis
instructions, plus the title, stats-JSON and art prompts rendered from the
analysis result. Placeholders use the ``{{name}}`` form.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from snap_card_generator.exceptions import ConfigurationError
from snap_card_generator.models import (
    TYPE_STAT_CATEGORY,
    AnalysisRecord,
    CardCategory,
    StatKey,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

# Placeholders an AnalysisRecord can fill
KNOWN_PLACEHOLDERS = (
    "subject",
    "visualTraits",
    "category",
    StatKey.STRENGTH.placeholder,
    StatKey.STAMINA.placeholder,
    StatKey.AGILITY.placeholder,
)


class TemplatePart(str, Enum):
    """Purposes a template can serve."""

    ANALYSIS = "analysis"
    TITLE = "title"
    ART_PROMPT = "art_prompt"
    STATS_JSON = "stats_json"


@dataclass(frozen=True)
class PromptTemplate:
    """Template for building prompts."""

    name: str
    template: str
    description: str = ""

    @property
    def placeholders(self) -> list[str]:
        """Placeholder names referenced by the template, in first-use order."""
        seen: list[str] = []
        for name in PLACEHOLDER_PATTERN.findall(self.template):
            if name not in seen:
                seen.append(name)
        return seen


ANALYSIS_PROMPT = f"""You are a trading-card data bot. Identify the PRIMARY subject of the user-supplied photo (e.g. "Birch tree", "Gaming mouse", "Coca-Cola can").

Return ONE minified JSON object, no extra text, with exactly SIX keys:
  • subject: short noun phrase, lowercase articles removed (e.g. "Birch tree", "Vans Old Skool shoes")
  • visualTraits: concise, comma-separated appearance notes (e.g. 'fluffy, white, with large blue eyes, often found in snowy plains' or 'metallic, sleek, with glowing red stripes, typically seen in futuristic cityscapes'). Include key physical characteristics and hints about its natural environment.
  • category: best-fit among: {CardCategory.prompt_list()} (case-sensitive, include the emoji in the value)
  • strength: integer 0-100 (raw power)
  • stamina: integer 0-100 (endurance)
  • agility: integer 0-100 (speed/dexterity)"""

TITLE_PROMPT = (
    "The title should be the name of the {{subject}} adding Japanese-inspired suffixes "
    "or phonetic transformations to make it sound like a collectible monster. The result "
    "should be fun, pronounceable, and still hint at the original word. Examples include: "
    "'Fridgoko', 'Sodachu', 'Poweruplu', 'Microwavax'. Keep the names short (2-4 syllables) "
    "and mix in common Pokémon-style suffixes like -chu, -ko, -mon, -zu, -tan, -pu, -ra, "
    "-bo, or -nix. Output ONLY the name itself, without any other text or quotation marks."
)

ART_PROMPT = (
    "Digital painting in the style of a modern concept artist, consistent across all "
    "images. Generate only one image. Depict a single, primary subject: a whimsical "
    "creature inspired by {{visualTraits}}. The creature must be easily recognizable and "
    "the main focus. The creature is in its natural environment, which should be "
    "complementary but not distracting. The background must be clean, simple, and "
    "uncluttered. IMPORTANT: The generated image itself should NOT contain any frames, "
    "borders, or card-like elements; it should be a clean illustration of the subject in "
    "its environment, suitable for later placement onto a trading card. The overall "
    "artistic style should be cute, charming, with clear lines and appealing colors. Do "
    "not generate multiple sketches, variations, or panels."
)


def _build_stats_prompt() -> str:
    """Build the stats-JSON instruction from the stat keys."""
    entries = ['{"category":"%s","value":"{{category}}"}' % TYPE_STAT_CATEGORY]
    for key in StatKey:
        entries.append(
            '{"category":"%s","value":"{{%s}}"}' % (key.value, key.placeholder)
        )
    json_template = '{"stats":[' + ",".join(entries) + "]}"
    return f"Return this EXACT minified JSON (single line, no spaces): {json_template}"


STATS_JSON_PROMPT = _build_stats_prompt()


def default_templates() -> dict[TemplatePart, PromptTemplate]:
    """Built-in templates for every pipeline stage."""
    return {
        TemplatePart.ANALYSIS: PromptTemplate(
            name=TemplatePart.ANALYSIS.value,
            template=ANALYSIS_PROMPT,
            description="Instructions sent with the photo to the vision model",
        ),
        TemplatePart.TITLE: PromptTemplate(
            name=TemplatePart.TITLE.value,
            template=TITLE_PROMPT,
            description="Collectible-monster name for the subject",
        ),
        TemplatePart.ART_PROMPT: PromptTemplate(
            name=TemplatePart.ART_PROMPT.value,
            template=ART_PROMPT,
            description="Prompt handed to the image model",
        ),
        TemplatePart.STATS_JSON: PromptTemplate(
            name=TemplatePart.STATS_JSON.value,
            template=STATS_JSON_PROMPT,
            description="Echo of the analysis stats as minified JSON",
        ),
    }


@dataclass(frozen=True)
class PromptRegistry:
    """
    Immutable set of templates, one per :class:`TemplatePart`.

    Built explicitly and passed to the assembler. Construction checks that
    every template only references placeholders an AnalysisRecord can supply.
    """

    templates: Mapping[TemplatePart, PromptTemplate] = field(
        default_factory=default_templates
    )

    def __post_init__(self):
        missing = [part for part in TemplatePart if part not in self.templates]
        if missing:
            raise ConfigurationError(
                f"Missing templates: {', '.join(part.value for part in missing)}"
            )
        object.__setattr__(self, "templates", MappingProxyType(dict(self.templates)))
        self.validate(KNOWN_PLACEHOLDERS)
        logger.debug(f"PromptRegistry initialized with {len(self.templates)} templates")

    @classmethod
    def default(cls) -> "PromptRegistry":
        """Registry holding the built-in templates."""
        return cls()

    @classmethod
    def with_overrides(
        cls, overrides: Mapping[TemplatePart, str]
    ) -> "PromptRegistry":
        """Registry with some template bodies replaced."""
        templates = default_templates()
        for part, body in overrides.items():
            templates[part] = PromptTemplate(
                name=part.value,
                template=body,
                description=templates[part].description,
            )
        return cls(templates)

    def get(self, part: TemplatePart) -> PromptTemplate:
        return self.templates[part]

    def validate(self, fields: Iterable[str]) -> None:
        """
        Check that templates only reference supplied placeholders.

        Args:
            fields: Placeholder names the caller can fill

        Raises:
            ConfigurationError: If a template references an unknown placeholder
        """
        available = set(fields)
        problems = []
        for part, template in self.templates.items():
            unknown = [name for name in template.placeholders if name not in available]
            if unknown:
                problems.append(f"{part.value}: {', '.join(unknown)}")
        if problems:
            raise ConfigurationError(
                f"Templates reference unknown placeholders ({'; '.join(problems)})"
            )

    def render(
        self, part: TemplatePart, values: Optional[Mapping[str, Any]] = None
    ) -> str:
        """
        Render a template by substituting placeholders.

        Only the known placeholder names are substituted. A name absent from
        ``values`` stays in the output as ``{{name}}``.

        Args:
            part: Which template to render
            values: Placeholder name to replacement value (coerced to str)

        Returns:
            Rendered prompt text
        """
        output = self.templates[part].template
        values = values or {}
        for name in KNOWN_PLACEHOLDERS:
            if name in values:
                output = output.replace("{{" + name + "}}", str(values[name]))
        return output

    def render_for(self, part: TemplatePart, analysis: AnalysisRecord) -> str:
        """Render a template with the values of an analysis record."""
        return self.render(part, analysis.placeholder_values())

    @property
    def analysis_prompt(self) -> str:
        return self.render(TemplatePart.ANALYSIS)
