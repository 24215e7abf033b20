"""Data models for snap cards."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CardCategory(str, Enum):
    """Elemental classes a photographed subject can be sorted into.

    The value is the label the vision model is asked to echo, emoji included.
    """

    NATURAL = "Natural 🌿"
    TECH = "Tech ⚙️"
    FIRE = "Fire 🔥"
    WATER = "Water 💧"
    EARTH = "Earth 🧱"
    AIR = "Air 💨"
    ELECTRIC = "Electric ⚡️"
    SPIRIT = "Spirit 🫥"

    @property
    def label(self) -> str:
        """Category name without the emoji marker."""
        return self.value.split(" ", 1)[0]

    @classmethod
    def prompt_list(cls) -> str:
        """Comma-separated labels for prompt text."""
        return ", ".join(category.value for category in cls)


class StatKey(str, Enum):
    """Numeric attributes every card carries, in display order."""

    STRENGTH = "Strength"
    STAMINA = "Stamina"
    AGILITY = "Agility"

    @property
    def placeholder(self) -> str:
        """Name of the template placeholder holding this stat."""
        return self.value.lower()


# Category label of the stat entry that carries the card type
TYPE_STAT_CATEGORY = "Type"


class AnalysisRecord(BaseModel):
    """Structured result of the vision call.

    All six fields are required and strictly typed: a number sent as a JSON
    string, or text sent as a number, fails validation.
    """

    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True)

    subject: str
    visual_traits: str = Field(
        validation_alias=AliasChoices("visualTraits", "visual_traits")
    )
    category: str = Field(validation_alias=AliasChoices("category", "type"))
    strength: int
    stamina: int
    agility: int

    def placeholder_values(self) -> dict[str, str]:
        """Return field values keyed by template placeholder name."""
        return {
            "subject": self.subject,
            "visualTraits": self.visual_traits,
            "category": self.category,
            StatKey.STRENGTH.placeholder: str(self.strength),
            StatKey.STAMINA.placeholder: str(self.stamina),
            StatKey.AGILITY.placeholder: str(self.agility),
        }

    def stat(self, key: StatKey) -> int:
        """Look up a numeric attribute by key."""
        return getattr(self, key.placeholder)


class IntStatValue(BaseModel):
    """Stat value that parsed as a whole number."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["int"] = "int"
    value: int

    @property
    def display(self) -> str:
        return str(self.value)


class StringStatValue(BaseModel):
    """Stat value kept verbatim as text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    value: str

    @property
    def display(self) -> str:
        return self.value


StatValue = Annotated[Union[IntStatValue, StringStatValue], Field(discriminator="kind")]


class StatEntry(BaseModel):
    """One labelled stat cell on a card."""

    model_config = ConfigDict(frozen=True)

    category: str
    value: StatValue

    def __str__(self) -> str:
        return f"{self.category}: {self.value.display}"


class CardRecord(BaseModel):
    """Final, immutable card produced by the pipeline."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    display_id: int = Field(..., ge=1)
    title: str
    description: str
    image_reference: str
    stats: tuple[StatEntry, ...] = ()
    created_at: datetime = Field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert the card to a JSON-ready dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "CardRecord":
        """Create a card from a dictionary produced by :meth:`to_dict`."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """Return a string representation of the card."""
        result = f"#{self.display_id:03d} {self.title}\n"
        result += "\n".join(str(entry) for entry in self.stats)
        return result
