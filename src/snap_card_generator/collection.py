"""
Card Collection Module

The player's collection of kept cards. Cards are stored in the preference
store as a list of card dictionaries, in the order they were kept.
"""

import logging
from collections.abc import Iterator
from typing import Optional

from pydantic import ValidationError

from snap_card_generator.models import CardRecord
from snap_card_generator.storage import PreferenceStore

logger = logging.getLogger(__name__)

COLLECTION_KEY = "snapDexCards"


class CardCollection:
    """Persisted set of kept cards, unique by id."""

    def __init__(self, store: PreferenceStore, key: str = COLLECTION_KEY):
        """
        Initialize the collection and load stored cards.

        Args:
            store: Preference store the collection lives in
            key: Store key holding the card list
        """
        self.store = store
        self.key = key
        self._cards: list[CardRecord] = self._load()
        logger.info(f"Loaded {len(self._cards)} collected cards")

    def _load(self) -> list[CardRecord]:
        raw = self.store.get(self.key, [])
        if not isinstance(raw, list):
            logger.error(f"Stored collection under '{self.key}' is not a list, ignoring it")
            return []
        try:
            return [CardRecord.from_dict(item) for item in raw]
        except ValidationError as e:
            logger.error(f"Error loading cards from the store: {e}")
            return []

    def _save(self) -> None:
        self.store.set(self.key, [card.to_dict() for card in self._cards])

    @property
    def cards(self) -> list[CardRecord]:
        """Collected cards in the order they were added."""
        return list(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[CardRecord]:
        return iter(list(self._cards))

    def contains(self, card_id: str) -> bool:
        return any(card.id == card_id for card in self._cards)

    def get(self, card_id: str) -> Optional[CardRecord]:
        for card in self._cards:
            if card.id == card_id:
                return card
        return None

    def add(self, card: CardRecord) -> bool:
        """
        Add a card unless one with the same id is already collected.

        Returns:
            True if the card was added, False if it was already present
        """
        if self.contains(card.id):
            logger.debug(f"Card {card.id} already collected")
            return False
        self._cards.append(card)
        self._save()
        logger.info(f"Collected card #{card.display_id} '{card.title}'")
        return True

    def remove(self, card_id: str) -> bool:
        """
        Release a card from the collection.

        Returns:
            True if a card was removed
        """
        remaining = [card for card in self._cards if card.id != card_id]
        if len(remaining) == len(self._cards):
            return False
        self._cards = remaining
        self._save()
        logger.info(f"Released card {card_id}")
        return True
