"""Tests for the normalizer module."""

import pytest
from snap_card_generator.models import IntStatValue, StatEntry, StringStatValue
from snap_card_generator.normalizer import normalize_stat_value, normalize_stats


class TestNormalizeStatValue:
    """Test suite for stat value classification."""

    @pytest.mark.parametrize(
        "text,expected",
        [("40", 40), ("0", 0), ("100", 100), ("-5", -5), ("+7", 7), ("007", 7)],
    )
    def test_whole_numbers_become_integers(self, text: str, expected: int) -> None:
        """Test that strict whole numbers are tagged as integers."""
        assert normalize_stat_value(text) == IntStatValue(value=expected)

    @pytest.mark.parametrize(
        "text",
        ["40.0", "4.5", " 40", "40 ", "1,000", "1_000", "1e3", "", "-", "forty"],
    )
    def test_non_integers_stay_strings(self, text: str) -> None:
        """Test that anything but a strict whole number is kept verbatim."""
        assert normalize_stat_value(text) == StringStatValue(value=text)

    def test_non_ascii_digits_stay_strings(self) -> None:
        """Test that digits from other scripts are not treated as numbers."""
        assert normalize_stat_value("٤٠") == StringStatValue(value="٤٠")

    def test_labels_stay_strings(self) -> None:
        """Test that a type label survives unchanged, emoji included."""
        value = normalize_stat_value("Natural 🌿")
        assert isinstance(value, StringStatValue)
        assert value.display == "Natural 🌿"

    def test_stringified_integers_round_trip(self) -> None:
        """Test that normalize(str(n)) is always integer n."""
        for n in list(range(-300, 301, 7)) + [10**18, -(10**18)]:
            assert normalize_stat_value(str(n)) == IntStatValue(value=n)

    def test_classification_is_deterministic(self) -> None:
        """Test that the same input always gets the same tag."""
        for text in ["12", "12.0", "High"]:
            assert normalize_stat_value(text) == normalize_stat_value(text)

    def test_oversized_digit_run_stays_string(self) -> None:
        """Test that a digit string too long to convert is kept verbatim."""
        text = "9" * 5000
        assert normalize_stat_value(text) == StringStatValue(value=text)
        assert normalize_stat_value("-" + text) == StringStatValue(value="-" + text)


class TestNormalizeStats:
    """Test suite for normalizing stat lists."""

    def test_order_is_preserved(self) -> None:
        """Test that entries keep their input order."""
        entries = normalize_stats(
            [("Type", "Natural 🌿"), ("Strength", "40"), ("Stamina", "70"), ("Agility", "20")]
        )
        assert entries == [
            StatEntry(category="Type", value=StringStatValue(value="Natural 🌿")),
            StatEntry(category="Strength", value=IntStatValue(value=40)),
            StatEntry(category="Stamina", value=IntStatValue(value=70)),
            StatEntry(category="Agility", value=IntStatValue(value=20)),
        ]

    def test_empty_input(self) -> None:
        """Test that no pairs give no entries."""
        assert normalize_stats([]) == []

