"""Tests for the CLI module."""

import logging
from unittest.mock import patch

import pytest
from rich.console import Console
from snap_card_generator.cli import create_parser, main, setup_logging
from snap_card_generator.collection import CardCollection
from snap_card_generator.storage import PreferenceStore


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run the CLI inside a temporary directory with a usable key."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-1234567890")
    return tmp_path


@pytest.fixture
def photo(workdir, photo_bytes):
    path = workdir / "birch.png"
    path.write_bytes(photo_bytes)
    return path


def stored_collection(workdir) -> CardCollection:
    return CardCollection(PreferenceStore(workdir / "data" / "preferences.json"))


class TestCLI:
    """Test suite for the CLI."""

    def test_parser_creation(self) -> None:
        """Test that the parser is created correctly."""
        parser = create_parser()
        args = parser.parse_args(["generate", "photo.jpg", "--keep"])
        assert args.command == "generate"
        assert args.keep is True

    def test_help_command(self, capsys) -> None:
        """Test the help command."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0
        captured = capsys.readouterr()
        assert "Turn photos into collectible monster trading cards" in captured.out

    def test_version_command(self, capsys) -> None:
        """Test the version command."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        captured = capsys.readouterr()
        assert "0.1.0" in captured.out

    def test_no_command(self) -> None:
        """Test running without a command."""
        result = main([])
        assert result == 1

    @patch("snap_card_generator.cli.OpenAIClient")
    def test_generate_command(self, mock_client, workdir, photo, fake_client, capsys) -> None:
        """Test the generate command."""
        mock_client.from_settings.return_value = fake_client

        result = main(["generate", str(photo)])

        assert result == 0
        assert fake_client.steps == ["analyze", "title", "stats_json", "image"]
        assert "Barkchu" in capsys.readouterr().out
        assert len(stored_collection(workdir)) == 0

    @patch("snap_card_generator.cli.OpenAIClient")
    def test_generate_keep(self, mock_client, workdir, photo, make_client) -> None:
        """Test that --keep adds the card to the collection."""
        mock_client.from_settings.return_value = make_client()

        assert main(["generate", str(photo), "--keep"]) == 0

        cards = stored_collection(workdir).cards
        assert [card.title for card in cards] == ["Barkchu"]
        assert cards[0].display_id == 1

    @patch("snap_card_generator.cli.OpenAIClient")
    def test_generate_model_overrides(self, mock_client, workdir, photo, fake_client) -> None:
        """Test that model flags reach the client settings."""
        mock_client.from_settings.return_value = fake_client

        main(["generate", str(photo), "--chat-model", "gpt-4o", "--image-model", "dall-e-2"])

        settings = mock_client.from_settings.call_args.args[0]
        assert settings.chat_model == "gpt-4o"
        assert settings.image_model == "dall-e-2"

    @patch("snap_card_generator.cli.OpenAIClient")
    def test_generate_failure(self, mock_client, workdir, photo, make_client, capsys) -> None:
        """Test that a failed attempt reports the error and returns 1."""
        mock_client.from_settings.return_value = make_client(stats="not json")

        assert main(["generate", str(photo), "--keep"]) == 1
        assert "Failed to decode JSON" in capsys.readouterr().out
        assert len(stored_collection(workdir)) == 0

    def test_generate_missing_photo(self, workdir) -> None:
        """Test that a missing photo returns 1."""
        assert main(["generate", str(workdir / "missing.jpg")]) == 1

    def test_generate_without_key(self, workdir, photo, monkeypatch, capsys) -> None:
        """Test that a missing API key is reported before any request."""
        monkeypatch.setenv("OPENAI_API_KEY", "$(OPENAI_API_KEY_APP)")

        assert main(["generate", str(photo)]) == 1
        assert "placeholder" in capsys.readouterr().out

    def test_list_empty(self, workdir, capsys) -> None:
        """Test listing an empty collection."""
        assert main(["list"]) == 0
        assert "empty" in capsys.readouterr().out

    def test_list_and_release(self, workdir, sample_card, monkeypatch, capsys) -> None:
        """Test listing and releasing a collected card."""
        monkeypatch.setattr("snap_card_generator.cli.console", Console(width=200))
        (workdir / "data").mkdir()
        stored_collection(workdir).add(sample_card)

        assert main(["list"]) == 0
        assert "Barkchu" in capsys.readouterr().out

        assert main(["release", sample_card.id]) == 0
        assert len(stored_collection(workdir)) == 0

    def test_release_unknown(self, workdir) -> None:
        """Test releasing a card that is not collected."""
        assert main(["release", "nope"]) == 1

    def test_invalid_setting_is_reported(self, workdir, monkeypatch, capsys) -> None:
        """Test that a bad environment value exits cleanly instead of crashing."""
        monkeypatch.setenv("JPEG_QUALITY", "200")

        assert main(["list"]) == 1
        output = capsys.readouterr().out
        assert "Invalid configuration" in output
        assert "jpeg_quality" in output

    @patch("snap_card_generator.cli.setup_logging")
    def test_log_level_from_settings(self, mock_setup, workdir, monkeypatch) -> None:
        """Test that LOG_LEVEL and DEBUG reach the logging setup."""
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.delenv("DEBUG", raising=False)
        main(["list"])
        mock_setup.assert_called_once_with(False, "warning")

        mock_setup.reset_mock()
        main(["-v", "list"])
        mock_setup.assert_called_once_with(True, "warning")

        mock_setup.reset_mock()
        monkeypatch.setenv("DEBUG", "true")
        main(["list"])
        mock_setup.assert_called_once_with(True, "warning")


class TestSetupLogging:
    """Test suite for logging setup."""

    @pytest.mark.parametrize(
        "verbose,level_name,expected",
        [
            (False, "INFO", logging.INFO),
            (False, "warning", logging.WARNING),
            (False, "DEBUG", logging.DEBUG),
            (True, "ERROR", logging.DEBUG),
            (False, "nonsense", logging.INFO),
        ],
    )
    @patch("snap_card_generator.cli.logging.basicConfig")
    def test_level(self, mock_basic_config, verbose, level_name, expected) -> None:
        """Test the level handed to logging.basicConfig."""
        setup_logging(verbose, level_name)
        assert mock_basic_config.call_args.kwargs["level"] == expected
