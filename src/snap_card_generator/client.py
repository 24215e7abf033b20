"""
OpenAI API client for the card pipeline.

Covers the three upstream calls the pipeline needs: vision chat analysis of
a photo, plain text completions, and text-to-image generation.
"""

import base64
import io
import json
import logging
from typing import Any, Optional

import requests
from PIL import Image, UnidentifiedImageError

from snap_card_generator.config import Settings, validate_api_key
from snap_card_generator.exceptions import (
    ContentMissingError,
    DecodeError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"

VISION_SYSTEM_PROMPT = (
    "You are an expert assistant that analyzes images and ALWAYS returns a response "
    "in valid, minified JSON format as specified by the user. Do not include any "
    "markdown fences like ```json or ``` around the JSON output."
)

DALLE2_SIZES = (256, 512, 1024)


def encode_image_jpeg(image_bytes: bytes, quality: int = 70) -> str:
    """
    Re-encode an image as JPEG and return it base64 encoded.

    Args:
        image_bytes: Raw image file contents in any format Pillow reads
        quality: JPEG quality factor

    Returns:
        Base64 text of the JPEG data

    Raises:
        DecodeError: If the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeError(f"Could not read image: {e}") from e

    jpeg_data = buffer.getvalue()
    logger.debug(f"JPEG byte-count: {len(jpeg_data)}")
    return base64.b64encode(jpeg_data).decode("ascii")


class OpenAIClient:
    """Client for OpenAI chat, vision and image generation endpoints."""

    def __init__(
        self,
        api_key: Optional[str],
        chat_model: str = "gpt-4o-mini",
        image_model: str = "dall-e-3",
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = 60,
        jpeg_quality: int = 70,
        image_size: int = 1024,
        image_quality: str = "standard",
        image_style: Optional[str] = "vivid",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: OpenAI API key
            chat_model: Model for vision and text calls
            image_model: Model for image generation
            base_url: API root URL
            timeout: Per-request timeout in seconds, None for no timeout
            jpeg_quality: Quality used when re-encoding photos
            image_size: Requested artwork side length in pixels
            image_quality: Artwork quality (dall-e-3 only)
            image_style: Artwork style (dall-e-3 only)
            session: HTTP session to use (a new one by default)

        Raises:
            ConfigurationError: If the API key is missing or a placeholder
        """
        self.api_key = validate_api_key(api_key)
        self.chat_model = chat_model
        self.image_model = image_model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.jpeg_quality = jpeg_quality
        self.image_size = image_size
        self.image_quality = image_quality
        self.image_style = image_style
        self.session = session or requests.Session()

        logger.info(
            f"OpenAIClient initialized. API key prefix: {self.api_key[:5]}..., "
            f"chat model: {self.chat_model}, image model: {self.image_model}"
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, session: Optional[requests.Session] = None
    ) -> "OpenAIClient":
        """Build a client from application settings."""
        return cls(
            api_key=settings.require_api_key(),
            chat_model=settings.chat_model,
            image_model=settings.image_model,
            base_url=settings.api_base_url,
            timeout=settings.api_timeout,
            jpeg_quality=settings.jpeg_quality,
            image_size=settings.image_size,
            image_quality=settings.image_quality,
            image_style=settings.image_style,
            session=session,
        )

    def get_default_parameters(self, task_type: str) -> dict[str, Any]:
        """
        Get default parameters for chat calls based on task type.

        Args:
            task_type: Type of task being performed

        Returns:
            Dictionary of default parameters
        """
        task_params = {
            "analyze_image": {"temperature": 0.2, "max_tokens": 2048},
            "title": {"temperature": 0.9, "max_tokens": 50},
            "stats_json": {"temperature": 0.0, "max_tokens": 400},
        }
        return task_params.get(task_type, {"temperature": 0.7, "max_tokens": 1000})

    def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON POST and return the decoded response body."""
        url = f"{self.base_url}/{endpoint}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        logger.debug(f"POST {url} (payload: {len(json.dumps(payload))} characters)")

        try:
            response = self.session.post(
                url, headers=headers, json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise TransportError(None, str(e)) from e

        logger.debug(f"HTTP Status Code: {response.status_code}")
        if response.status_code != 200:
            logger.error(f"API Error {response.status_code}: {response.text}")
            raise TransportError(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(
                f"Invalid API response format: {e}", raw=response.text
            ) from e

    @staticmethod
    def _message_content(response_data: dict[str, Any]) -> str:
        """Pull the first choice's message text out of a chat response."""
        try:
            content = response_data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ContentMissingError("Chat response did not contain any choices") from e

        if not isinstance(content, str):
            raise ContentMissingError("Chat response did not return content")
        return content

    def _chat(
        self, messages: list[dict[str, Any]], task_type: str, **extra: Any
    ) -> str:
        params = self.get_default_parameters(task_type)
        payload = {
            "model": self.chat_model,
            "messages": messages,
            "temperature": params["temperature"],
            "max_tokens": params["max_tokens"],
            **extra,
        }
        content = self._message_content(self._post("chat/completions", payload))
        logger.info(f"{task_type}: response received ({len(content)} characters)")
        return content

    def analyze_image(self, image_bytes: bytes, prompt: str) -> str:
        """
        Send a photo with instructions to the vision model.

        Args:
            image_bytes: Raw photo contents
            prompt: Analysis instructions

        Returns:
            Assistant reply text (expected to be a JSON object)
        """
        logger.info(f"analyze_image START (model: {self.chat_model})")
        image_b64 = encode_image_jpeg(image_bytes, self.jpeg_quality)

        messages = [
            {
                "role": "system",
                "content": [{"type": "text", "text": VISION_SYSTEM_PROMPT}],
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": f"data:image/jpeg;base64,{image_b64}",
                            "detail": "auto",
                        },
                    },
                ],
            },
        ]
        return self._chat(
            messages, "analyze_image", response_format={"type": "json_object"}
        )

    def complete(self, prompt: str, task_type: str = "default") -> str:
        """
        Send an instruction-only chat request.

        Args:
            prompt: Rendered instruction text
            task_type: Type of task for parameter selection

        Returns:
            Assistant reply text
        """
        logger.info(f"complete START (task: {task_type}, model: {self.chat_model})")
        return self._chat([{"role": "user", "content": prompt}], task_type)

    def _size_string(self, size: int) -> str:
        if self.image_model == "dall-e-3":
            return "1024x1024"
        if self.image_model == "dall-e-2":
            side = size if size in DALLE2_SIZES else 1024
            return f"{side}x{side}"
        return f"{size}x{size}"

    def generate_image(self, prompt: str, size: Optional[int] = None) -> str:
        """
        Generate artwork from a text prompt.

        Args:
            prompt: Art prompt
            size: Requested side length (defaults to the configured size)

        Returns:
            URL of the generated image
        """
        size_string = self._size_string(size or self.image_size)
        payload: dict[str, Any] = {
            "model": self.image_model,
            "prompt": prompt,
            "n": 1,
            "size": size_string,
        }
        if self.image_model == "dall-e-3":
            payload["quality"] = self.image_quality
            if self.image_style:
                payload["style"] = self.image_style

        logger.info(
            f"generate_image START (model: {self.image_model}, size: {size_string}, "
            f"prompt: {prompt[:50]}...)"
        )
        response_data = self._post("images/generations", payload)

        try:
            url = response_data["data"][0]["url"]
        except (KeyError, IndexError, TypeError) as e:
            raise ContentMissingError("No image URL returned from text-to-image") from e
        if not isinstance(url, str) or not url:
            raise ContentMissingError("No image URL returned from text-to-image")

        logger.info(f"Generated image URL: {url}")
        return url
