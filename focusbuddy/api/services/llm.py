import base64
from collections.abc import Sequence
from typing import Protocol

import requests

from focusbuddy.watchers.logger import logger

HTTP_OK = 200


class InferenceBackend(Protocol):
    """Request/response text generation capability."""

    def is_available(self) -> bool: ...

    def generate(self, prompt: str, images: Sequence[bytes] = ()) -> str: ...


class OllamaService:
    """Ollama ``/api/generate`` client.

    ``generate`` never raises for transport problems: an empty string means
    the backend could not answer.
    """

    def __init__(
        self,
        base_url: str,
        model_name: str,
        timeout: float = 120.0,
        temperature: float = 0.2,
    ) -> None:
        """Initialize.

        Args:
            base_url: Ollama base URL (e.g. http://localhost:11434)
            model_name: model tag to run (e.g. qwen3:0.6b)
            timeout: request timeout in seconds
            temperature: sampling temperature passed in ``options``

        """
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.timeout = timeout
        self.temperature = temperature
        self.generate_url = f"{self.base_url}/api/generate"
        self.tags_url = f"{self.base_url}/api/tags"

    def is_available(self) -> bool:
        """Check that the Ollama server answers."""
        try:
            response = requests.get(self.tags_url, timeout=5)
        except requests.RequestException:
            return False
        else:
            status_code: int = response.status_code
            return status_code == HTTP_OK

    def generate(self, prompt: str, images: Sequence[bytes] = ()) -> str:
        """Run one non-streaming generation; images are sent base64-encoded."""
        payload = {
            "model": self.model_name,
            "prompt": prompt,
            "images": [base64.b64encode(img).decode("ascii") for img in images],
            "stream": False,
            "options": {"temperature": self.temperature},
        }

        try:
            response = requests.post(
                self.generate_url,
                json=payload,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
        except requests.exceptions.Timeout:
            logger.warning("Ollama request timed out | model=%s", self.model_name)
            return ""
        except requests.RequestException as exc:
            logger.warning("Ollama request failed | model=%s | %s", self.model_name, exc)
            return ""

        if response.status_code != HTTP_OK:
            logger.warning(
                "Ollama returned HTTP %s | model=%s",
                response.status_code,
                self.model_name,
            )
            return ""

        try:
            data = response.json()
        except ValueError:
            logger.warning("Ollama returned non-JSON body | model=%s", self.model_name)
            return ""

        text = data.get("response") if isinstance(data, dict) else None
        return text.strip() if isinstance(text, str) else ""

