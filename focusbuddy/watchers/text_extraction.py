"""Text extraction for the quick cycle: window info + OCR + visible URLs."""

import re
import time
from collections.abc import Callable
from typing import Protocol

import pytesseract  # pyright: ignore[reportMissingImports]
from PIL import Image  # pyright: ignore[reportMissingImports]

from focusbuddy.model.models import TextExtraction
from focusbuddy.watchers.active_window import get_active_app
from focusbuddy.watchers.logger import logger
from focusbuddy.watchers.screen_capture import ScreenCapture

MAX_OCR_CHARS = 1500
OCR_HEAD_CHARS = 1000
OCR_TAIL_CHARS = 500
TRUNCATION_MARKER = "\n...[truncated]...\n"

URL_PATTERN = re.compile(
    r"(https?://[^\s]+)|(www\.[^\s]+)"
    r"|((?:[a-zA-Z0-9-]+\.)+(?:com|net|org|edu|gov|io|ai|co)\b[^\s]*)"
)


class TextSource(Protocol):
    def capture(self) -> TextExtraction: ...


def extract_urls(text: str) -> list[str]:
    """URL-looking tokens in order of appearance, without duplicates."""
    seen: dict[str, None] = {}
    for match in URL_PATTERN.finditer(text):
        seen.setdefault(match.group(0).rstrip(".,;:)]}'\""), None)
    return [url for url in seen if url]


def summarize_ocr_text(text: str) -> str:
    """Keep the top and the bottom of long OCR output."""
    if len(text) <= MAX_OCR_CHARS:
        return text
    return f"{text[:OCR_HEAD_CHARS]}{TRUNCATION_MARKER}{text[-OCR_TAIL_CHARS:]}"


def ocr_image(image: Image.Image) -> str:
    return str(pytesseract.image_to_string(image)).strip()


class ScreenTextWatcher:
    """Builds a :class:`TextExtraction` from the current screen."""

    def __init__(
        self,
        screen: ScreenCapture | None = None,
        window_getter: Callable[[], dict[str, str | None]] = get_active_app,
        ocr: Callable[[Image.Image], str] = ocr_image,
    ) -> None:
        self._screen = screen
        self._window_getter = window_getter
        self._ocr = ocr

    @property
    def screen(self) -> ScreenCapture:
        if self._screen is None:
            self._screen = ScreenCapture()
        return self._screen

    def capture(self) -> TextExtraction:
        """Never raises.

        A failed window lookup produces an empty extraction. A failed OCR
        pass only drops the screen text; app, title and title URLs are kept.
        """
        try:
            window = self._window_getter() or {}
            app = window.get("active_app") or ""
            title = window.get("title") or ""
        except Exception:
            logger.exception("Active window lookup failed")
            return TextExtraction.empty()

        try:
            raw_text = self._ocr(self.screen.capture_image())
        except Exception:
            logger.exception("OCR failed | app=%s", app)
            raw_text = ""

        urls = extract_urls(f"{title}\n{raw_text}")
        text = summarize_ocr_text(raw_text)
        preview = f"{text[:50]}..." if len(text) > 50 else text  # noqa: PLR2004
        logger.info("[OCR] %s - extracted %d chars: %s", app, len(raw_text), preview)

        return TextExtraction(
            active_app=app,
            window_title=title,
            urls=tuple(urls),
            text=text,
            timestamp=time.time(),
        )
