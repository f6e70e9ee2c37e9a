import time
from io import BytesIO
from typing import cast

import mss  # pyright: ignore[reportMissingImports]
from PIL import Image  # pyright: ignore[reportMissingImports]

from focusbuddy.watchers.logger import logger


class ScreenCapture:
    """Grab the primary monitor as a Pillow image or PNG bytes."""

    def __init__(self, bbox: dict[str, int] | None = None) -> None:
        """Initialize.

        Args:
        bbox: capture region {"top": int, "left": int, "width": int, "height": int}
             None captures the whole primary monitor

        """
        self.bbox = bbox or self._get_primary_monitor_bbox()
        self.last_capture_time: float = 0.0
        logger.info("ScreenCapture initialized | bbox=%s", self.bbox)

    def _get_primary_monitor_bbox(self) -> dict[str, int]:
        with mss.mss() as sct:
            monitors = sct.monitors
            chosen = cast(
                "dict[str, int]",
                monitors[1] if len(monitors) > 1 else monitors[0],
            )
            logger.info("Monitors detected: %s | chosen=%s", len(monitors) - 1, chosen)
            return chosen

    def capture_image(self, max_width: int | None = None) -> Image.Image:
        """Capture the region, downscaled to ``max_width`` if it is wider."""
        with mss.mss() as sct:
            screenshot = sct.grab(self.bbox)
            image = Image.frombytes(
                "RGB", screenshot.size, screenshot.bgra, "raw", "BGRX"
            )
        self.last_capture_time = time.time()

        if max_width is not None and image.width > max_width:
            new_height = int(image.height / image.width * max_width)
            logger.debug(
                "Screen resized: %sx%s -> %sx%s",
                image.width,
                image.height,
                max_width,
                new_height,
            )
            image = image.resize((max_width, new_height), Image.Resampling.LANCZOS)
        return image

    def capture_png(self, max_width: int | None = None) -> bytes:
        """Capture and encode as PNG."""
        image = self.capture_image(max_width)
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
