"""Split a text extraction into a small, bounded set of analyzable units."""

import re

from focusbuddy.model.models import TextExtraction, Unit, UnitKind

MAX_UNIT_CHARS = 600
MAX_CONTENT_UNITS = 2
MAX_CONTEXT_URLS = 3
CONTEXT_SEPARATOR = " | "

# Split after each terminator so sentences keep their punctuation.
_SENTENCE_END = re.compile(r"(?<=[.!?\n])")


def build_context_unit(extraction: TextExtraction) -> Unit | None:
    """App / window / URL context as one unit, or None when all are blank."""
    parts: list[str] = []
    if extraction.active_app.strip():
        parts.append(f"App: {extraction.active_app.strip()}")
    if extraction.window_title.strip():
        parts.append(f"Window: {extraction.window_title.strip()}")
    urls = [u.strip() for u in extraction.urls if u.strip()][:MAX_CONTEXT_URLS]
    if urls:
        parts.append(f"URLs: {', '.join(urls)}")

    if not parts:
        return None
    return Unit(kind=UnitKind.CONTEXT, content=CONTEXT_SEPARATOR.join(parts))


def split_text(
    text: str,
    max_chars: int = MAX_UNIT_CHARS,
    max_chunks: int = MAX_CONTENT_UNITS,
) -> list[str]:
    """Greedily pack sentences into chunks of at most ``max_chars``.

    Text that fits in one chunk is returned unchanged. Only the first
    ``max_chunks`` chunks are produced; the rest of the text is dropped.
    """
    if not text.strip():
        return []
    if len(text) <= max_chars:
        return [text]

    chunks: list[str] = []
    current = ""

    def emit(piece: str) -> None:
        piece = piece.strip()
        if piece:
            chunks.append(piece)

    for sentence in _SENTENCE_END.split(text):
        if not sentence:
            continue
        if len(current) + len(sentence) > max_chars and current:
            emit(current)
            current = ""
            if len(chunks) >= max_chunks:
                return chunks
        # No terminator inside the window: hard split the run-on sentence.
        while len(sentence) > max_chars:
            emit(sentence[:max_chars])
            sentence = sentence[max_chars:]
            if len(chunks) >= max_chunks:
                return chunks
        current += sentence

    emit(current)
    return chunks[:max_chunks]


def decompose(extraction: TextExtraction) -> list[Unit]:
    """Return 0-3 units: one context unit and up to two content units."""
    units: list[Unit] = []

    context_unit = build_context_unit(extraction)
    if context_unit is not None:
        units.append(context_unit)

    units.extend(
        Unit(kind=UnitKind.CONTENT, content=chunk)
        for chunk in split_text(extraction.text)
    )
    return units
