from focusbuddy.api.services.chunker import (
    MAX_UNIT_CHARS,
    build_context_unit,
    decompose,
    split_text,
)
from focusbuddy.model.models import TextExtraction, UnitKind


class TestContextUnit:
    """Context unit built from app / title / URLs"""

    def test_all_fields(self):
        extraction = TextExtraction(
            active_app="YouTube",
            window_title="Funny Cats",
            urls=("youtube.com/watch?v=1",),
        )
        unit = build_context_unit(extraction)

        assert unit is not None
        assert unit.kind is UnitKind.CONTEXT
        assert unit.content == (
            "App: YouTube | Window: Funny Cats | URLs: youtube.com/watch?v=1"
        )

    def test_only_first_three_urls(self):
        extraction = TextExtraction(urls=("a.com", "b.com", "c.com", "d.com"))
        unit = build_context_unit(extraction)

        assert unit is not None
        assert unit.content == "URLs: a.com, b.com, c.com"

    def test_blank_fields_are_skipped(self):
        extraction = TextExtraction(active_app="  ", window_title="Editor")
        unit = build_context_unit(extraction)

        assert unit is not None
        assert unit.content == "Window: Editor"

    def test_no_fields(self):
        assert build_context_unit(TextExtraction()) is None


class TestSplitText:
    def test_short_text_unchanged(self):
        text = "  Draft intro. Then the methods section!\n"
        assert split_text(text) == [text]

    def test_exactly_limit_is_one_chunk(self):
        text = "x" * MAX_UNIT_CHARS
        assert split_text(text) == [text]

    def test_blank_text(self):
        assert split_text("") == []
        assert split_text(" \n\t ") == []

    def test_long_text_splits_on_sentences(self):
        sentence = "This sentence is exactly forty chars ok."
        assert len(sentence) == 40
        text = " ".join([sentence] * 40)  # ~1640 chars

        chunks = split_text(text)

        assert len(chunks) == 2
        for chunk in chunks:
            assert len(chunk) <= MAX_UNIT_CHARS
            # every chunk ends at a sentence boundary
            assert chunk.endswith(".")
            assert chunk.startswith("This")

    def test_later_text_is_dropped(self):
        text = "".join(f"Sentence number {i:03d} is here. " for i in range(100))
        chunks = split_text(text)

        assert len(chunks) == 2
        assert "Sentence number 099" not in " ".join(chunks)

    def test_run_on_sentence_is_hard_split(self):
        text = "a" * 1500
        chunks = split_text(text)

        assert chunks == ["a" * 600, "a" * 600]

    def test_newline_is_a_terminator(self):
        lines = [f"line {i} " + "w" * 90 for i in range(10)]
        text = "\n".join(lines)
        assert len(text) > MAX_UNIT_CHARS

        chunks = split_text(text)

        assert chunks[0].startswith("line 0")
        assert all(len(c) <= MAX_UNIT_CHARS for c in chunks)
        # no line is cut in the middle
        for chunk in chunks:
            for piece in chunk.split("\n"):
                assert piece.strip() in {line.strip() for line in lines}


class TestDecompose:
    def test_empty_extraction_yields_nothing(self):
        extraction = TextExtraction(
            active_app="", window_title="", urls=(), text=""
        )
        assert decompose(extraction) == []

    def test_whitespace_only_yields_nothing(self):
        extraction = TextExtraction(active_app=" ", window_title="\t", text="  \n ")
        assert decompose(extraction) == []

    def test_context_only(self, distracted_extraction):
        units = decompose(distracted_extraction)

        assert len(units) == 1
        assert units[0].kind is UnitKind.CONTEXT
        assert "App: YouTube" in units[0].content
        assert "youtube.com/watch?v=1" in units[0].content

    def test_context_and_content(self, productive_extraction):
        units = decompose(productive_extraction)

        assert [u.kind for u in units] == [UnitKind.CONTEXT, UnitKind.CONTENT]
        assert units[1].content == productive_extraction.text

    def test_at_most_three_units(self):
        extraction = TextExtraction(
            active_app="Code",
            window_title="notes.md",
            text="Word. " * 1000,
        )
        units = decompose(extraction)

        assert len(units) == 3
        assert [u.kind for u in units].count(UnitKind.CONTENT) == 2
        assert all(u.content for u in units)
