"""Tests for rye.ui.streaming: the markdown boundary buffer."""

from __future__ import annotations

import pytest

from rye.types.messages import Flush
from rye.ui.streaming import BoundaryBuffer, BufferMode


def _run(deltas: list[str]) -> tuple[list[Flush], Flush]:
    buf = BoundaryBuffer()
    flushes: list[Flush] = []
    for delta in deltas:
        flushes.extend(buf.consume(delta))
    return flushes, buf.finalize()


def _chunks(text: str, size: int) -> list[str]:
    return [text[i:i + size] for i in range(0, len(text), size)]


SAMPLES = [
    "## Notes\n- a\n- b\n\nDone.",
    "Intro text\nmore intro\n\n```python\ndef f():\n\n    return 1\n```\nAfter the code.\n",
    "# Title\nParagraph right under the title.\n## Sub\n1. one\n2. two\n   continued\n\nEnd",
    "Unclosed fence below\n~~~\ncode that never ends\n# not a heading\n",
    "\n\n\nLeading blanks\r\nwith CRLF\r\n\r\n* star\n+ plus\nlazy line\n",
    "````md\n```\nnested\n```\n````\n- item after fence\n",
]


class TestFlushBoundaries:
    def test_heading_flushes_on_its_own(self):
        buf = BoundaryBuffer()
        assert buf.consume("## Notes\n") == [Flush("## Notes\n", "heading")]

    def test_prose_before_heading_is_flushed_first(self):
        flushes, final = _run(["Some prose\n", "### Heading\n"])
        assert [f.text for f in flushes] == ["Some prose\n", "### Heading\n"]
        assert final.text == ""

    def test_list_accumulates_until_blank_line(self):
        flushes, final = _run(["## Notes\n", "- a\n", "- b\n\n", "Done."])
        assert flushes == [
            Flush("## Notes\n", "heading"),
            Flush("- a\n- b\n\n", "blank"),
        ]
        assert final == Flush("Done.", "final")

    def test_list_flushes_when_a_non_list_line_follows(self):
        flushes, final = _run(["- a\n- b\n", "After\n", "\n"])
        assert flushes == [Flush("- a\n- b\n", "list"), Flush("After\n\n", "blank")]
        assert final.text == ""

    def test_ordered_list_with_continuation_lines(self):
        buf = BoundaryBuffer()
        assert buf.consume("1. one\n   more of one\n2) two\n") == []
        assert buf.mode is BufferMode.LIST
        assert buf.consume("# Next\n") == [
            Flush("1. one\n   more of one\n2) two\n", "list"),
            Flush("# Next\n", "heading"),
        ]

    def test_plain_lines_wait_for_a_boundary(self):
        buf = BoundaryBuffer()
        assert buf.consume("line one\nline two\n") == []
        assert buf.pending == "line one\nline two\n"

    def test_blank_line_alone_is_flushed(self):
        buf = BoundaryBuffer()
        assert buf.consume("\n") == [Flush("\n", "blank")]

    def test_hashtag_is_not_a_heading(self):
        buf = BoundaryBuffer()
        assert buf.consume("#hashtag text\n") == []

    def test_thematic_break_is_not_a_list_item(self):
        buf = BoundaryBuffer()
        buf.consume("---\n")
        assert buf.mode is BufferMode.NORMAL

    def test_crlf_heading(self):
        buf = BoundaryBuffer()
        assert buf.consume("# Title\r\n") == [Flush("# Title\r\n", "heading")]


class TestDeltaSplits:
    def test_newline_split_across_deltas(self):
        flushes, _ = _run(["Hello", " world", "\n", "\n"])
        assert flushes == [Flush("Hello world\n\n", "blank")]

    def test_empty_delta_is_a_no_op(self):
        buf = BoundaryBuffer()
        assert buf.consume("") == []
        assert buf.pending == ""

    @pytest.mark.parametrize("sample", SAMPLES)
    @pytest.mark.parametrize("size", [1, 2, 5, 13, 1000])
    def test_flushes_reproduce_input_exactly(self, sample: str, size: int):
        flushes, final = _run(_chunks(sample, size))
        assert "".join(f.text for f in flushes) + final.text == sample

    @pytest.mark.parametrize("sample", SAMPLES)
    def test_flushes_do_not_depend_on_chunking(self, sample: str):
        whole, _ = _run([sample])
        by_char, _ = _run(list(sample))
        assert whole == by_char


class TestFences:
    def test_split_opening_delimiter_yields_one_flush(self):
        buf = BoundaryBuffer()
        events: list[Flush] = []
        for delta in ["``", "`py\n", "x = 1\n", "\n", "# comment\n", "```\n"]:
            got = buf.consume(delta)
            if delta != "```\n":
                assert got == []
            events.extend(got)
        assert events == [Flush("```py\nx = 1\n\n# comment\n```\n", "fence")]

    def test_pending_prose_is_flushed_before_the_fence(self):
        flushes, _ = _run(["Intro\n", "```\n", "code\n", "```\n"])
        assert flushes == [Flush("Intro\n", "fence"), Flush("```\ncode\n```\n", "fence")]

    def test_list_before_fence_is_flushed_as_list(self):
        flushes, _ = _run(["- a\n", "```\n", "code\n", "```\n"])
        assert flushes[0] == Flush("- a\n", "list")

    def test_unclosed_fence_flushes_once_at_finalize(self):
        deltas = ["```sh\n", "echo hi\n", "\n", "## still code\n"]
        flushes, final = _run(deltas)
        assert flushes == []
        assert final == Flush("".join(deltas), "final")

    def test_fence_state_is_tracked(self):
        buf = BoundaryBuffer()
        buf.consume("~~~~\n")
        assert buf.mode is BufferMode.FENCE
        assert buf.fence == "~~~~"

    def test_shorter_or_different_delimiter_does_not_close(self):
        buf = BoundaryBuffer()
        assert buf.consume("````\n```\n~~~~\n") == []
        assert buf.consume("`````\n") == [Flush("````\n```\n~~~~\n`````\n", "fence")]
        assert buf.mode is BufferMode.NORMAL

    def test_finalize_resets_state(self):
        buf = BoundaryBuffer()
        buf.consume("```\nopen")
        buf.finalize()
        assert buf.mode is BufferMode.NORMAL
        assert buf.fence is None
        assert buf.finalize() == Flush("", "final")
