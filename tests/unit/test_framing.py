"""Unit tests for line framing and record decoding."""

import pytest

from touchportal_client.errors import MessageDecodeError
from touchportal_client.protocol.framing import LineFramer, parse_record

STREAM = '{"type":"info","a":1}\r\n{"type":"action","id":"x"}\n\n{"type":"up"}\r{"type":"down"}\n'


def feed_all(framer: LineFramer, chunks: list[str]) -> list[str]:
    lines: list[str] = []
    for chunk in chunks:
        lines.extend(framer.feed(chunk))
    return lines


# =============================================================================
# Boundaries
# =============================================================================


class TestBoundaries:
    """Each line ending style terminates a message."""

    def test_lf(self):
        assert LineFramer().feed('{"a":1}\n{"b":2}\n') == ['{"a":1}', '{"b":2}']

    def test_crlf(self):
        assert LineFramer().feed('{"a":1}\r\n{"b":2}\r\n') == ['{"a":1}', '{"b":2}']

    def test_cr(self):
        assert LineFramer().feed('{"a":1}\r{"b":2}\r') == ['{"a":1}', '{"b":2}']

    def test_mixed(self):
        assert LineFramer().feed(STREAM) == [
            '{"type":"info","a":1}',
            '{"type":"action","id":"x"}',
            '{"type":"up"}',
            '{"type":"down"}',
        ]

    def test_empty_lines_skipped(self):
        framer = LineFramer()
        assert framer.feed('\n\r\n\r{"a":1}\n\n\n{"b":2}\r\n\r\n') == ['{"a":1}', '{"b":2}']
        assert framer.pending == ""

    def test_empty_chunk(self):
        framer = LineFramer()
        assert framer.feed("") == []
        assert framer.pending == ""


# =============================================================================
# Buffering across chunks
# =============================================================================


class TestBuffering:
    """Partial lines are held until their boundary arrives."""

    def test_partial_line_buffered(self):
        framer = LineFramer()
        assert framer.feed('{"type":"do') == []
        assert framer.pending == '{"type":"do'
        assert framer.feed('wn"}') == []
        assert framer.feed("\n") == ['{"type":"down"}']
        assert framer.pending == ""

    def test_crlf_split_across_chunks(self):
        """CR at the end of one chunk and LF at the start of the next is one boundary."""
        framer = LineFramer()
        assert framer.feed('{"a":1}\r') == ['{"a":1}']
        assert framer.feed('\n{"b":2}\n') == ['{"b":2}']
        assert framer.pending == ""

    def test_lone_lf_chunk_after_cr(self):
        framer = LineFramer()
        assert framer.feed('{"a":1}\r') == ['{"a":1}']
        assert framer.feed("\n") == []
        assert framer.feed('{"b":2}\n') == ['{"b":2}']

    def test_cr_then_new_message(self):
        framer = LineFramer()
        assert framer.feed('{"a":1}\r') == ['{"a":1}']
        assert framer.feed('{"b":2}\r') == ['{"b":2}']

    def test_lf_not_swallowed_without_preceding_cr(self):
        framer = LineFramer()
        assert framer.feed('{"a":1}') == []
        assert framer.feed('\n{"b":2}\n') == ['{"a":1}', '{"b":2}']

    def test_reset_drops_partial(self):
        framer = LineFramer()
        framer.feed('{"partial"')
        framer.reset()
        assert framer.pending == ""
        assert framer.feed('{"a":1}\n') == ['{"a":1}']

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 11, 64])
    def test_chunk_boundary_invariance(self, size):
        """Any chunking of the stream yields the same lines as one chunk."""
        whole = LineFramer().feed(STREAM)
        chunks = [STREAM[i : i + size] for i in range(0, len(STREAM), size)]
        assert feed_all(LineFramer(), chunks) == whole

    def test_every_split_point(self):
        whole = LineFramer().feed(STREAM)
        for i in range(len(STREAM) + 1):
            assert feed_all(LineFramer(), [STREAM[:i], STREAM[i:]]) == whole, i


# =============================================================================
# Record decoding
# =============================================================================


class TestParseRecord:
    """Tests for parse_record."""

    def test_valid_record(self):
        assert parse_record('{"type":"info","x":[1,2]}') == {"type": "info", "x": [1, 2]}

    def test_unicode_preserved(self):
        assert parse_record('{"type":"broadcast","text":"日本語 🎌"}')["text"] == "日本語 🎌"

    def test_invalid_json(self):
        with pytest.raises(MessageDecodeError) as exc_info:
            parse_record("not json")
        assert exc_info.value.line == "not json"

    def test_non_object(self):
        with pytest.raises(MessageDecodeError, match="JSON object"):
            parse_record("[1, 2, 3]")

    def test_missing_type(self):
        with pytest.raises(MessageDecodeError, match="type"):
            parse_record('{"id": "x"}')

    def test_non_string_type(self):
        with pytest.raises(MessageDecodeError):
            parse_record('{"type": 5}')


class TestRecords:
    """records() isolates decode failures to a single line."""

    def test_bad_line_does_not_drop_neighbours(self):
        framer = LineFramer()
        results = list(framer.records('{"type":"action"}\n{broken\n{"type":"up"}\n'))

        assert [line for line, _ in results] == ['{"type":"action"}', "{broken", '{"type":"up"}']
        assert results[0][1] == {"type": "action"}
        assert isinstance(results[1][1], MessageDecodeError)
        assert results[2][1] == {"type": "up"}

    def test_later_chunks_unaffected(self):
        framer = LineFramer()
        first = list(framer.records("garbage\n"))
        second = list(framer.records('{"type":"broadcast"}\n'))

        assert isinstance(first[0][1], MessageDecodeError)
        assert second == [('{"type":"broadcast"}', {"type": "broadcast"})]

    def test_buffer_updated_before_iteration(self):
        """Framing happens on call, even if the iterator is never consumed."""
        framer = LineFramer()
        framer.records('{"type":"a"}\n{"type":"b')
        assert framer.pending == '{"type":"b'
