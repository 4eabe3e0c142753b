import json

from aibnk.api.llm.sse import SSEDecoder, encode_delta, encode_done, iter_sse_deltas


def _event(content):
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n\n"


def test_whole_events_yield_their_content():
    stream = _event("Your balance ") + _event("is AED 141,909.5") + "data: [DONE]\n\n"
    assert list(iter_sse_deltas([stream])) == ["Your balance ", "is AED 141,909.5"]


def test_event_split_across_chunks_is_reassembled():
    raw = _event("Hello") + _event("world")
    chunks = [raw[i:i + 7] for i in range(0, len(raw), 7)]
    assert list(iter_sse_deltas(chunks)) == ["Hello", "world"]


def test_crlf_comments_and_other_fields_are_ignored():
    decoder = SSEDecoder()
    chunk = ": keep-alive\r\nevent: message\r\n" + _event("ok").replace("\n", "\r\n")
    assert decoder.feed(chunk) == ["ok"]


def test_done_stops_decoding():
    decoder = SSEDecoder()
    assert decoder.feed("data: [DONE]\n" + _event("late")) == []
    assert decoder.done is True
    assert decoder.feed(_event("later")) == []


def test_role_only_and_empty_deltas_are_skipped():
    role = 'data: {"choices":[{"delta":{"role":"assistant"}}]}\n'
    empty = 'data: {"choices":[]}\n'
    assert list(iter_sse_deltas([role, empty, _event("x")])) == ["x"]


def test_partial_line_waits_for_more_input():
    decoder = SSEDecoder()
    line = _event("split").rstrip("\n")
    assert decoder.feed(line[:20]) == []
    assert decoder.feed(line[20:] + "\n") == ["split"]


def test_flush_drains_unterminated_tail():
    decoder = SSEDecoder()
    assert decoder.feed(_event("a") + _event("b").rstrip("\n")) == ["a"]
    assert decoder.flush() == ["b"]


def test_flush_drops_unparsable_tail():
    decoder = SSEDecoder()
    decoder.feed('data: {"choices": [')
    assert decoder.flush() == []


def test_encoders_match_the_decoder():
    assert list(iter_sse_deltas([encode_delta("Tschüss"), encode_done()])) == ["Tschüss"]
    assert encode_done() == "data: [DONE]\n\n"
