"""Tests for the incremental patch-stream decoder."""

import json

import pytest

from knitspace.errors import DecodeSkew
from knitspace.flatten import tree_to_flat_spec
from knitspace.patch_stream import SpecStreamDecoder, apply_patch, parse_patch_line, parse_pointer

CARD_LINE = '{"op":"add","path":"/root","value":{"type":"Card","props":{},"children":[]}}'
TEXT_LINE = '{"op":"add","path":"/root/children/0","value":{"type":"Text","props":{"text":"hi"},"children":[]}}'

PAYLOAD = "\n".join(
    [
        CARD_LINE,
        TEXT_LINE,
        '{"op":"add","path":"/root/children/-","value":{"type":"Text","props":{"text":"é ✓"},"children":[]}}',
        '{"op":"replace","path":"/root/props","value":{"title":"Piece"}}',
        '{"op":"add","path":"/state/rows","value":12}',
        '{"op":"remove","path":"/root/children/1"}',
    ]
) + "\n"


def decode(*chunks):
    decoder = SpecStreamDecoder()
    for chunk in chunks:
        decoder.push(chunk)
    return decoder.get_result()


class TestChunking:
    def test_single_chunk(self):
        result = decode(PAYLOAD)
        assert result["root"]["type"] == "Card"
        assert result["root"]["props"] == {"title": "Piece"}
        assert [child["props"]["text"] for child in result["root"]["children"]] == ["hi"]
        assert result["state"] == {"rows": 12}

    def test_every_split_point_gives_the_same_tree(self):
        expected = decode(PAYLOAD)
        for offset in range(len(PAYLOAD) + 1):
            assert decode(PAYLOAD[:offset], PAYLOAD[offset:]) == expected, offset

    def test_character_by_character(self):
        assert decode(*PAYLOAD) == decode(PAYLOAD)

    def test_partial_line_waits_for_newline(self):
        decoder = SpecStreamDecoder()
        update = decoder.push(CARD_LINE[:20])
        assert not update.changed
        assert update.result is None
        assert decoder.get_result() == {}
        assert decoder.pending_text == CARD_LINE[:20]

        update = decoder.push(CARD_LINE[20:] + "\n")
        assert update.changed
        assert update.result["root"]["type"] == "Card"
        assert len(update.new_patches) == 1

    def test_crlf_line_endings(self):
        assert decode(PAYLOAD.replace("\n", "\r\n")) == decode(PAYLOAD)

    def test_finish_applies_unterminated_tail(self):
        decoder = SpecStreamDecoder()
        decoder.push(CARD_LINE)
        assert decoder.get_result() == {}
        update = decoder.finish()
        assert update.changed
        assert decoder.get_result()["root"]["type"] == "Card"
        assert decoder.pending_text == ""

    def test_result_is_a_snapshot(self):
        decoder = SpecStreamDecoder()
        update = decoder.push(CARD_LINE + "\n")
        update.result["root"]["type"] = "Changed"
        assert decoder.get_result()["root"]["type"] == "Card"


class TestMalformedLines:
    @pytest.mark.parametrize(
        "bad_line",
        [
            "{not json",
            "[1, 2, 3]",
            '"just a string"',
            '{"op":"add"}',
            '{"op":"add","path":"no-slash","value":1}',
            '{"op":"move","path":"/root","from":"/state"}',
        ],
    )
    def test_invalid_line_does_not_change_the_tree(self, bad_line):
        clean = decode(CARD_LINE + "\n" + TEXT_LINE + "\n")
        noisy = SpecStreamDecoder()
        noisy.push(CARD_LINE + "\n" + bad_line + "\n" + TEXT_LINE + "\n")
        assert noisy.get_result() == clean

    def test_deeply_nested_line_is_skipped(self):
        deep = '{"op":"add","path":"/root","value":' + "[" * 100000 + "]" * 100000 + "}"
        decoder = SpecStreamDecoder()
        decoder.push(CARD_LINE + "\n" + deep + "\n" + TEXT_LINE + "\n")
        assert decoder.skipped_lines == 1
        assert decoder.get_result() == decode(CARD_LINE + "\n" + TEXT_LINE + "\n")

    def test_deeply_nested_line_is_a_decode_skew(self):
        with pytest.raises(DecodeSkew):
            parse_patch_line("[" * 100000 + "]" * 100000)

    def test_empty_root_object_flattens(self):
        result = decode('{"op":"add","path":"/root","value":{}}\n')
        assert result == {"root": {}}
        assert tree_to_flat_spec(result).root == "node-0"

    def test_skipped_lines_are_counted(self):
        decoder = SpecStreamDecoder()
        decoder.push("garbage\n\n" + CARD_LINE + "\n")
        assert decoder.skipped_lines == 1

    def test_stream_without_valid_lines_stays_empty(self):
        decoder = SpecStreamDecoder()
        update = decoder.push("nope\nstill nope\n")
        assert not update.changed
        assert decoder.get_result() == {}


class TestParsing:
    def test_parse_pointer_unescapes(self):
        assert parse_pointer("") == []
        assert parse_pointer("/a~1b/c~0d/0") == ["a/b", "c~d", "0"]

    def test_parse_pointer_rejects_relative(self):
        with pytest.raises(DecodeSkew):
            parse_pointer("root")

    def test_parse_patch_line(self):
        assert parse_patch_line(CARD_LINE)["path"] == "/root"

    @pytest.mark.parametrize("line", ["{", "1", '{"path":"/root"}', '{"op":"add","path":3}'])
    def test_parse_patch_line_rejects(self, line):
        with pytest.raises(DecodeSkew):
            parse_patch_line(line)


class TestApplyPatch:
    def test_add_creates_intermediate_containers(self):
        document = {}
        assert apply_patch(document, {"op": "add", "path": "/root/children/0/props/text", "value": "hi"})
        assert document == {"root": {"children": [{"props": {"text": "hi"}}]}}

    def test_add_inserts_into_arrays(self):
        document = {"items": [1, 3]}
        apply_patch(document, {"op": "add", "path": "/items/1", "value": 2})
        apply_patch(document, {"op": "add", "path": "/items/-", "value": 4})
        apply_patch(document, {"op": "add", "path": "/items/10", "value": 5})
        assert document["items"] == [1, 2, 3, 4, 5]

    def test_replace_and_remove_missing_paths_are_noops(self):
        document = {"root": {"props": {}}}
        assert not apply_patch(document, {"op": "replace", "path": "/root/type", "value": "X"})
        assert not apply_patch(document, {"op": "remove", "path": "/root/children/0"})
        assert not apply_patch(document, {"op": "remove", "path": "/missing/deep/path"})
        assert document == {"root": {"props": {}}}

    def test_walking_through_a_scalar_is_a_noop(self):
        document = {"root": "text"}
        assert not apply_patch(document, {"op": "add", "path": "/root/props/a", "value": 1})
        assert document == {"root": "text"}

    def test_replace_and_remove(self):
        document = {"root": {"type": "Card", "children": ["a", "b"]}}
        apply_patch(document, {"op": "replace", "path": "/root/type", "value": "Stack"})
        apply_patch(document, {"op": "remove", "path": "/root/children/0"})
        assert document == {"root": {"type": "Stack", "children": ["b"]}}

    def test_replace_whole_document(self):
        document = {"root": {"type": "Card"}}
        assert apply_patch(document, {"op": "replace", "path": "", "value": {"state": {}}})
        assert document == {"state": {}}
        assert not apply_patch(document, {"op": "replace", "path": "", "value": [1]})

    def test_escaped_keys(self):
        document = {}
        apply_patch(document, {"op": "add", "path": "/state/a~1b", "value": json.loads("true")})
        assert document == {"state": {"a/b": True}}

    def test_unknown_op_is_skipped(self):
        document = {}
        assert not apply_patch(document, {"op": "copy", "path": "/root", "from": "/state"})
        assert document == {}


def test_end_to_end_card_with_text():
    decoder = SpecStreamDecoder()
    decoder.push(CARD_LINE + "\n")
    decoder.push(TEXT_LINE + "\n")
    flat = tree_to_flat_spec(decoder.get_result())

    root = flat.elements[flat.root]
    assert root.type == "Card"
    assert len(root.children) == 1
    child = flat.elements[root.children[0]]
    assert child.type == "Text"
    assert child.props["text"] == "hi"
