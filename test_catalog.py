"""Tests for the component catalog and prompt."""

from knitspace.catalog import (
    CATALOG,
    FALLBACK_YARN_COLOR,
    PieceCardProps,
    build_system_prompt,
    describe_props,
    normalize_piece_card_props,
    validate_props,
)

PIECE = {
    "name": "Lucky Star",
    "quantity": 2,
    "yarn": "Worsted weight wool",
    "yarnColor": "#AABBCC",
    "instructions": ["Cast on 20", "Knit 10 rows"],
}


class TestPrompt:
    def test_lists_protocol_and_components(self):
        prompt = build_system_prompt()
        lines = prompt.splitlines()
        assert lines[0] == "You are a UI generator that outputs JSON."
        assert "OUTPUT FORMAT (JSONL, RFC 6902 JSON Patch):" in lines
        assert "AVAILABLE COMPONENTS:" in lines
        assert "- PatternCarousel: props {}. Vertical carousel container for knitting piece cards." in lines
        piece_line = next(line for line in lines if line.startswith("- PieceCard:"))
        assert "quantity?: number" in piece_line
        assert "yarnColor: string" in piece_line
        assert "instructions: string[]" in piece_line

    def test_custom_system_and_rules(self):
        prompt = build_system_prompt("You are an expert knitter.", ["Keep it short."])
        assert prompt.startswith("You are an expert knitter.\n")
        assert prompt.endswith("RULES:\n- Keep it short.")

    def test_describe_props_uses_aliases(self):
        assert "yarnColor" in describe_props(PieceCardProps)
        assert "yarn_color" not in describe_props(PieceCardProps)

    def test_catalog_names(self):
        assert set(CATALOG) == {"PatternCarousel", "PieceCard"}


class TestValidation:
    def test_valid_piece(self):
        props = validate_props("PieceCard", PIECE)
        assert isinstance(props, PieceCardProps)
        assert props.yarn_color == "#AABBCC"

    def test_bad_colour_is_rejected(self):
        assert validate_props("PieceCard", dict(PIECE, yarnColor="blue")) is None

    def test_empty_instructions_are_rejected(self):
        assert validate_props("PieceCard", dict(PIECE, instructions=[])) is None

    def test_unknown_component(self):
        assert validate_props("Spaceship", {}) is None


class TestNormalize:
    def test_complete_props(self):
        props = normalize_piece_card_props(PIECE)
        assert props["quantity"] == 2
        assert props["showQuantity"] is True
        assert props["yarnColor"] == "#AABBCC"
        assert props["instructions"] == ["Cast on 20", "Knit 10 rows"]

    def test_partial_props_get_defaults(self):
        props = normalize_piece_card_props({"name": "Special Snowflake", "yarnColor": "#ABC"})
        assert props["quantity"] == 1
        assert props["showQuantity"] is False
        assert props["yarnColor"] == FALLBACK_YARN_COLOR
        assert props["yarn"] == ""
        assert props["instructions"] == []

    def test_instruction_coercion(self):
        props = normalize_piece_card_props(
            dict(PIECE, instructions=["Knit", {"text": "Purl"}, {"step": 3}, 7])
        )
        assert props["instructions"] == ["Knit", "Purl", '{"step": 3}', "7"]
