"""Tests for front-matter splitting, decoding and serialization."""

import math
from datetime import date, datetime

import pytest

from catalog import ParseError, load_front_matter, parse_document, serialize_front_matter, split_front_matter
from catalog.schema import validate_metadata


class TestSplitFrontMatter:
    """Tests for locating the delimited block."""

    def test_basic_split(self):
        block, body = split_front_matter('---\nname: "x"\n---\n# Title\n\nText\n')
        assert block == 'name: "x"\n'
        assert body == "# Title\n\nText\n"

    def test_empty_body_is_valid(self):
        block, body = split_front_matter('---\nname: "x"\n---\n')
        assert block == 'name: "x"\n'
        assert body == ""

    def test_closing_delimiter_without_newline(self):
        block, body = split_front_matter('---\nname: "x"\n---')
        assert block == 'name: "x"\n'
        assert body == ""

    def test_whitespace_only_body(self):
        _, body = split_front_matter('---\nname: "x"\n---\n   \n\n')
        assert body.strip() == ""

    def test_trailing_whitespace_around_delimiters(self):
        block, body = split_front_matter('---   \nname: "x"\n---\t\nbody\n')
        assert block == 'name: "x"\n'
        assert body == "body\n"

    def test_crlf_line_endings(self):
        block, body = split_front_matter('---\r\nname: "x"\r\n---\r\nbody\r\n')
        assert load_front_matter(block) == {"name": "x"}
        assert body == "body\r\n"

    def test_byte_order_mark_is_ignored(self):
        block, _ = split_front_matter('\ufeff---\nname: "x"\n---\n')
        assert block == 'name: "x"\n'

    def test_later_delimiters_stay_in_body(self):
        _, body = split_front_matter('---\nname: "x"\n---\nintro\n---\nmore\n')
        assert body == "intro\n---\nmore\n"

    def test_missing_opening_delimiter(self):
        with pytest.raises(ParseError) as exc_info:
            split_front_matter('# Title\n---\nname: "x"\n---\n', source_ref="docs/a.md")
        assert exc_info.value.source_ref == "docs/a.md"
        assert "docs/a.md" in str(exc_info.value)

    def test_indented_delimiter_is_not_a_delimiter(self):
        with pytest.raises(ParseError):
            split_front_matter('   ---\nname: "x"\n---\n')

    def test_indented_closing_line_stays_in_block(self):
        with pytest.raises(ParseError, match="not closed"):
            split_front_matter('---\nname: "x"\n  ---\n')

    def test_delimiter_not_at_start(self):
        with pytest.raises(ParseError):
            split_front_matter('\n---\nname: "x"\n---\n')

    def test_unclosed_block(self):
        with pytest.raises(ParseError, match="not closed"):
            split_front_matter('---\nname: "x"\n# Title\n')

    def test_empty_text(self):
        with pytest.raises(ParseError):
            split_front_matter("")


class TestLoadFrontMatter:
    """Tests for decoding the YAML block."""

    def test_flow_sequence_and_quoted_strings(self):
        data = load_front_matter('name: "A: B"\ntags: ["react", "typescript"]\n')
        assert data == {"name": "A: B", "tags": ["react", "typescript"]}

    def test_comments_are_ignored(self):
        data = load_front_matter('authorUrl: "https://x.dev"          # optional\n')
        assert data == {"authorUrl": "https://x.dev"}

    def test_empty_block_is_empty_mapping(self):
        assert load_front_matter("") == {}

    def test_invalid_yaml(self):
        with pytest.raises(ParseError, match="not valid YAML"):
            load_front_matter('name: "unterminated\ntags: [a, b\n')

    def test_non_mapping_block(self):
        with pytest.raises(ParseError, match="mapping"):
            load_front_matter("- just\n- a list\n")

    def test_non_string_keys_become_strings(self):
        assert load_front_matter("1: one\n") == {"1": "one"}

    def test_parse_document(self):
        fields, body = parse_document('---\nname: "x"\n---\nbody\n')
        assert fields == {"name": "x"}
        assert body == "body\n"


class TestSerializeFrontMatter:
    """Tests for writing the on-disk layout."""

    def test_layout(self):
        text = serialize_front_matter(
            {"name": "x", "tags": ["a", "b"], "lastUpdated": date(2024, 1, 2)},
            "# Body\n",
        )
        assert text == '---\nname: "x"\ntags: ["a", "b"]\nlastUpdated: 2024-01-02\n---\n# Body\n'

    def test_none_is_written_as_null(self):
        text = serialize_front_matter({"name": "x", "note": None})
        assert 'note: null' in text
        assert parse_document(text)[0] == {"name": "x", "note": None}

    @pytest.mark.parametrize(
        "value",
        [
            "plain",
            "",
            "multi\nline \"quoted\" \\ text",
            "yes",
            "2024-01-01",
            "tab\tand \x7f delete \x85 next-line \u2028 separator",
            42,
            -7,
            3.5,
            1e20,
            -2.5e-07,
            float("inf"),
            True,
            False,
            None,
            date(2024, 1, 1),
            datetime(2024, 1, 1, 12, 30, 5),
            [1, "two", None, date(2023, 5, 6)],
            {"when": date(2024, 1, 1), "nested": {"n": None, 1: "one", "yes": [True]}},
        ],
    )
    def test_value_round_trip(self, value):
        text = serialize_front_matter({"extra": value, "key with space": value})
        fields, _ = parse_document(text)
        assert fields == {"extra": value, "key with space": value}

    def test_nan_round_trip(self):
        fields, _ = parse_document(serialize_front_matter({"ratio": float("nan")}))
        assert math.isnan(fields["ratio"])

    @pytest.mark.parametrize("key", ["null", "yes", "on", "true", "1", "a: b", "#hash"])
    def test_keys_that_need_quoting(self, key):
        fields, _ = parse_document(serialize_front_matter({key: "v"}))
        assert fields == {key: "v"}

    def test_round_trip_with_special_characters(self, make_text, today):
        text = make_text(
            body="# Body\n\n---\n\nStill body.\n",
            name='Quotes " and \\ backslashes',
            description="Line one\nline two: with colon # and hash",
            category="后端服务",
            tags=["c++", "C#", "yaml: tricky"],
        )
        fields, body = parse_document(text)
        metadata = validate_metadata(fields, today=today)

        assert metadata.name == 'Quotes " and \\ backslashes'
        assert metadata.description == "Line one\nline two: with colon # and hash"
        assert metadata.category == "后端服务"
        assert metadata.tags == ("c++", "C#", "yaml: tricky")
        assert body == "# Body\n\n---\n\nStill body.\n"

        again = serialize_front_matter(metadata.to_front_matter(), body)
        fields_again, body_again = parse_document(again)
        assert validate_metadata(fields_again, today=today) == metadata
        assert body_again == body
