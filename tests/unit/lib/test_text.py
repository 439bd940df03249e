"""Tests for message formatting helpers."""

from rt.lib.text import format_mapping, quote, quote_list


class TestQuote:
    """Tests for quote() and quote_list()."""

    def test_quote_wraps_in_double_quotes(self) -> None:
        """Test that values are double-quoted."""
        assert quote("random_thing_oink") == '"random_thing_oink"'

    def test_quote_escapes_inner_quotes(self) -> None:
        """Test that embedded quotes are escaped."""
        assert quote('a"b') == '"a\\"b"'

    def test_quote_list(self) -> None:
        """Test the bracketed, space separated list form."""
        assert (
            quote_list(["deployment_state", "remote_state"])
            == '["deployment_state" "remote_state"]'
        )
        assert quote_list([]) == "[]"


class TestFormatMapping:
    """Tests for format_mapping()."""

    def test_single_string_value(self) -> None:
        """Test the compact map form."""
        assert format_mapping({"key": "//yada/"}) == 'map["key":"//yada/"]'

    def test_keys_are_sorted(self) -> None:
        """Test that keys are rendered in sorted order."""
        assert format_mapping({"region": "eu", "bucket": "b"}) == (
            'map["bucket":"b" "region":"eu"]'
        )

    def test_nested_and_scalar_values(self) -> None:
        """Test nested mappings, lists, booleans and numbers."""
        rendered = format_mapping(
            {"a": {"b": "c"}, "d": ["e", 1], "f": True, "g": 2}
        )
        assert rendered == 'map["a":map["b":"c"] "d":["e" 1] "f":true "g":2]'

    def test_empty_mapping(self) -> None:
        """Test an empty mapping."""
        assert format_mapping({}) == "map[]"
