"""
Unit tests for the comma-separated ordered set.
"""

from secret_binding_operator.utils.commaseparated import CommaSeparated


class TestCommaSeparated:
    """Parsing, adding and removing values."""

    def test_empty_values(self):
        assert CommaSeparated().values() == []
        assert CommaSeparated("").values() == []
        assert str(CommaSeparated(None)) == ""

    def test_parse_drops_blanks_and_duplicates(self):
        assert CommaSeparated("a,,b, a ,c").values() == ["a", "b", "c"]

    def test_add_appends_in_order(self):
        value = CommaSeparated("o1").add("o2").add("o3")

        assert str(value) == "o1,o2,o3"

    def test_add_is_idempotent(self):
        value = CommaSeparated("o1,o2").add("o1").add("o2")

        assert str(value) == "o1,o2"

    def test_remove_keeps_others_in_order(self):
        value = CommaSeparated("o1,o2,o3").remove("o2")

        assert str(value) == "o1,o3"

    def test_remove_absent_value(self):
        assert str(CommaSeparated("o1").remove("o2")) == "o1"

    def test_contains(self):
        value = CommaSeparated("o1,o2")

        assert value.contains("o1")
        assert "o2" in value
        assert not value.contains("o")
        assert len(value) == 2

    def test_equality(self):
        assert CommaSeparated("a,b") == CommaSeparated("a, b")
        assert CommaSeparated("a,b") != CommaSeparated("b,a")
