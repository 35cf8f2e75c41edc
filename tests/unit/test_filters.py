"""
Unit tests for the query filter builder.
"""

import pytest

from mushaf.exceptions import ValidationError
from mushaf.storage.filters import Filter, FilterSet, Operator, escape_like


class TestFilter:
    """Test single constraints."""

    @pytest.mark.parametrize("operator,expected", [
        (Operator.EQ, "a.surah_id = ?"),
        (Operator.NE, "a.surah_id != ?"),
        (Operator.LT, "a.surah_id < ?"),
        (Operator.GE, "a.surah_id >= ?"),
    ])
    def test_comparison(self, operator, expected):
        assert Filter("a.surah_id", operator, 2).to_sql() == (expected, [2])

    def test_contains_escapes_wildcards(self):
        """Test that LIKE wildcards in user text are matched literally."""
        clause, params = Filter("t.text", Operator.CONTAINS, "50%_off").to_sql()
        assert clause == "t.text LIKE ? ESCAPE '\\'"
        assert params == ["%50\\%\\_off%"]

    def test_in(self):
        assert Filter("id", Operator.IN, [1, 2, 3]).to_sql() == ("id IN (?, ?, ?)", [1, 2, 3])

    def test_empty_in_matches_nothing(self):
        assert Filter("id", Operator.IN, []).to_sql() == ("0", [])

    def test_null_checks(self):
        assert Filter("approved_at", Operator.IS_NULL).to_sql() == ("approved_at IS NULL", [])
        assert Filter("approved_at", Operator.NOT_NULL).to_sql() == ("approved_at IS NOT NULL", [])

    def test_escape_like(self):
        assert escape_like("a\\b") == "a\\\\b"


class TestFilterSet:
    """Test conjunctions of constraints."""

    def test_empty_set(self):
        assert FilterSet(allowed={"id"}).to_sql() == ("1", [])

    def test_conjunction_keeps_order(self):
        fs = FilterSet(allowed={"t.source_id", "a.surah_id"})
        fs.where("a.surah_id", Operator.EQ, 1).where("t.source_id", "=", 3)
        assert fs.to_sql() == ("a.surah_id = ? AND t.source_id = ?", [1, 3])
        assert len(fs) == 2

    def test_where_if_skips_none(self):
        fs = FilterSet(allowed={"user_id", "action"})
        fs.where_if(None, "user_id").where_if("LOGIN", "action")
        assert fs.to_sql() == ("action = ?", ["LOGIN"])

    def test_disallowed_column(self):
        """Test that columns outside the whitelist never reach SQL."""
        with pytest.raises(ValidationError, match="not supported"):
            FilterSet(allowed={"id"}).where("id; DROP TABLE ayahs", Operator.EQ, 1)

    def test_unknown_operator(self):
        with pytest.raises(ValidationError, match="Unknown filter operator"):
            FilterSet(allowed={"id"}).where("id", "~", 1)

    def test_extend(self):
        fs = FilterSet(allowed={"id"}).extend([Filter("id", Operator.GT, 5)])
        assert fs.to_sql() == ("id > ?", [5])
