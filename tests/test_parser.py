"""
MetaDB Condition Parser Tests
=============================
Tests for the condition mini-language (text -> Condition).

Focus:
1. Each operator is recognized and split correctly
2. Operator precedence order (== before >=, != before others)
3. Quoted vs bare literals
4. Error reporting for malformed conditions
"""

import pytest

from parser import parse, Condition, ConditionParseError, Operator, OPERATOR_ORDER


class TestParser:

    # ─── Empty ──────────────────────────────────────────────────────

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_matches_all(self, text):
        assert parse(text) is None

    # ─── Operators ──────────────────────────────────────────────────

    @pytest.mark.parametrize("text, op", [
        ("age == 10", Operator.EQ),
        ("age != 10", Operator.NEQ),
        ("age >= 10", Operator.GTE),
        ("age <= 10", Operator.LTE),
        ("age > 10", Operator.GT),
        ("age < 10", Operator.LT),
    ])
    def test_operators(self, text, op):
        cond = parse(text)
        assert cond == Condition(field="age", op=op, literal="10")

    def test_no_spaces(self):
        cond = parse("age>=10")
        assert cond.field == "age"
        assert cond.op == Operator.GTE
        assert cond.literal == "10"

    def test_operator_order(self):
        assert [op.value for op in OPERATOR_ORDER] == ["==", "!=", ">=", "<=", ">", "<"]

    def test_first_listed_operator_wins(self):
        """'==' is tried before '<', even though '<' occurs earlier in the text."""
        cond = parse("a < b == c")
        assert cond.op == Operator.EQ
        assert cond.field == "a < b"
        assert cond.literal == "c"

    def test_split_on_first_occurrence(self):
        cond = parse("x == 1 == 2")
        assert cond.field == "x"
        assert cond.literal == "1 == 2"

    # ─── Literals ───────────────────────────────────────────────────

    def test_double_quoted_literal(self):
        cond = parse('name == "Ann Lee"')
        assert cond.literal == "Ann Lee"
        assert cond.quoted is True

    def test_single_quoted_literal(self):
        cond = parse("name == 'ann'")
        assert cond.literal == "ann"
        assert cond.quoted is True

    def test_empty_quoted_literal(self):
        cond = parse('name == ""')
        assert cond.literal == ""
        assert cond.quoted is True

    def test_mismatched_quotes_kept(self):
        cond = parse("name == \"ann'")
        assert cond.literal == "\"ann'"
        assert cond.quoted is False

    def test_bare_literal(self):
        cond = parse("name == ann")
        assert cond.literal == "ann"
        assert cond.quoted is False

    def test_numeric_literal(self):
        assert parse("score <= -2.5").numeric_literal() == -2.5
        assert parse('score == "7"').numeric_literal() == 7.0

    def test_numeric_literal_rejects_text(self):
        with pytest.raises(ConditionParseError, match="not a number"):
            parse("age == abc").numeric_literal()

    def test_numeric_literal_rejects_nan(self):
        with pytest.raises(ConditionParseError, match="NaN"):
            parse("age == nan").numeric_literal()

    def test_str_roundtrip(self):
        cond = parse('name == "ann"')
        assert str(cond) == 'name == "ann"'
        assert parse(str(cond)) == cond

    # ─── Errors ─────────────────────────────────────────────────────

    def test_missing_operator(self):
        with pytest.raises(ConditionParseError, match="No comparison operator"):
            parse("age 10")

    def test_single_equals_is_not_an_operator(self):
        with pytest.raises(ConditionParseError):
            parse("age = 10")

    def test_missing_field(self):
        with pytest.raises(ConditionParseError, match="Missing field"):
            parse("== 10")

    def test_missing_literal(self):
        with pytest.raises(ConditionParseError, match="Missing literal"):
            parse("age >=   ")

    def test_error_carries_condition(self):
        with pytest.raises(ConditionParseError) as exc:
            parse("age ~ 3")
        assert exc.value.condition == "age ~ 3"
        assert "age ~ 3" in str(exc.value)
