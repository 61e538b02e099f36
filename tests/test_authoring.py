"""
Tests for authoring: rule transitions and the FormBuilder session.

These tests verify:
    - NoRule / HasRule transitions, including the collapse on last removal
    - Transitions that are invalid in the current state are ignored
    - Field selection and per-question configuration
    - Form assembly and its preconditions
"""

import pytest
from formlogic.authoring import (
    FormAssemblyError,
    FormBuilder,
    add_condition,
    disable_conditional_logic,
    enable_conditional_logic,
    normalize_rule,
    remove_condition,
    set_logic,
    update_condition,
)
from formlogic.evaluator import is_visible
from formlogic.model import Field, FieldType, UnsupportedFieldTypeError
from formlogic.rules import Condition, ConditionOperator, LogicOperator, Rule


class TestRuleTransitions:
    """Test the rule authoring state machine."""

    def test_enable_creates_empty_and_rule(self):
        rule = enable_conditional_logic(None)
        assert rule == Rule(logic=LogicOperator.AND, conditions=())

    def test_enable_keeps_existing_rule(self):
        existing = Rule(logic=LogicOperator.OR, conditions=(Condition("q1"),))
        assert enable_conditional_logic(existing) is existing

    def test_set_logic(self):
        rule = set_logic(Rule(), LogicOperator.OR)
        assert rule.logic is LogicOperator.OR

    def test_set_logic_from_wire_string(self):
        assert set_logic(Rule(), "OR").logic is LogicOperator.OR

    def test_add_condition_appends_blank(self):
        rule = add_condition(add_condition(Rule()))
        assert rule.conditions == (Condition("", ConditionOperator.EQUALS, ""),) * 2

    def test_update_condition_merges(self):
        rule = add_condition(Rule())
        rule = update_condition(rule, 0, question_key="q1")
        rule = update_condition(rule, 0, operator="contains", value="abc")
        assert rule.conditions[0] == Condition("q1", ConditionOperator.CONTAINS, "abc")

    def test_update_condition_no_referential_check(self):
        rule = update_condition(add_condition(Rule()), 0, question_key="does_not_exist")
        assert rule.conditions[0].question_key == "does_not_exist"

    def test_update_condition_only_touches_index(self):
        rule = add_condition(add_condition(Rule()))
        rule = update_condition(rule, 1, value="x")
        assert rule.conditions[0].value == ""
        assert rule.conditions[1].value == "x"

    def test_remove_condition(self):
        rule = add_condition(add_condition(Rule()))
        rule = update_condition(rule, 1, question_key="q2")
        rule = remove_condition(rule, 0)
        assert len(rule.conditions) == 1
        assert rule.conditions[0].question_key == "q2"

    def test_remove_last_condition_collapses_to_no_rule(self):
        rule = add_condition(enable_conditional_logic(None))
        assert remove_condition(rule, 0) is None

    def test_disable_discards_everything(self):
        rule = add_condition(add_condition(Rule(logic=LogicOperator.OR)))
        assert disable_conditional_logic(rule) is None
        assert disable_conditional_logic(None) is None

    @pytest.mark.parametrize(
        "transition",
        [
            lambda r: set_logic(r, LogicOperator.OR),
            add_condition,
            lambda r: update_condition(r, 0, value="x"),
            lambda r: remove_condition(r, 0),
        ],
    )
    def test_transitions_ignored_without_rule(self, transition):
        assert transition(None) is None

    def test_update_condition_drops_unknown_keys(self):
        rule = add_condition(Rule())
        rule = update_condition(rule, 0, colour="x", value="kept")
        assert rule.conditions[0] == Condition("", ConditionOperator.EQUALS, "kept")

    def test_out_of_range_index_ignored(self):
        rule = add_condition(Rule())
        assert update_condition(rule, 5, value="x") is rule
        assert remove_condition(rule, -1) is rule

    def test_transitions_do_not_mutate_input(self):
        rule = add_condition(Rule())
        update_condition(rule, 0, value="changed")
        assert rule.conditions[0].value == ""

    def test_normalize_rule(self):
        assert normalize_rule(None) is None
        assert normalize_rule(Rule()) is None
        rule = Rule(conditions=(Condition("q1"),))
        assert normalize_rule(rule) is rule


FIELDS = [
    Field(id="f1", name="Attend?", type="singleSelect", options=("yes", "no")),
    Field(id="f2", name="Why", type="multilineText"),
    Field(id="f3", name="Tags", type="multipleSelects", options=("a", "b")),
]


@pytest.fixture
def builder():
    b = FormBuilder(fields=FIELDS, source_base_id="app1", source_table_id="tbl1")
    for f in FIELDS:
        b.select_field(f)
    return b


class TestSelection:
    """Test field selection."""

    def test_select_creates_default_question(self, builder):
        q = builder.question("f1")
        assert q.question_key == "field_f1"
        assert q.options == ["yes", "no"]
        assert q.required is False

    def test_select_twice_keeps_one(self, builder):
        builder.select_field(FIELDS[0])
        assert len(builder.questions) == 3

    def test_toggle(self, builder):
        assert builder.toggle_field(FIELDS[1]) is False
        assert not builder.is_selected("f2")
        assert builder.toggle_field(FIELDS[1]) is True
        assert [q.source_field_id for q in builder.questions] == ["f1", "f3", "f2"]

    def test_select_unsupported_raises(self, builder):
        with pytest.raises(UnsupportedFieldTypeError):
            builder.select_field(Field(id="f9", name="Formula", type="formula"))

    def test_deselect_leaves_dangling_conditions(self, builder):
        builder.enable_conditional_logic("f2")
        builder.add_condition("f2")
        builder.update_condition("f2", 0, question_key="field_f1", value="yes")
        builder.deselect_field("f1")
        assert builder.question("f2").conditional_rules.conditions[0].question_key == "field_f1"

    def test_condition_targets_exclude_self(self, builder):
        targets = builder.condition_targets("f2")
        assert [q.source_field_id for q in targets] == ["f1", "f3"]

    def test_select_base_resets(self, builder):
        builder.select_base("app2")
        assert builder.source_base_id == "app2"
        assert builder.source_table_id == ""
        assert builder.questions == []
        assert builder.fields == []

    def test_select_table_resets_selection(self, builder):
        builder.select_table("tbl2", FIELDS[:1])
        assert builder.source_table_id == "tbl2"
        assert builder.questions == []
        assert builder.get_field("f1") is FIELDS[0]
        assert builder.get_field("f2") is None


class TestConfiguration:
    """Test per-question configuration."""

    def test_setters_touch_only_target(self, builder):
        before = list(builder.questions)
        builder.set_label("f2", "Tell us why")
        builder.set_required("f2", True)
        builder.set_question_key("f2", "why")
        builder.set_options("f3", ["x"])
        assert builder.question("f2").label == "Tell us why"
        assert builder.question("f2").required is True
        assert builder.question("f2").question_key == "why"
        assert builder.question("f3").options == ["x"]
        assert builder.questions[0] is before[0]

    def test_rule_lifecycle_through_builder(self, builder):
        assert builder.enable_conditional_logic("f2") == Rule()
        builder.set_logic("f2", "OR")
        builder.add_condition("f2")
        builder.update_condition("f2", 0, question_key="field_f1", operator="notEquals", value="no")
        rule = builder.question("f2").conditional_rules
        assert rule.logic is LogicOperator.OR
        assert rule.conditions == (Condition("field_f1", ConditionOperator.NOT_EQUALS, "no"),)

        assert builder.remove_condition("f2", 0) is None
        assert builder.question("f2").conditional_rules is None

    def test_disable_through_builder(self, builder):
        builder.enable_conditional_logic("f2")
        builder.add_condition("f2")
        builder.disable_conditional_logic("f2")
        assert builder.question("f2").conditional_rules is None

    def test_rule_change_on_unselected_field_ignored(self, builder):
        assert builder.enable_conditional_logic("nope") is None
        assert all(q.conditional_rules is None for q in builder.questions)


class TestBuild:
    """Test form assembly."""

    def test_build_form(self, builder):
        builder.set_required("f1", True)
        form = builder.build(form_id="form1")
        assert form.id == "form1"
        assert form.source_base_id == "app1"
        assert form.source_table_id == "tbl1"
        assert form.question_keys() == ["field_f1", "field_f2", "field_f3"]
        assert form.questions[0].required is True

    def test_empty_rule_normalised_away(self, builder):
        builder.enable_conditional_logic("f2")
        form = builder.build()
        assert form.get_question("field_f2").conditional_rules is None

    def test_build_requires_base_table_and_selection(self):
        with pytest.raises(FormAssemblyError):
            FormBuilder(fields=FIELDS, source_base_id="app1", source_table_id="tbl1").build()
        b = FormBuilder(fields=FIELDS, source_base_id="app1")
        b.select_field(FIELDS[0])
        with pytest.raises(FormAssemblyError):
            b.build()

    def test_blank_question_key_rejected(self, builder):
        """Clearing a key must not produce a form with an empty key."""
        builder.set_question_key("f1", "")
        with pytest.raises(FormAssemblyError, match="f1"):
            builder.build()

    def test_blank_condition_never_matches_blank_key_answer(self, builder):
        builder.set_question_key("f1", "")
        builder.enable_conditional_logic("f2")
        builder.add_condition("f2")
        builder.update_condition("f2", 0, operator="notEquals", value="x")
        rule = builder.question("f2").conditional_rules
        assert is_visible(rule, {"": "anything"}) is False

    def test_duplicate_keys_rejected(self, builder):
        builder.set_question_key("f2", "field_f1")
        with pytest.raises(FormAssemblyError, match="field_f1"):
            builder.build()

    def test_load_resumes_authoring(self, builder):
        form = builder.build()
        again = FormBuilder()
        again.load(form)
        again.set_label("f1", "Changed")
        assert again.build().get_question("field_f1").label == "Changed"
        assert form.get_question("field_f1").label == "Attend?"

    def test_question_type_resolved(self, builder):
        form = builder.build()
        assert form.get_question("field_f2").type is FieldType.LONG_TEXT
