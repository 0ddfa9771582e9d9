"""Tests for controller/plan_parser.py: pure Python, no I/O."""

import json

from controller.plan_parser import FALLBACK_EXPLANATION, Plan, extract


class TestJsonPath:
    def test_plain_json(self):
        response = json.dumps({"explanation": "Open Finder", "commands": ["click(10,20)", "key('enter')"]})
        plan = extract(response)
        assert plan == Plan("Open Finder", ["click(10,20)", "key('enter')"])

    def test_commands_are_not_validated_here(self):
        response = json.dumps({"explanation": "x", "commands": ["bogus()"]})
        assert extract(response).commands == ["bogus()"]

    def test_empty_command_list(self):
        plan = extract('{"explanation": "Nothing to do", "commands": []}')
        assert plan.explanation == "Nothing to do"
        assert plan.commands == []

    def test_code_fenced_json(self):
        response = '```json\n{"explanation": "Type", "commands": ["type(\'hi\')"]}\n```'
        assert extract(response) == Plan("Type", ["type('hi')"])

    def test_wrong_shape_falls_through(self):
        assert extract('{"explanation": "x", "commands": "click(1,2)"}') == Plan(
            FALLBACK_EXPLANATION, ["click(1,2)"]
        )


class TestFallback:
    def test_key_enter_in_prose(self):
        plan = extract("Sure! I'll press key('enter') to confirm.")
        assert plan == Plan(FALLBACK_EXPLANATION, ["key('enter')"])

    def test_multiple_lines_keep_order(self):
        response = "First click(100,200)\nthen type('hello')\nfinally key('tab')"
        assert extract(response).commands == ["click(100,200)", "type('hello')", "key('tab')"]

    def test_same_line_sorted_by_position(self):
        response = "do type('abc') and then click(1,2)"
        assert extract(response).commands == ["type('abc')", "click(1,2)"]

    def test_one_match_per_kind_per_line(self):
        assert extract("click(1,2) click(3,4)").commands == ["click(1,2)"]

    def test_rightclick_yields_click_literal(self):
        assert extract("rightclick(5,6)").commands == ["click(5,6)"]

    def test_cmd_is_not_recovered(self):
        assert extract("press cmd('c')") is None

    def test_no_pattern(self):
        assert extract("I cannot see a VM window.") is None

    def test_head_without_valid_value(self):
        assert extract("click(x, y) somewhere") is None


class TestDocumentedExamples:
    def test_minimal_json_plan(self):
        assert extract('{"explanation":"x","commands":["click(1,2)"]}') == Plan("x", ["click(1,2)"])

    def test_malformed_json_with_key_line(self):
        response = '{"explanation": "oops",\nLet\'s do key(\'enter\') now'
        assert extract(response).commands == ["key('enter')"]
