"""Tests for CapitalizationTyposRule."""

import pytest

from cellint.models.linting import LintSeverity
from cellint.rules.capitalization_typos import CapitalizationTyposRule, build_defined_names_map


@pytest.fixture
def rule():
    return CapitalizationTyposRule()


def typos(rule, code):
    return [(e.line, e.column, e.message) for e in rule.run(code)]


class TestCapitalizationTypos:
    def test_lowercase_true(self, rule):
        errors = rule.run("flag = true")
        assert len(errors) == 1
        error = errors[0]
        assert error.message == "Possible capitalization typo: 'true' should be 'True'"
        assert error.severity == LintSeverity.WARNING
        assert (error.line, error.column) == (1, 8)
        assert error.rule_id == "capitalization-typos"

    def test_line_offset(self, rule):
        errors = rule.run("x = 1\nresult = none", line_offset=3)
        assert [(e.line, e.column) for e in errors] == [(5, 10)]

    def test_library_class_casing(self, rule):
        assert typos(rule, "df = pd.DataFrame()\nother = dataframe") == [
            (2, 9, "Possible capitalization typo: 'dataframe' should be 'DataFrame'")
        ]

    def test_strings_and_comments_ignored(self, rule):
        assert typos(rule, "msg = 'true'  # none of this is code") == []

    def test_attribute_access_ignored(self, rule):
        assert typos(rule, "df.Values\nobj.TRUE") == []

    def test_typing_names_excluded(self, rule):
        assert typos(rule, "from typing import List, Dict\nitems: List[int] = []") == []

    def test_local_definition_defines_casing(self, rule):
        assert typos(rule, "def MyHelper():\n    pass\nmyhelper()") == [
            (3, 1, "Possible capitalization typo: 'myhelper' should be 'MyHelper'")
        ]

    def test_local_definition_overrides_vocabulary(self, rule):
        assert typos(rule, "Count = 3\nprint(Count)") == []

    def test_correct_code_is_clean(self, rule):
        assert typos(rule, "if value is None:\n    value = True") == []


def test_build_defined_names_map_skips_control_flow():
    names = build_defined_names_map("Alpha = 1\nclass Beta:\n    pass\nfor x in y:\n    pass\ndef Gamma():\n    pass")
    assert names == {"alpha": "Alpha", "beta": "Beta", "gamma": "Gamma"}
