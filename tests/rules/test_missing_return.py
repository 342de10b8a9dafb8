"""Tests for MissingReturnRule and its indentation-based function segmentation."""

import pytest

from cellint.models.linting import LintSeverity
from cellint.rules.missing_return import MissingReturnRule, extract_functions, is_special_method, looks_non_void


@pytest.fixture
def rule():
    return MissingReturnRule()


class TestExtractFunctions:
    def test_segments_by_indentation(self):
        code = "def first():\n    x = 1\n\n    y = 2\nprint('done')\ndef second(a, b):\n    return a"
        functions = extract_functions(code)

        assert [f.name for f in functions] == ["first", "second"]
        first, second = functions
        assert (first.start_line, first.end_line) == (1, 4)
        assert first.body_indent == 4
        assert not first.has_return
        assert second.params == "a, b"
        assert second.has_return

    def test_decorators_attached_to_next_function(self):
        functions = extract_functions("@staticmethod\n@functools.cache\ndef make_thing():\n    pass")
        assert functions[0].decorators == ["staticmethod", "functools.cache"]

    def test_closing_decorator_line_becomes_pending(self):
        code = "def a():\n    pass\n@value.setter\ndef value(self, v):\n    self._v = v"
        functions = extract_functions(code)
        assert functions[1].decorators == ["value.setter"]

    def test_commented_return_is_not_a_return(self):
        functions = extract_functions("def build():\n    # return model\n    model = 1")
        assert not functions[0].has_return

    def test_bare_return_counts(self):
        functions = extract_functions("def load_data(path):\n    data = path\n    return")
        assert functions[0].has_return


class TestMissingReturnRule:
    def test_accumulator_without_return_flagged(self, rule):
        code = "def calculate_total(items):\n    total = 0\n    for item in items:\n        total += item.price"
        errors = rule.run(code, line_offset=10)
        assert len(errors) == 1
        error = errors[0]
        assert error.line == 11
        assert error.severity == LintSeverity.WARNING
        assert error.message == "Function 'calculate_total' appears to compute a value but has no return statement"
        assert error.rule_id == "missing-return"

    def test_function_with_return_not_flagged(self, rule):
        assert rule.run("def foo():\n    return x + 1") == []

    def test_value_returning_prefix_flagged(self, rule):
        errors = rule.run("def get_name(self):\n    self.name")
        assert [e.line for e in errors] == [1]

    def test_plain_procedure_not_flagged(self, rule):
        assert rule.run("def show(df):\n    print(df.head())") == []

    @pytest.mark.parametrize(
        "code",
        [
            "def __init__(self):\n    self.result = 1",
            "def main():\n    result = 1",
            "def setUp(self):\n    self.count = 0",
            "@value.setter\ndef value(self, v):\n    self._value = v",
        ],
    )
    def test_special_functions_exempt(self, rule, code):
        assert rule.run(code) == []

    def test_only_offending_function_reported(self, rule):
        code = "def compute_a():\n    x = 1\n\ndef compute_b():\n    return 2"
        errors = rule.run(code)
        assert [e.message.split("'")[1] for e in errors] == ["compute_a"]

    def test_decorated_function_reported_at_def_line(self, rule):
        errors = rule.run("@staticmethod\ndef make_thing():\n    pass")
        assert [e.line for e in errors] == [2]


class TestHelpers:
    def test_is_special_method(self):
        assert is_special_method("__exit__")
        assert is_special_method("anything", ["prop.setter"])
        assert not is_special_method("compute")

    def test_looks_non_void_by_body(self):
        functions = extract_functions("def work():\n    counter = 0\n    counter -= 1")
        assert looks_non_void(functions[0])
