"""
test_regressions.py - Regression cases for scripts that once tripped the checker
"""
import unittest
from pinelint.services.dsl_lint import DSLLinter
from pinelint.services.indentation import check_indentation
from pinelint.utils.diagnostics import Category
from pinelint.utils.lexer import tokenize
from pinelint.utils.pine_ast import DeclarationIndex, DeclarationKind


class TestRegressions(unittest.TestCase):

    def test_switch_arms_are_not_continuations(self):
        lines = [
            "value = switch mode",
            '    "A" => 1',
            "    => 2",
            "plot(value)",
        ]
        # Arms start with a literal or `=>`, neither continues the header
        self.assertEqual(check_indentation(lines), [])

    def test_na_is_a_call(self):
        index = DeclarationIndex(tokenize("x = na(close) ? 0 : close\n"))
        self.assertIn("na", [c.name for c in index.calls])
        self.assertTrue(index.calls[0].is_builtin)

    def test_tuple_declarations(self):
        index = DeclarationIndex(tokenize("[macdLine, signal, hist] = ta.macd(close, 12, 26, 9)\n"))
        kinds = {d.name: d.kind for d in index.declarations}
        self.assertEqual(kinds, {
            "macdLine": DeclarationKind.VARIABLE,
            "signal": DeclarationKind.VARIABLE,
            "hist": DeclarationKind.VARIABLE,
        })

    def test_keyword_argument_names_are_not_references(self):
        # `color` would otherwise look like a use of the function below
        source = "plot(close, color = BLUE)\ncolor(x) => x\nBLUE = 1\n"
        result = DSLLinter().lint(source)
        self.assertNotIn(Category.FORWARD_REFERENCE, {d.category for d in result.diagnostics})

    def test_constant_used_before_declaration_is_reported_unused(self):
        result = DSLLinter().lint("plot(LEN)\nLEN = 5\n")
        self.assertEqual(
            [(d.category, d.line, d.column) for d in result.diagnostics],
            [(Category.UNUSED_CONSTANT, 2, 1)],
        )

    def test_unterminated_string_is_still_flagged(self):
        result = DSLLinter().lint('indicator("open\n')
        self.assertEqual(len(result.diagnostics), 1)
        self.assertIn('"open', result.diagnostics[0].message)

    def test_garbage_does_not_abort(self):
        result = DSLLinter().lint("x = @@@ $$$\nUNUSED = 1\n")
        self.assertEqual([d.category for d in result.diagnostics], [Category.UNUSED_CONSTANT])

    def test_trailing_arrow_opens_a_block(self):
        lines = ["f(x) =>", "    x + 1"]
        self.assertEqual(check_indentation(lines), [])


if __name__ == '__main__':
    unittest.main()
