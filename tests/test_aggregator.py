from pinelint.services.aggregator import LintResult, aggregate, build_suppressions
from pinelint.services.dsl_lint import DSLLinter
from pinelint.utils.diagnostics import Category, Diagnostic, Severity
from pinelint.utils.lexer import SourcePosition, tokenize


def diag(line, col, category=Category.HARDCODED_STRING, severity=Severity.WARNING, message="m"):
    return Diagnostic(category, severity, SourcePosition(line, col), message)


def test_orders_by_line_column_category():
    found = [
        diag(3, 1),
        diag(1, 5, Category.UNUSED_CONSTANT),
        diag(1, 5, Category.HARDCODED_COLOR),
        diag(1, 2),
    ]
    ordered = aggregate(found)
    assert [(d.line, d.column, d.category) for d in ordered] == [
        (1, 2, Category.HARDCODED_STRING),
        (1, 5, Category.HARDCODED_COLOR),
        (1, 5, Category.UNUSED_CONSTANT),
        (3, 1, Category.HARDCODED_STRING),
    ]


def test_deduplicates_identical_diagnostics():
    assert aggregate([diag(2, 4), diag(2, 4), diag(2, 4, message="other")]) == [
        diag(2, 4),
        diag(2, 4, message="other"),
    ]


def test_disabled_categories_are_dropped():
    found = [diag(1, 1), diag(2, 1, Category.UNUSED_CONSTANT)]
    assert aggregate(found, disabled=[Category.HARDCODED_STRING]) == [found[1]]


def test_build_suppressions():
    tokens = tokenize(
        "a = 1 // pinelint: ignore\n"
        "b = 2 // PINELINT: ignore=HardcodedColor, unusedconstant\n"
        "c = 3 // pinelint: ignore=Bogus\n"
        "d = 4 // plain comment\n"
    )
    suppressions = build_suppressions(tokens)
    assert suppressions == {
        1: None,
        2: frozenset({Category.HARDCODED_COLOR, Category.UNUSED_CONSTANT}),
        3: frozenset(),
    }


def test_inline_suppression_end_to_end():
    linter = DSLLinter()
    source = (
        'indicator("Demo") // pinelint: ignore\n'
        'plot(close, color = color.rgb(1, 2, 3), title = "x") // pinelint: ignore=HardcodedColor\n'
    )
    result = linter.lint(source)
    assert [(d.line, d.category) for d in result.diagnostics] == [(2, Category.HARDCODED_STRING)]


def test_lint_result_counts_and_gate():
    result = LintResult(path="a.pine", diagnostics=[
        diag(1, 1),
        diag(2, 1, Category.FORWARD_REFERENCE, Severity.ERROR, "late"),
    ])
    assert result.error_count == 1
    assert result.warning_count == 1
    assert result.has_errors
    assert not result.passed
    assert result.render().splitlines()[1] == "a.pine:2:1: error ForwardReference - late"

    warnings_only = LintResult(diagnostics=[diag(1, 1)])
    assert warnings_only.passed


def test_to_report():
    report = LintResult(path="a.pine", diagnostics=[diag(4, 2, message="hello")]).to_report()
    dumped = report.model_dump(mode="json")
    assert dumped["passed"] is True
    assert dumped["diagnostics"][0] == {
        "category": "HardcodedString",
        "severity": "Warning",
        "line": 4,
        "column": 2,
        "message": "hello",
        "tag": None,
    }
