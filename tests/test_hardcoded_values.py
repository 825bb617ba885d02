import pytest
from pinelint.config import LintConfig
from pinelint.services.hardcoded_values import check_hardcoded_colors, check_hardcoded_strings
from pinelint.services.rule_engine import LintContext
from pinelint.utils.diagnostics import Category, Severity
from pinelint.utils.lexer import SourcePosition, tokenize
from pinelint.utils.pine_ast import DeclarationIndex


def make_ctx(source, **config):
    tokens = tokenize(source)
    return LintContext(
        source=source,
        lines=tuple(source.split("\n")),
        tokens=tuple(tokens),
        index=DeclarationIndex(tokens),
        config=LintConfig(**config),
    )


# ─── HardcodedColor ──────────────────────────────────────────────────

def test_color_constant_then_use_is_clean():
    source = "COLOR_X = color.rgb(0, 128, 255)\nplot(close, color = COLOR_X)\n"
    assert check_hardcoded_colors(make_ctx(source)) == []


def test_inline_color_is_one_warning():
    diags = check_hardcoded_colors(make_ctx("heat_color = color.rgb(0, 128, 255)\n"))

    assert len(diags) == 1
    assert diags[0].category == Category.HARDCODED_COLOR
    assert diags[0].severity == Severity.WARNING
    assert diags[0].position == SourcePosition(1, 14)


@pytest.mark.parametrize("source", [
    "FADED = color.new(color.new(c, 10), 20)\n",
    "faded = color.new(color.new(c, 10), 20)\n",
    "plot(close, color = color.new(color.new(c, 10), 20))\n",
])
def test_nested_color_is_exactly_one_error(source):
    diags = check_hardcoded_colors(make_ctx(source))

    assert len(diags) == 1
    assert diags[0].severity == Severity.ERROR
    assert diags[0].tag == "nested"
    assert "color.new() inside color.new()" in diags[0].message


def test_color_as_plain_argument_is_not_nested():
    source = "FADED = color.new(BASE, 20)\nplot(close, color = color.new(FADED, 50))\n"
    diags = check_hardcoded_colors(make_ctx(source))

    assert [(d.severity, d.position.line) for d in diags] == [(Severity.WARNING, 2)]


def test_custom_color_constructors():
    source = "c = color.from_gradient(x, 0, 100, a, b)\n"
    assert check_hardcoded_colors(make_ctx(source)) == []
    diags = check_hardcoded_colors(make_ctx(source, color_constructors=["color.from_gradient"]))
    assert len(diags) == 1


def test_hex_color_literal():
    diags = check_hardcoded_colors(make_ctx("bgcolor(#ff0000)\n"))
    assert len(diags) == 1
    assert diags[0].position == SourcePosition(1, 9)

    assert check_hardcoded_colors(make_ctx("RED = #ff0000\nbgcolor(RED)\n")) == []
    assert check_hardcoded_colors(make_ctx("bgcolor(#ff0000)\n", flag_color_literals=False)) == []


def test_hex_literal_inside_inline_color_is_one_warning():
    diags = check_hardcoded_colors(make_ctx("x = color.new(#ff0000, 50)\n"))

    assert len(diags) == 1
    assert diags[0].position == SourcePosition(1, 5)
    assert "color.new()" in diags[0].message


def test_user_function_named_like_a_constructor_is_not_a_color():
    source = "color.new(c, a) =>\n    c\nx = color.new(BASE, 50)\n"
    assert check_hardcoded_colors(make_ctx(source)) == []


# ─── HardcodedString ─────────────────────────────────────────────────

def test_string_outside_constant_is_warning():
    diags = check_hardcoded_strings(make_ctx('indicator("My Script")\n'))

    assert len(diags) == 1
    assert diags[0].severity == Severity.WARNING
    assert diags[0].position == SourcePosition(1, 11)


def test_string_in_constant_is_clean():
    source = 'TITLE = "My Script"\nindicator(TITLE)\n'
    assert check_hardcoded_strings(make_ctx(source)) == []


def test_short_inline_tooltip_is_allowed():
    source = 'x = input.int(14, TITLE, tooltip = "Bars in the window")\n'
    assert check_hardcoded_strings(make_ctx(source)) == []


def test_other_keyword_arguments_are_flagged():
    source = 'plot(x, title = "t", tooltip = "short tip")\n'
    diags = check_hardcoded_strings(make_ctx(source))
    assert [d.position for d in diags] == [SourcePosition(1, 17)]


def test_tooltip_at_length_threshold_is_flagged():
    source = 'plot(x, tooltip = "12345")\n'
    assert check_hardcoded_strings(make_ctx(source, tooltip_max_length=6)) == []
    assert len(check_hardcoded_strings(make_ctx(source, tooltip_max_length=5))) == 1


def test_tooltip_expression_is_not_exempt():
    source = "plot(x, tooltip = 'a' + 'b')\n"
    assert len(check_hardcoded_strings(make_ctx(source))) == 2


def test_lowercase_assignment_is_not_a_constant():
    diags = check_hardcoded_strings(make_ctx('title = "x"\n'))
    assert len(diags) == 1
