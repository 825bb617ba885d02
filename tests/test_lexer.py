import pytest
from pinelint.utils.lexer import (
    SourcePosition,
    Token,
    TokenKind,
    code_tokens,
    is_leading_continuation,
    is_trailing_continuation,
    tokenize,
)


def kinds(tokens):
    return [t.kind for t in tokens]


def texts(tokens):
    return [t.text for t in code_tokens(tokens)]


def test_empty_source_yields_end_of_input():
    tokens = tokenize("")
    assert len(tokens) == 1
    assert tokens[0].kind == TokenKind.END_OF_INPUT
    assert tokens[0].position == SourcePosition(1, 1)


def test_positions_and_dotted_call():
    tokens = code_tokens(tokenize("x = color.rgb(0, 128, 255)"))

    assert [t.text for t in tokens] == ["x", "=", "color.rgb", "(", "0", ",", "128", ",", "255", ")"]
    assert tokens[2].kind == TokenKind.IDENTIFIER
    assert tokens[2].position == SourcePosition(1, 5)
    assert tokens[3].position == SourcePosition(1, 14)
    assert tokens[6].kind == TokenKind.NUMERIC_LITERAL
    assert tokens[6].position == SourcePosition(1, 18)
    assert tokens[-1].position == SourcePosition(1, 26)


def test_string_literal_with_escaped_quotes():
    tokens = code_tokens(tokenize('s = "a \\"b\\" c"'))
    assert tokens[2].kind == TokenKind.STRING_LITERAL
    assert tokens[2].text == '"a \\"b\\" c"'
    assert len(tokens) == 3


def test_unterminated_string_stops_at_line_end():
    tokens = tokenize('t = "open\nnext')
    assert tokens[2].kind == TokenKind.STRING_LITERAL
    assert tokens[2].text == '"open'
    assert tokens[3].kind == TokenKind.NEWLINE
    assert tokens[4].text == "next"
    assert tokens[4].position == SourcePosition(2, 1)


@pytest.mark.parametrize("literal", ["#ff00aa", "#FF00AA80"])
def test_color_literals(literal):
    tokens = code_tokens(tokenize(f"c = {literal}"))
    assert tokens[2].kind == TokenKind.COLOR_LITERAL
    assert tokens[2].text == literal


def test_short_hex_is_not_a_color_literal():
    tokens = code_tokens(tokenize("c = #fff"))
    assert kinds(tokens) == [
        TokenKind.IDENTIFIER, TokenKind.OPERATOR, TokenKind.PUNCTUATION, TokenKind.IDENTIFIER,
    ]


def test_comment_strips_carriage_return():
    tokens = tokenize("x = 1 // note\r\ny")
    comment = next(t for t in tokens if t.kind == TokenKind.COMMENT)
    assert comment.text == "// note"
    y = [t for t in tokens if t.text == "y"][0]
    assert y.position == SourcePosition(2, 1)


def test_tab_width_controls_columns():
    assert code_tokens(tokenize("\tx"))[0].position == SourcePosition(1, 2)
    assert code_tokens(tokenize("\tx", tab_width=4))[0].position == SourcePosition(1, 5)


def test_unknown_characters_become_punctuation():
    tokens = tokenize("x = @ $")
    assert [t.text for t in tokens if t.kind == TokenKind.PUNCTUATION] == ["@", "$"]
    assert tokens[-1].kind == TokenKind.END_OF_INPUT


def test_operators():
    assert texts(tokenize("a := b >= c => d != e")) == ["a", ":=", "b", ">=", "c", "=>", "d", "!=", "e"]
    word = code_tokens(tokenize("a and not b"))
    assert [t.kind for t in word] == [
        TokenKind.IDENTIFIER, TokenKind.OPERATOR, TokenKind.OPERATOR, TokenKind.IDENTIFIER,
    ]


def test_numbers():
    assert texts(tokenize("x = 1.5e3 + .25")) == ["x", "=", "1.5e3", "+", ".25"]


def test_continuation_helpers():
    def op(text):
        return Token(TokenKind.OPERATOR, text, SourcePosition(1, 1))

    assert is_trailing_continuation(op("+"))
    assert is_trailing_continuation(op("="))
    assert not is_trailing_continuation(op("=>"))
    assert not is_trailing_continuation(Token(TokenKind.PUNCTUATION, ",", SourcePosition(1, 1)))
    assert is_leading_continuation(op("?"))
    assert is_leading_continuation(op("or"))
    assert not is_leading_continuation(op("=>"))
