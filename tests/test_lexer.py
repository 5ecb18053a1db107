# This work is licensed under the GNU GPLv2 or later.
# See the COPYING file in the top-level directory.

import pytest

from virtsh import lexer


def _tokens(line):
    return [(t.kind, t.value) for t in lexer.StringTokenSource(line)]


def _args(line):
    return [t.value for t in lexer.StringTokenSource(line)
            if t.kind == lexer.TK_ARG]


def test_string_basic():
    assert _tokens("list --all") == [
        (lexer.TK_ARG, "list"),
        (lexer.TK_ARG, "--all"),
        (lexer.TK_END, None),
    ]
    # Leading, trailing and repeated whitespace
    assert _args(" \t echo   a\t b  ") == ["echo", "a", "b"]
    assert _tokens("") == [(lexer.TK_END, None)]
    assert _tokens("   ") == [(lexer.TK_END, None)]


def test_string_quoting():
    assert _args("echo 'hi there'") == ["echo", "hi there"]
    assert _args('echo "hi there"') == ["echo", "hi there"]
    # Single quotes are verbatim
    assert _args(r"echo 'a\b'") == ["echo", r"a\b"]
    # Backslash escapes inside double quotes and bare words
    assert _args(r'echo "a\"b"') == ["echo", 'a"b']
    assert _args(r"echo a\ b") == ["echo", "a b"]
    # Quotes of one kind inside the other
    assert _args("""echo "it's" '"x"'""") == ["echo", "it's", '"x"']
    # Adjacent quoted parts join into one token
    assert _args("""echo a'b c'"d e"f""") == ["echo", "ab cd ef"]
    # Empty quoted string is still a token
    assert _args("echo ''") == ["echo", ""]


def test_string_subcmd_end():
    assert _tokens("a;b") == [
        (lexer.TK_ARG, "a"),
        (lexer.TK_SUBCMD_END, None),
        (lexer.TK_ARG, "b"),
        (lexer.TK_END, None),
    ]
    assert _tokens("a ; ; b")[1:4] == [
        (lexer.TK_SUBCMD_END, None),
        (lexer.TK_SUBCMD_END, None),
        (lexer.TK_ARG, "b"),
    ]
    # Literal when quoted or escaped
    assert _args("echo 'a;b' \"c;d\" e\\;f") == ["echo", "a;b", "c;d", "e;f"]


def test_string_errors():
    toks = _tokens('echo "unterminated')
    assert toks[-1] == (lexer.TK_ERROR, 'missing "')
    toks = _tokens("echo dangling\\")
    assert toks[-1] == (lexer.TK_ERROR, "dangling \\")


def test_end_is_sticky():
    src = lexer.StringTokenSource("a")
    assert src.next_token().kind == lexer.TK_ARG
    for dummy in range(3):
        assert src.next_token().kind == lexer.TK_END

    src = lexer.ArgvTokenSource([])
    assert src.next_token().kind == lexer.TK_END
    assert src.next_token().kind == lexer.TK_END


def test_argv_source():
    toks = [(t.kind, t.value) for t in
            lexer.ArgvTokenSource(["echo", "a;b", "it's here", ""])]
    # No quoting or separator handling on pre-split input
    assert toks == [
        (lexer.TK_ARG, "echo"),
        (lexer.TK_ARG, "a;b"),
        (lexer.TK_ARG, "it's here"),
        (lexer.TK_ARG, ""),
        (lexer.TK_END, None),
    ]


def test_split_line():
    assert lexer.split_line("start foo; list --all") == [
        "start", "foo", None, "list", "--all"]
    assert lexer.split_line("") == []
    with pytest.raises(ValueError):
        lexer.split_line('echo "open')
