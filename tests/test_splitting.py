import pytest

from minishell.splitting import skip_quote, split_commands, split_words, unquote


def test_skip_quote_closed():
    text = "'abc' x"
    assert skip_quote(text, 0, "'") == text.index(" ")


def test_skip_quote_unterminated_reaches_end():
    text = '"abc'
    assert skip_quote(text, 0, '"') == len(text)


def test_skip_quote_ignores_escaped_quote():
    text = '"a\\"b" rest'
    end = skip_quote(text, 0, '"')
    assert text[:end] == '"a\\"b"'


def test_split_commands_simple_pipeline():
    line = "ls -l | wc -l"
    segments = split_commands(line)
    assert segments == ["ls -l ", " wc -l"]
    assert "|".join(segments) == line


def test_split_commands_keeps_quoted_separator():
    line = "echo 'a|b' | cat"
    segments = split_commands(line)
    assert len(segments) == 2
    assert "|".join(segments) == line


def test_split_commands_skips_repeated_separators():
    assert split_commands("a||b") == ["a", "b"]


def test_split_commands_empty_line():
    assert split_commands("") == []


def test_split_commands_only_separators():
    assert split_commands("|||") == []


def test_split_words_basic():
    assert split_words("ls  -l   -a") == ["ls", "-l", "-a"]


def test_split_words_redirection_without_spaces():
    assert split_words("ls -l>out") == ["ls", "-l", ">", "out"]


def test_split_words_heredoc_and_append():
    assert split_words("cat<<EOF>>log") == ["cat", "<<", "EOF", ">>", "log"]


def test_split_words_quoted_word_is_unquoted():
    assert split_words('echo "a b" \'c  d\'') == ["echo", "a b", "c  d"]


def test_split_words_quoted_redirect_is_plain_text():
    assert split_words("echo '>'") == ["echo", ">"]


@pytest.mark.parametrize("text", ["", "   "])
def test_split_words_blank_yields_itself(text):
    assert split_words(text) == [text]


def test_split_words_custom_separator():
    assert split_words("/bin:/usr/bin::/sbin", ":") == ["/bin", "/usr/bin", "/sbin"]


def test_split_words_join_round_trip():
    words = ["alpha", "beta", "gamma"]
    assert split_words(" ".join(words)) == words


def test_unquote_removes_quotes():
    assert unquote("'x y'") == "x y"
    assert unquote('"x"y') == "xy"


def test_unquote_escaped_quote_outside():
    assert unquote('a\\"b') == 'a"b'


def test_unquote_escaped_quote_inside():
    assert unquote('"a\\"b"') == 'a"b'


def test_unquote_other_quote_kept_inside():
    assert unquote("\"it's\"") == "it's"


def test_unquote_plain_text_unchanged():
    assert unquote("plain-text_1") == "plain-text_1"
    assert unquote("") == ""