import os

import pytest

from minishell.parser import Command
from minishell.redirection import (
    RedirectionError,
    apply_redirections,
    count_redirect_files,
    count_redirect_tokens,
    has_misplaced_operator,
    preprocess_heredocs,
    read_heredoc,
)


def make(words=(), tokens=(), files=(), limiters=()):
    return Command(
        command=list(words),
        words=list(words),
        tokens=list(tokens),
        files=list(files),
        limiters=list(limiters),
    )


def lines_reader(lines, prompts=None):
    it = iter(lines)

    def reader(prompt):
        if prompts is not None:
            prompts.append(prompt)
        return next(it, None)

    return reader


@pytest.fixture
def restore_stdio():
    saved = {fd: os.dup(fd) for fd in (0, 1)}
    yield
    for fd, copy in saved.items():
        os.dup2(copy, fd)
        os.close(copy)


def test_count_redirect_files_skips_missing_marker():
    assert count_redirect_files(["a", "\n", "b"]) == 2
    assert count_redirect_files(None) == 0


def test_count_redirect_tokens_skips_heredocs():
    assert count_redirect_tokens(["<", "<<", ">", ">>"]) == 3
    assert count_redirect_tokens([]) == 0


def test_has_misplaced_operator():
    assert has_misplaced_operator([make(tokens=[">"], files=["out"]), make(tokens=[">"], files=[">>"])])
    assert not has_misplaced_operator([make(tokens=["<"], files=["in"])])


def test_apply_without_tokens_returns_false():
    assert apply_redirections(make(words=["ls"])) is False


def test_apply_mismatch_raises():
    with pytest.raises(RedirectionError) as info:
        apply_redirections(make(tokens=[">"], files=["\n"]))
    assert info.value.status == 1
    assert info.value.message == "Error with the file"


def test_apply_missing_input_raises(tmp_path):
    with pytest.raises(RedirectionError) as info:
        apply_redirections(make(tokens=["<"], files=[str(tmp_path / "absent")]))
    assert info.value.message.startswith("open:")


def test_output_truncates(tmp_path, restore_stdio):
    target = tmp_path / "out"
    target.write_text("old content")
    assert apply_redirections(make(tokens=[">"], files=[str(target)])) is True
    os.write(1, b"new")
    assert target.read_text() == "new"


def test_append_keeps_content(tmp_path, restore_stdio):
    target = tmp_path / "out"
    target.write_text("one")
    assert apply_redirections(make(tokens=[">>"], files=[str(target)])) is True
    os.write(1, b"two")
    assert target.read_text() == "onetwo"


def test_input_redirection(tmp_path, restore_stdio):
    source = tmp_path / "in"
    source.write_text("payload")
    assert apply_redirections(make(tokens=["<"], files=[str(source)])) is True
    assert os.read(0, 100) == b"payload"


def test_read_heredoc_expands_and_stops(tmp_path):
    prompts = []
    reader = lines_reader(["hello $USER", "EOF", "never"], prompts)
    fd = read_heredoc("EOF", ["USER=bob"], 0, reader, tmp_path / "hd")
    try:
        assert os.read(fd, 100) == b"hello bob\n"
    finally:
        os.close(fd)
    assert prompts == ["> ", "> "]


def test_read_heredoc_end_of_input(tmp_path):
    fd = read_heredoc("EOF", [], 0, lines_reader(["a", "b"]), tmp_path / "hd")
    try:
        assert os.read(fd, 100) == b"a\nb\n"
    finally:
        os.close(fd)


def test_read_heredoc_without_limiter(tmp_path):
    with pytest.raises(RedirectionError) as info:
        read_heredoc(None, [], 0, lines_reader([]), tmp_path / "hd")
    assert info.value.status == 258


def test_read_heredoc_interrupted(tmp_path):
    def reader(prompt):
        raise KeyboardInterrupt

    with pytest.raises(RedirectionError) as info:
        read_heredoc("EOF", [], 0, reader, tmp_path / "hd")
    assert info.value.status == 1


def test_heredoc_feeds_stdin(tmp_path, restore_stdio):
    fd = read_heredoc("END", [], 0, lines_reader(["line", "END"]), tmp_path / "hd")
    command = make(words=["cat"], tokens=["<<"], limiters=["END"])
    command.heredoc_fds.append(fd)
    try:
        assert apply_redirections(command) is True
        assert os.read(0, 100) == b"line\n"
    finally:
        os.close(fd)


def test_preprocess_assigns_descriptors(tmp_path):
    commands = [
        make(words=["cat"], tokens=["<<", "<<"], limiters=["A", "B"]),
        make(words=["ls"]),
    ]
    reader = lines_reader(["x", "A", "y", "B"])
    result = preprocess_heredocs(commands, [], 5, reader, tmp_path / "hd")
    try:
        assert result == 0
        assert len(commands[0].heredoc_fds) == 2
        assert commands[1].heredoc_fds == []
    finally:
        for fd in commands[0].heredoc_fds:
            os.close(fd)


def test_preprocess_without_heredocs_keeps_status(tmp_path):
    commands = [make(words=["ls"])]
    assert preprocess_heredocs(commands, [], 5, lines_reader([]), tmp_path / "hd") == 5


def test_preprocess_missing_limiter_fails(tmp_path):
    commands = [make(words=["cat"], tokens=["<<"])]
    with pytest.raises(RedirectionError) as info:
        preprocess_heredocs(commands, [], 0, lines_reader([]), tmp_path / "hd")
    assert info.value.status == 1
    assert info.value.message == "syntax error"