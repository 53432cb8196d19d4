import os

import pytest

from minishell.builtins import ShellExit
from minishell.env import Environment, ShellState
from minishell.executor import (
    CommandError,
    check_executable,
    execute_command,
    execute_pipeline,
    find_command_path,
    path_variable,
)
from minishell.parser import Command


def make(words=(), tokens=(), files=(), status=0):
    return Command(
        command=list(words),
        words=list(words),
        tokens=list(tokens),
        files=list(files),
        status=status,
    )


def system_state():
    return ShellState(env=Environment.from_environ(), status=0)


@pytest.fixture
def restore_stdio():
    saved = {fd: os.dup(fd) for fd in (0, 1)}
    yield
    for fd, copy in saved.items():
        os.dup2(copy, fd)
        os.close(copy)


def test_path_variable_splits_on_colon():
    assert path_variable(["HOME=/x", "PATH=/a:/b"]) == ["/a", "/b"]
    assert path_variable(["HOME=/x"]) is None


def test_find_command_on_path(tmp_path):
    (tmp_path / "tool").write_text("")
    env = [f"PATH=/nonexistent:{tmp_path}"]
    assert find_command_path("tool", env) == f"{tmp_path}/tool"
    assert find_command_path("missing", env) is None
    assert find_command_path("", env) is None


def test_find_absolute_path(tmp_path):
    target = tmp_path / "prog"
    target.write_text("")
    assert find_command_path(str(target), []) == str(target)
    with pytest.raises(CommandError) as info:
        find_command_path(str(tmp_path / "absent"), [])
    assert info.value.status == 127


def test_check_executable_directory(tmp_path):
    with pytest.raises(CommandError) as info:
        check_executable(f"{tmp_path}/")
    assert info.value.status == 126
    assert info.value.message == "is a directory"


def test_check_executable_missing(tmp_path):
    with pytest.raises(CommandError) as info:
        check_executable(str(tmp_path / "nothing"))
    assert info.value.status == 127


def test_execute_command_not_found(tmp_path):
    state = ShellState(env=Environment([f"PATH={tmp_path}"]))
    with pytest.raises(CommandError) as info:
        execute_command(make(words=["no-such-command"]), state)
    assert info.value.status == 127
    assert str(info.value) == "minishell: no-such-command: Command not found"


def test_execute_command_without_words():
    assert execute_command(make(), ShellState()) == 0


def test_execute_command_bad_redirection():
    state = ShellState()
    assert execute_command(make(words=["cat"], tokens=[">"], files=["\n"]), state) == 1
    assert state.status == 1


def test_execute_command_builtin_to_file(tmp_path, restore_stdio):
    target = tmp_path / "out"
    command = make(words=["echo", "hi"], tokens=[">"], files=[str(target)])
    assert execute_command(command, ShellState()) == 0
    assert target.read_text() == "hi\n"


def test_single_builtin_redirects_and_restores(tmp_path):
    target = tmp_path / "out"
    state = system_state()
    command = make(words=["echo", "hello"], tokens=[">"], files=[str(target)])
    assert execute_pipeline([command], state) == 0
    os.write(1, b"elsewhere")
    assert target.read_text() == "hello\n"


def test_single_export_changes_shell_env():
    state = ShellState(env=Environment(["HOME=/h"]))
    execute_pipeline([make(words=["export", "MINI_VAR=1"])], state)
    assert "MINI_VAR=1" in list(state.env)


def test_builtin_in_pipeline_runs_apart():
    state = system_state()
    status = execute_pipeline([make(words=["export", "MINI_VAR=1"]), make(words=["true"])], state)
    assert status == 0
    assert "MINI_VAR=1" not in list(state.env)


def test_external_pipeline(tmp_path):
    target = tmp_path / "out"
    state = system_state()
    commands = [
        make(words=["printf", "abc"]),
        make(words=["cat"], tokens=[">"], files=[str(target)]),
    ]
    assert execute_pipeline(commands, state) == 0
    assert target.read_text() == "abc"


def test_builtin_writes_into_pipe(tmp_path):
    target = tmp_path / "out"
    state = system_state()
    commands = [
        make(words=["echo", "hello"]),
        make(words=["cat"], tokens=[">"], files=[str(target)]),
    ]
    execute_pipeline(commands, state)
    assert target.read_text() == "hello\n"


def test_failing_command_status():
    state = system_state()
    assert execute_pipeline([make(words=["false"])], state) == 1
    assert state.status == 1


def test_command_not_found_status(tmp_path):
    state = ShellState(env=Environment([f"PATH={tmp_path}"]))
    assert execute_pipeline([make(words=["no-such-command"])], state) == 127


def test_misplaced_operator_is_syntax_error():
    state = system_state()
    command = make(words=["echo"], tokens=[">"], files=[">"])
    assert execute_pipeline([command], state) == 258


def test_builtin_with_missing_input(tmp_path):
    state = system_state()
    command = make(words=["echo", "x"], tokens=["<"], files=[str(tmp_path / "absent")])
    assert execute_pipeline([command], state) == 1


def test_exit_uses_parse_time_status():
    state = system_state()
    with pytest.raises(ShellExit) as info:
        execute_pipeline([make(words=["exit"], status=7)], state)
    assert info.value.status == 7