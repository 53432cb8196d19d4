# minishell

A small interactive command shell for POSIX systems. It reads a line, splits
it into commands joined by `|`, expands `$VARIABLES` and `*` wildcards,
applies redirections and here-documents, and runs each command either as a
built-in or as an external program found on `PATH`.

## Installation

```
pip install .
```

## Usage

Start the shell:

```
minishell
```

`python -m minishell.shell` does the same. The shell takes no arguments;
passing any prints an error and exits with status 1. The prompt shows the
value of `USER` followed by ` $ `, or just `$ ` when `USER` is not set. End
the session with Ctrl-D (status 0) or the `exit` built-in. Ctrl-C at the
prompt starts a fresh line and sets the status to 1; Ctrl-\ is ignored.

### Supported syntax

- Pipelines: `ls | grep py | wc -l`
- Redirections: `<` input, `>` truncate, `>>` append
- Here-documents: `<< LIMITER`, with `$VARIABLE` expansion in the body; the
  body is kept in the file `/tmp/heredoc` while the line runs
- Variables: `$NAME`, and `$?` for the status of the last command; unset
  variables expand to nothing, and `\$` keeps a literal `$`
- Single and double quotes, and backslash escapes of quotes and backslashes
- Wildcards in the current directory: `*`, `*.c`, `main*`, `*util*`,
  `pre*suf`. Matches are sorted and joined by spaces; a bare `*` leaves out
  names starting with `.`, the other forms leave out only `.` and `..`; a
  pattern with no match stays as written, and quoted words are not expanded

A line that starts or ends with `|`, has an unbalanced quote, or holds an
empty command in a pipeline is a syntax error and sets the status to 258.
So does an operator where a redirection target belongs, such as `cat < >`.

A lone built-in runs inside the shell itself, so `cd`, `export` and `unset`
change the shell's own state. Everything else, and every command of a
pipeline, runs in a child process. A command that cannot be found gives
status 127; a path that names a directory gives 126.

### Built-ins

| Command  | Effect                                                          |
|----------|-----------------------------------------------------------------|
| `echo`   | prints its arguments; `-n` (and `-nnn`) drops the newline       |
| `pwd`    | prints the working directory                                    |
| `env`    | prints every variable that has a value                          |
| `cd`     | changes directory and updates `PWD`/`OLDPWD`; no argument or one starting with `~` goes to `HOME` |
| `export` | sets or declares variables; with no argument lists them as `declare -x` lines |
| `unset`  | removes variables                                               |
| `exit`   | leaves the shell with an optional numeric status; a non-numeric argument gives 255, more than one argument is refused with status 1 |

## Using it from Python

The pieces can be used on their own:

```python
from minishell.env import Environment, ShellState
from minishell.splitting import split_commands, split_words
from minishell.expansion import expand_variables
from minishell.wildcards import expand_wildcards
from minishell.parser import parse_commands
from minishell.shell import run_line

segments = split_commands("echo $HOME | wc -c", "|")   # ['echo $HOME ', ' wc -c']
words = split_words("cat < in.txt > out.txt", " ")     # ['cat', '<', 'in.txt', '>', 'out.txt']
text = expand_variables("home is $HOME", ["HOME=/home/user"])

state = ShellState(Environment.from_environ({"HOME": "/home/user"}))
status = run_line("echo hello", state)
```

The modules:

- `minishell.env` — `Environment`, the ordered list of `NAME=value`
  entries, and `ShellState`, which holds it with the last exit status
- `minishell.splitting` — `split_commands`, `split_words`, `unquote`
- `minishell.expansion` — `expand_variables` and its helpers
- `minishell.wildcards` — `expand_wildcards`, `expand_wildcard`,
  `match_pattern`, `tokenize`
- `minishell.parser` — `validate_line`, `parse_command`, `parse_commands`,
  the `Command` dataclass and `ShellSyntaxError`
- `minishell.builtins` — the built-ins, `run_builtin`, `is_builtin` and
  `ShellExit`
- `minishell.redirection` — `apply_redirections`, `read_heredoc`,
  `preprocess_heredocs` and `RedirectionError`
- `minishell.executor` — `execute_pipeline`, `execute_command`,
  `find_command_path` and `CommandError`
- `minishell.shell` — `run_line`, `repl`, `read_input`, `build_prompt`,
  `install_signal_handlers` and `main`

## What it does not do

There are no command lists (`;`, `&&`, `||`), subshells, background jobs or
job control, no `2>` or other descriptor redirections, no aliases, functions
or scripts, and no history file. Wildcards match only in the current
directory. Running commands relies on `fork` and `execve`, so the shell works
on POSIX systems only.

## Running the tests

```
pip install ".[test]"
pytest
```