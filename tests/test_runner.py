"""Tests for Runner."""

import pytest

from moon_dashboard.core.errors import (
    CommandFailedError,
    CommandOutputError,
    CommandStartError,
)
from moon_dashboard.core.runner import Runner, render


def test_successful_command(tmp_path):
    result = Runner().execute("echo 'Hello World'", cwd=tmp_path)

    assert result.exited == 0
    assert "Hello World" in result.stdout


def test_failed_command_raises_when_checked(tmp_path):
    with pytest.raises(CommandFailedError) as excinfo:
        Runner().execute("false", cwd=tmp_path)

    assert excinfo.value.exited != 0


def test_failed_command_returns_when_unchecked(tmp_path):
    result = Runner().execute("exit 3", cwd=tmp_path, check=False)

    assert result.exited == 3


def test_missing_program_cannot_start(tmp_path):
    with pytest.raises(CommandStartError):
        Runner().execute(
            "moon-dashboard-no-such-program --version", cwd=tmp_path, check=False
        )


def test_runs_in_working_directory(tmp_path):
    (tmp_path / "marker.txt").write_text("here")

    result = Runner().execute("ls", cwd=tmp_path)

    assert "marker.txt" in result.stdout


def test_environment_is_layered(tmp_path):
    result = Runner().execute(
        "echo $MOON_HOME", cwd=tmp_path, env={"MOON_HOME": "/opt/moon"}
    )

    assert result.stdout.strip() == "/opt/moon"


def test_timeout_handling(tmp_path):
    result = Runner().execute("sleep 10", cwd=tmp_path, timeout=1, check=False)

    assert result.exited == -1


def test_log_file_content(tmp_path):
    log_file = tmp_path / "logs" / "out.log"

    Runner().execute("echo 'Test Output'", cwd=tmp_path, log_file=log_file)

    assert "Test Output" in log_file.read_text()


def test_echoed_output_with_braces_logs_cleanly(tmp_path, recwarn):
    result = Runner().execute(
        "echo '{\"name\": \"moonbitlang/x\"}'", cwd=tmp_path, log_level="info"
    )

    assert '{"name": "moonbitlang/x"}' in result.stdout
    assert not [w for w in recwarn if "Formatting" in type(w.message).__name__]


def test_output_is_stripped(tmp_path):
    assert Runner().output("printf '  v1.2.3 \\n'", cwd=tmp_path) == "v1.2.3"


def test_output_rejects_invalid_utf8(tmp_path):
    with pytest.raises(CommandOutputError):
        Runner().output("printf '\\377\\376'", cwd=tmp_path)


def test_render_quotes_parameters():
    command = render("git checkout {rev}", rev="x; rm -rf /")

    assert command == "git checkout 'x; rm -rf /'"


def test_render_leaves_plain_values_alone():
    assert render("moon build --target {backend}", backend="wasm-gc") == (
        "moon build --target wasm-gc"
    )
