"""
Contract tests for the pulse CLI
"""

from typer.testing import CliRunner

from pulse.main import app

runner = CliRunner()


def test_version_prints_runtime_env() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.stdout.startswith("pulse v")
    assert "python=" in result.stdout


def test_classify_prints_tab_separated_tags() -> None:
    result = runner.invoke(app, ["classify", "main.rs", "Makefile", "notes.xyz"])

    assert result.exit_code == 0
    assert result.stdout.splitlines() == [
        "main.rs\trust",
        "Makefile\tc",
        "notes.xyz\ttxt",
    ]


def test_send_without_session_exits_non_zero(debug_log) -> None:
    result = runner.invoke(
        app,
        ["send", "foo.py", "--session-key", "", "--debug-log", "none"],
    )

    assert result.exit_code == 1


def test_send_to_unreachable_collector_exits_non_zero(debug_log) -> None:
    result = runner.invoke(
        app,
        [
            "send",
            "foo.py",
            "--session-key",
            "abc",
            "--endpoint",
            "http://127.0.0.1:9/heartbeat",
            "--debug-log",
            "none",
        ],
    )

    assert result.exit_code == 1
