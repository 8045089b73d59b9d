"""Tests for CLI app entry point."""

from unittest.mock import patch

from typer.testing import CliRunner

from zammy import __version__
from zammy.cli.app import app, main

runner = CliRunner()


def test_version_command():
    """Test 'version' prints zammy version string."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"zammy version {__version__}" in result.output


def test_no_args_shows_help():
    """Test invoking with no arguments shows help (no_args_is_help)."""
    result = runner.invoke(app, [])
    assert result.exit_code in (0, 2)
    assert "Usage" in result.output or "zammy" in result.output


def test_run_core_command(tmp_config_path):
    """Test 'run help' lists the core commands."""
    result = runner.invoke(app, ["run", "--config", str(tmp_config_path), "help"])
    assert result.exit_code == 0
    assert "/plugin" in result.output


def test_run_unknown_command_fails(tmp_config_path):
    result = runner.invoke(app, ["run", "--config", str(tmp_config_path), "nope"])
    assert result.exit_code == 1
    assert "Unknown command: /nope" in result.output


def test_run_plugin_command_lazily(tmp_config_path, plugins_dir, make_plugin):
    """Test a plugin command runs through its lazy stub."""
    make_plugin(plugins_dir, "alpha")
    result = runner.invoke(app, ["run", "--config", str(tmp_config_path), "alpha", "x"])
    assert result.exit_code == 0


def test_invalid_config_exits(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("plugins: [unclosed\n")

    result = runner.invoke(app, ["plugin", "list", "--config", str(path)])

    assert result.exit_code == 1
    assert "Failed to load config" in result.output


def test_shell_command(tmp_config_path):
    """Test 'shell' delegates to shell_command."""
    with patch("zammy.cli.shell.shell_command") as mock_shell:
        result = runner.invoke(app, ["shell", "--config", str(tmp_config_path)])
        mock_shell.assert_called_once()
        assert result.exit_code == 0


def test_plugin_list_empty(tmp_config_path):
    result = runner.invoke(app, ["plugin", "list", "--config", str(tmp_config_path)])
    assert result.exit_code == 0
    assert "No plugins installed" in result.output


def test_plugin_install_list_remove(tmp_config_path, plugins_dir, tmp_path, make_plugin):
    src = make_plugin(tmp_path / "src", "weather", commands=["weather"], displayName="Weather")
    config = ["--config", str(tmp_config_path)]

    installed = runner.invoke(app, ["plugin", "install", str(src), *config])
    assert installed.exit_code == 0, installed.output
    assert "Plugin installed successfully" in installed.output
    assert (plugins_dir / "weather").is_dir()

    listed = runner.invoke(app, ["plugin", "list", *config])
    assert "Weather" in listed.output
    assert "/weather" in listed.output

    info = runner.invoke(app, ["plugin", "info", "weather", *config])
    assert "Commands: /weather" in info.output

    removed = runner.invoke(app, ["plugin", "remove", "weather", "--yes", *config])
    assert removed.exit_code == 0
    assert not (plugins_dir / "weather").exists()


def test_plugin_install_failure_exit_code(tmp_config_path, tmp_path):
    result = runner.invoke(
        app, ["plugin", "install", str(tmp_path / "missing"), "--config", str(tmp_config_path)]
    )
    assert result.exit_code == 1
    assert "Installation failed" in result.output


def test_plugin_create(tmp_config_path, tmp_path):
    result = runner.invoke(
        app,
        ["plugin", "create", "zammy-plugin-demo", "--dir", str(tmp_path), "--config", str(tmp_config_path)],
        input="\n\n\n",
    )
    assert result.exit_code == 0, result.output
    assert (tmp_path / "zammy-plugin-demo" / "zammy-plugin.json").is_file()


def test_main_keyboard_interrupt():
    """Test main() handles KeyboardInterrupt with exit code 130."""
    with (
        patch("zammy.cli.app.app", side_effect=KeyboardInterrupt),
        patch("zammy.cli.app.sys") as mock_sys,
    ):
        main()
        mock_sys.exit.assert_called_once_with(130)


def test_main_generic_exception():
    """Test main() handles generic exceptions with exit code 1."""
    with (
        patch("zammy.cli.app.app", side_effect=RuntimeError("boom")),
        patch("zammy.cli.app.sys") as mock_sys,
    ):
        main()
        mock_sys.exit.assert_called_once_with(1)
