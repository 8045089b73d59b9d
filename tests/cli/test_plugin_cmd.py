"""Tests for plugin management commands."""

from unittest.mock import patch

import pytest

from zammy.cli.plugin_cmd import (
    create_plugin,
    info_plugin,
    install_plugin,
    list_plugins,
    load_plugin,
    remove_plugin,
    unload_plugin,
)
from zammy.commands.registry import Command, CommandSource

BROKEN = "def activate(api):\n    raise RuntimeError('nope')\n"


async def _noop(args):
    return None


@pytest.mark.asyncio
async def test_list_plugins_shows_state_and_discovery_errors(host, plugins_dir, make_plugin, console):
    make_plugin(plugins_dir, "alpha", permissions={"shell": True})
    make_plugin(plugins_dir, "future", zammy={"minVersion": "99.0.0"})

    await list_plugins(host)

    output = console.export_text()
    assert "Installed Plugins (1)" in output
    assert "alpha" in output
    assert "idle" in output
    assert "shell" in output
    assert "Requires zammy v99.0.0+" in output


@pytest.mark.asyncio
async def test_info_plugin(host, plugins_dir, make_plugin, console):
    make_plugin(
        plugins_dir,
        "alpha",
        commands=["a1", "a2"],
        description="Does [bold]things[/bold]",
        permissions={"network": ["api.example.com"]},
    )

    await info_plugin(host, "alpha")

    output = console.export_text()
    assert "Does [bold]things[/bold]" in output
    assert "Commands: /a1, /a2" in output
    assert "network: Access to api.example.com" in output


@pytest.mark.asyncio
async def test_info_unknown(host, console):
    await info_plugin(host, "ghost")
    assert "Plugin 'ghost' not found" in console.export_text()


@pytest.mark.asyncio
async def test_install_registers_lazy_commands(host, tmp_path, make_plugin, console):
    src = make_plugin(tmp_path / "src", "weather", permissions={"shell": True})

    assert await install_plugin(host, str(src)) is True

    assert host.registry.get_plugin_for_command("weather") == "weather"
    output = console.export_text()
    assert "shell: Can run system commands" in output
    assert "Commands added: /weather" in output


@pytest.mark.asyncio
async def test_install_conflict_prompts(host, tmp_path, make_plugin, console):
    host.registry.register_command(Command(name="help", description="", usage="/help", execute=_noop))
    src = make_plugin(tmp_path / "src", "helper", commands=["help"])

    with patch("zammy.cli.plugin_cmd.Confirm.ask", return_value=False) as mock_ask:
        assert await install_plugin(host, str(src)) is False

    mock_ask.assert_called_once()
    assert "conflicts with core zammy command" in console.export_text()
    assert host.registry.get_command("help").source is CommandSource.CORE


@pytest.mark.asyncio
async def test_install_conflict_with_yes(host, tmp_path, make_plugin):
    host.registry.register_command(Command(name="help", description="", usage="/help", execute=_noop))
    src = make_plugin(tmp_path / "src", "helper", commands=["help", "assist"])

    with patch("zammy.cli.plugin_cmd.Confirm.ask") as mock_ask:
        assert await install_plugin(host, str(src), yes=True) is True

    mock_ask.assert_not_called()
    # Lazy stubs never displace an existing command
    assert host.registry.get_command("help").source is CommandSource.CORE
    assert host.registry.get_plugin_for_command("assist") == "helper"


@pytest.mark.asyncio
async def test_install_unknown_source(host, console):
    assert await install_plugin(host, "what is this") is False
    assert "Could not determine source type" in console.export_text()


@pytest.mark.asyncio
async def test_reinstall_replaces_running_plugin(host, tmp_path, make_plugin):
    src = make_plugin(tmp_path / "src", "echo")
    await install_plugin(host, str(src))
    await host.loader.load_plugin("echo")

    assert await install_plugin(host, str(src)) is True

    assert not host.loader.is_plugin_loaded("echo")
    assert host.registry.get_plugin_for_command("echo") == "echo"


@pytest.mark.asyncio
async def test_remove_unloads_and_deletes(host, plugins_dir, make_plugin):
    make_plugin(plugins_dir, "alpha")
    await host.loader.discover_plugins()
    await host.loader.load_plugin("alpha")

    assert await remove_plugin(host, "alpha", yes=True) is True

    assert not (plugins_dir / "alpha").exists()
    assert not host.registry.has_command("alpha")
    assert host.loader.get_plugin_state("alpha") is None


@pytest.mark.asyncio
async def test_remove_drops_lazy_stubs(host, plugins_dir, make_plugin):
    make_plugin(plugins_dir, "alpha")
    await host.loader.init_plugins()

    await remove_plugin(host, "alpha", yes=True)

    assert not host.registry.has_command("alpha")


@pytest.mark.asyncio
async def test_remove_by_display_name(host, plugins_dir, make_plugin):
    make_plugin(plugins_dir, "zammy-plugin-weather", displayName="Weather")

    assert await remove_plugin(host, "weather", yes=True) is True
    assert not (plugins_dir / "zammy-plugin-weather").exists()


@pytest.mark.asyncio
async def test_remove_cancelled(host, plugins_dir, make_plugin):
    make_plugin(plugins_dir, "alpha")

    with patch("zammy.cli.plugin_cmd.Confirm.ask", return_value=False):
        assert await remove_plugin(host, "alpha") is False

    assert (plugins_dir / "alpha").is_dir()


@pytest.mark.asyncio
async def test_remove_unknown_suggests(host, plugins_dir, make_plugin, console):
    make_plugin(plugins_dir, "zammy-plugin-dice")

    assert await remove_plugin(host, "dice", yes=True) is False

    output = console.export_text()
    assert "Plugin 'dice' not found" in output
    assert "Did you mean: zammy-plugin-dice" in output


@pytest.mark.asyncio
async def test_load_and_unload(host, plugins_dir, make_plugin, console):
    make_plugin(plugins_dir, "alpha")

    assert await load_plugin(host, "alpha") is True
    assert host.loader.is_plugin_loaded("alpha")

    assert await unload_plugin(host, "alpha") is True
    assert await unload_plugin(host, "alpha") is False
    assert "is not loaded" in console.export_text()


@pytest.mark.asyncio
async def test_load_failure_reported(host, plugins_dir, make_plugin, console):
    make_plugin(plugins_dir, "bad", code=BROKEN)

    assert await load_plugin(host, "bad") is False
    assert "failed during activate: nope" in console.export_text()


def test_create_plugin(host, tmp_path, console):
    answers = iter(["Demo", "A demo", "demo"])
    with patch("zammy.cli.plugin_cmd.Prompt.ask", side_effect=lambda *a, **k: next(answers)):
        assert create_plugin(host, "Zammy Plugin Demo", tmp_path) is True

    target = tmp_path / "zammy-plugin-demo"
    assert (target / "plugin.py").is_file()
    assert "Plugin created successfully" in console.export_text()


def test_create_plugin_existing_dir(host, tmp_path, console):
    (tmp_path / "taken").mkdir()
    with patch("zammy.cli.plugin_cmd.Prompt.ask", return_value="x"):
        assert create_plugin(host, "taken", tmp_path) is False
    assert "Directory already exists" in console.export_text()
