"""Tests for the built-in help, plugin and exit commands."""

from unittest.mock import AsyncMock, patch

import pytest

from zammy.commands.core import register_core_commands
from zammy.commands.registry import Command, CommandSource
from zammy.config.schema import PluginsConfig, ZammyConfig
from zammy.host import create_host


@pytest.fixture
def host(plugins_dir, console):
    config = ZammyConfig(plugins=PluginsConfig(plugin_dir=str(plugins_dir)))
    host = create_host(config, console)
    register_core_commands(host)
    return host


def test_registers_core_commands(host):
    names = {e.name for e in host.registry.get_core_commands()}
    assert names == {"help", "plugin", "exit"}
    assert all(e.source is CommandSource.CORE for e in host.registry.get_core_commands())


@pytest.mark.asyncio
async def test_help_lists_commands_with_plugin_tag(host, console):
    async def noop(args):
        return None

    host.registry.register_plugin_command(
        Command(name="weather", description="[Weather] Forecast", usage="/weather", execute=noop),
        "weather-plugin",
    )

    await host.dispatcher.dispatch("/help")

    output = console.export_text()
    assert "/help" in output
    assert "/weather" in output
    assert "[Weather] Forecast" in output
    assert "(weather-plugin)" in output


@pytest.mark.asyncio
async def test_help_for_single_command(host, console):
    await host.dispatcher.dispatch("/help exit")

    output = console.export_text()
    assert "Leave the zammy shell" in output
    assert "Usage: /exit" in output


@pytest.mark.asyncio
async def test_help_for_unknown_command(host, console):
    await host.dispatcher.dispatch("/help nope")
    assert "Unknown command: nope" in console.export_text()


@pytest.mark.asyncio
async def test_exit_stops_host(host):
    assert host.running is True
    await host.dispatcher.dispatch("/exit")
    assert host.running is False


@pytest.mark.asyncio
async def test_plugin_without_subcommand_prints_help(host, console):
    await host.dispatcher.dispatch("/plugin")
    assert "PLUGIN MANAGER" in console.export_text()


@pytest.mark.asyncio
async def test_plugin_unknown_subcommand(host, console):
    await host.dispatcher.dispatch("/plugin frobnicate")
    assert "Unknown subcommand: frobnicate" in console.export_text()


@pytest.mark.asyncio
async def test_plugin_missing_argument(host, console):
    await host.dispatcher.dispatch("/plugin install")
    assert "Missing argument for 'install'" in console.export_text()


@pytest.mark.asyncio
async def test_plugin_install_passes_yes_flag(host):
    with patch("zammy.cli.plugin_cmd.install_plugin", new_callable=AsyncMock) as mock_install:
        await host.dispatcher.dispatch("/plugin i ./demo -y")

    mock_install.assert_awaited_once_with(host, "./demo", yes=True)


@pytest.mark.asyncio
async def test_plugin_remove_alias(host):
    with patch("zammy.cli.plugin_cmd.remove_plugin", new_callable=AsyncMock) as mock_remove:
        await host.dispatcher.dispatch("/plugin rm demo")

    mock_remove.assert_awaited_once_with(host, "demo", yes=False)


@pytest.mark.asyncio
async def test_plugin_list_alias(host):
    with patch("zammy.cli.plugin_cmd.list_plugins", new_callable=AsyncMock) as mock_list:
        await host.dispatcher.dispatch("/plugin ls")

    mock_list.assert_awaited_once_with(host)
