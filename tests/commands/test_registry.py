"""Tests for the command registry."""

import pytest

from zammy.commands.registry import Command, CommandRegistry, CommandSource


async def _noop(args: list[str]) -> None:
    return None


def _cmd(name: str, description: str = "test") -> Command:
    return Command(name=name, description=description, usage=f"/{name}", execute=_noop)


class TestRegistration:
    def test_core_command(self, registry: CommandRegistry):
        registry.register_command(_cmd("help"))

        entry = registry.get_command("help")
        assert entry is not None
        assert entry.source is CommandSource.CORE
        assert entry.plugin_name is None
        assert entry.usage == "/help"

    def test_plugin_command(self, registry: CommandRegistry):
        registry.register_plugin_command(_cmd("weather"), "weather-plugin")

        entry = registry.get_command("weather")
        assert entry.source is CommandSource.PLUGIN
        assert entry.plugin_name == "weather-plugin"
        assert registry.get_plugin_for_command("weather") == "weather-plugin"

    def test_last_write_wins(self, registry: CommandRegistry):
        registry.register_command(_cmd("help", "core help"))
        registry.register_plugin_command(_cmd("help", "plugin help"), "p")

        entry = registry.get_command("help")
        assert entry.description == "plugin help"
        assert entry.source is CommandSource.PLUGIN
        assert len(registry) == 1

    def test_get_plugin_for_core_command_is_none(self, registry: CommandRegistry):
        registry.register_command(_cmd("help"))
        assert registry.get_plugin_for_command("help") is None
        assert registry.get_plugin_for_command("missing") is None


class TestUnregister:
    def test_removes_only_owned_plugin_commands(self, registry: CommandRegistry):
        registry.register_command(_cmd("help"))
        registry.register_plugin_command(_cmd("a"), "p")
        registry.register_plugin_command(_cmd("b"), "p")
        registry.register_plugin_command(_cmd("c"), "q")

        removed = registry.unregister_plugin_commands("p")

        assert sorted(removed) == ["a", "b"]
        assert registry.has_command("help")
        assert registry.has_command("c")
        assert not registry.has_command("a")

    def test_unknown_plugin_removes_nothing(self, registry: CommandRegistry):
        registry.register_plugin_command(_cmd("a"), "p")
        assert registry.unregister_plugin_commands("nope") == []
        assert "a" in registry

    def test_unregister_single_command(self, registry: CommandRegistry):
        registry.register_command(_cmd("help"))
        assert registry.unregister_command("help") is True
        assert registry.unregister_command("help") is False

    def test_restore_puts_back_previous_owner(self, registry: CommandRegistry):
        registry.register_plugin_command(_cmd("x"), "old")
        previous = registry.get_command("x")
        registry.register_plugin_command(_cmd("x"), "new")

        registry.restore(previous)

        assert registry.get_plugin_for_command("x") == "old"


class TestQueries:
    def test_partitions(self, registry: CommandRegistry):
        registry.register_command(_cmd("help"))
        registry.register_command(_cmd("exit"))
        registry.register_plugin_command(_cmd("a"), "p")
        registry.register_plugin_command(_cmd("b"), "q")

        assert len(registry.get_all_commands()) == 4
        assert {e.name for e in registry.get_core_commands()} == {"help", "exit"}
        assert {e.name for e in registry.get_plugin_commands()} == {"a", "b"}
        assert [e.name for e in registry.get_plugin_commands("q")] == ["b"]

    def test_snapshots_are_copies(self, registry: CommandRegistry):
        registry.register_command(_cmd("help"))
        snapshot = registry.get_all_commands()
        snapshot.clear()
        assert registry.has_command("help")

    def test_conflict_check(self, registry: CommandRegistry):
        registry.register_command(_cmd("help"))
        registry.register_plugin_command(_cmd("w"), "weather")

        assert registry.check_command_conflict("nope").exists is False

        core = registry.check_command_conflict("help")
        assert core.exists is True
        assert core.source is CommandSource.CORE

        plugin = registry.check_command_conflict("w")
        assert plugin.source is CommandSource.PLUGIN
        assert plugin.plugin_name == "weather"

    def test_conflict_check_does_not_modify(self, registry: CommandRegistry):
        registry.check_command_conflict("help")
        assert len(registry) == 0


@pytest.mark.asyncio
async def test_registered_command_executes_wrapped_function(registry: CommandRegistry):
    seen = []

    async def run(args: list[str]) -> None:
        seen.append(args)

    registry.register_command(Command(name="go", description="", usage="/go", execute=run))
    await registry.get_command("go").execute(["a", "b"])

    assert seen == [["a", "b"]]
