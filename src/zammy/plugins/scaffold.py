"""Template for new plugins."""

from __future__ import annotations

import re
from pathlib import Path

from zammy.plugins.manifest import MANIFEST_FILENAME, PluginManifest, ZammyCompatibility
from zammy.plugins.version import get_host_version

ENTRY_TEMPLATE = '''"""{display_name} - a zammy plugin."""

from rich import print

from zammy.commands.registry import Command


def activate(api):
    theme, symbols = api.ui.theme, api.ui.symbols

    async def {func_name}(args: list[str]) -> None:
        print(f"  {{symbols.star}} {{theme.gradient({display_name_upper!r})}}")
        print(f"  {{theme.success('Hello from {display_name}!')}}")
        if args:
            print(f"  {{theme.dim('Arguments:')}} {{' '.join(args)}}")

    api.register_command(
        Command(
            name={command_name!r},
            description="My custom command",
            usage="/{command_name} [args]",
            execute={func_name},
        )
    )
    api.log.info("Plugin activated")


def deactivate():
    pass
'''

README_TEMPLATE = """# {display_name}

{description}

## Installation

```
zammy plugin install ./{name}
```

## Usage

```
/{command_name} [args]
```
"""


def normalize_plugin_name(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def suggest_display_name(name: str) -> str:
    return name.removeprefix("zammy-plugin-").replace("-", " ").title()


def suggest_command_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.removeprefix("zammy-plugin-"))


def create_plugin_scaffold(
    target_dir: Path,
    name: str,
    display_name: str,
    description: str,
    command_name: str,
) -> PluginManifest:
    """Write a minimal working plugin into ``target_dir``.

    Raises:
        FileExistsError: If ``target_dir`` already exists
    """
    manifest = PluginManifest(
        name=name,
        version="1.0.0",
        main="plugin.py",
        commands=[command_name],
        zammy=ZammyCompatibility(min_version=get_host_version()),
        display_name=display_name,
        description=description,
    )

    target_dir.mkdir(parents=True)
    (target_dir / MANIFEST_FILENAME).write_text(manifest.to_json() + "\n", encoding="utf-8")
    (target_dir / "plugin.py").write_text(
        ENTRY_TEMPLATE.format(
            display_name=display_name,
            display_name_upper=display_name.upper(),
            command_name=command_name,
            func_name="run_" + re.sub(r"\W", "_", command_name),
        ),
        encoding="utf-8",
    )
    (target_dir / "README.md").write_text(
        README_TEMPLATE.format(
            display_name=display_name,
            description=description,
            name=name,
            command_name=command_name,
        ),
        encoding="utf-8",
    )
    return manifest
