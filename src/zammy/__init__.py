"""Zammy - a terminal command shell that third-party plugins can extend.

Key modules:

- :mod:`zammy.commands` - Command registry and dispatcher shared by core and plugin commands
- :mod:`zammy.plugins` - Plugin discovery, activation, storage and installation
- :mod:`zammy.config` - YAML configuration loading and validation
- :mod:`zammy.cli` - Typer command-line interface and interactive shell
"""

__version__ = "1.4.0"
