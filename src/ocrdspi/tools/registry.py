"""Registry of the tools a host offers.

The registry provides:
- Tool registration and lookup by name
- Category-based listing in host display order
- Loading of JSON-described tools from their processors
- Premise checks for one configuration and target
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from ocrdspi.foundation.config import Configuration, Target
from ocrdspi.foundation.core import Premise
from ocrdspi.foundation.errors import DescriptionError

from .catalog import builtin_tools
from .descriptor import ToolDescriptor, ToolMetadata

logger = logging.getLogger("ocrdspi.registry")


class ToolRegistry:
    """Named collection of tool descriptors.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(descriptor)
        >>> registry["tesserocr-segment-line"].new_job(configuration)
        >>> [m.name for m in registry.list_by_category("ocr")]
        ['calamari-recognize', 'tesserocr-recognize']
    """

    __slots__ = ("_tools",)

    def __init__(self, tools: Iterable[ToolDescriptor] = ()) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        self.register_all(*tools)

    def register(self, tool: ToolDescriptor) -> None:
        name = tool.name
        if name in self._tools:
            raise ValueError(f"Tool '{name}' already registered. Use unregister() first.")
        self._tools[name] = tool

    def register_all(self, *tools: ToolDescriptor) -> None:
        for tool in tools:
            self.register(tool)

    def unregister(self, name: str) -> bool:
        """Remove a tool by name. Returns True if found."""
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def __getitem__(self, name: str) -> ToolDescriptor:
        """Get tool by name, raises KeyError if not found."""
        return self._tools[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def clear(self) -> None:
        self._tools.clear()

    # ─────────────────────────────────────────────────────────────────
    # Querying
    # ─────────────────────────────────────────────────────────────────

    def list_tools(self) -> list[ToolMetadata]:
        """Metadata of all tools, ordered by category, index and name."""
        return sorted((t.metadata for t in self._tools.values()), key=lambda m: (m.category, m.index, m.name))

    def list_by_category(self, category: str) -> list[ToolMetadata]:
        return [m for m in self.list_tools() if m.category == category]

    def categories(self) -> set[str]:
        return {t.metadata.category for t in self._tools.values()}

    def premises(self, configuration: Configuration | None, target: Target | None) -> dict[str, Premise]:
        return {name: tool.premise(configuration, target) for name, tool in self._tools.items()}

    # ─────────────────────────────────────────────────────────────────
    # JSON-described tools
    # ─────────────────────────────────────────────────────────────────

    def load_descriptions(self, configuration: Configuration | None) -> dict[str, DescriptionError]:
        """Replace every undescribed JSON tool by its loaded descriptor.

        Tools whose processor cannot describe itself stay as they are; their
        errors are returned by tool name.
        """
        failures: dict[str, DescriptionError] = {}
        for name, tool in list(self._tools.items()):
            if tool.is_described:
                continue
            try:
                self._tools[name] = tool.load(configuration)
            except DescriptionError as e:
                logger.warning("tool description not loaded", extra={"tool": name, "error": e.error.message})
                failures[name] = e
        return failures


def default_registry() -> ToolRegistry:
    """Registry holding fresh descriptors of all built-in tools."""
    return ToolRegistry(builtin_tools())


# ─────────────────────────────────────────────────────────────────────────────
# Global Registry
# ─────────────────────────────────────────────────────────────────────────────

_registry: ToolRegistry | None = None


def get_registry() -> ToolRegistry:
    """Get the global tool registry, creating it with the built-in tools on first use."""
    global _registry
    return _registry if _registry is not None else (_registry := default_registry())


def set_registry(registry: ToolRegistry) -> None:
    global _registry
    _registry = registry


def reset_registry() -> None:
    """Reset the global registry (useful for testing)."""
    global _registry
    _registry = None
