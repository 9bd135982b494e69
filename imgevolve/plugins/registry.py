"""Tag -> class registry implementing the plugin stream protocol.

A plugin is written as its registered tag followed by a length-prefixed JSON
document of its parameters. Reading looks the tag up and rebuilds the plugin
from that document.
"""

from typing import Type, TypeVar

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from imgevolve.exceptions import PluginError, PluginNotFoundError, SnapshotReadError
from imgevolve.plugins.base import Plugin
from imgevolve.utils.binary import BinaryReader, BinaryWriter

P = TypeVar("P", bound=Plugin)


class PluginRegistry:
    """Registry of plugin classes keyed by their persisted tag."""

    _plugins: dict[str, Type[Plugin]] = {}
    _tags: dict[Type[Plugin], str] = {}

    @classmethod
    def register(cls, tag: str | None = None):
        """Decorator to register a plugin class.

        Args:
            tag: Persisted tag (class name if None)
        """

        def decorator(plugin_class: Type[P]) -> Type[P]:
            final_tag = tag or plugin_class.__name__
            existing = cls._plugins.get(final_tag)
            if existing is not None and existing is not plugin_class:
                raise PluginError(
                    f"Tag {final_tag!r} already registered for {existing.__name__}"
                )
            cls._plugins[final_tag] = plugin_class
            cls._tags[plugin_class] = final_tag
            return plugin_class

        return decorator

    @classmethod
    def get(cls, tag: str) -> Type[Plugin] | None:
        return cls._plugins.get(tag)

    @classmethod
    def tag_of(cls, plugin: Plugin) -> str:
        tag = cls._tags.get(type(plugin))
        if tag is None:
            raise PluginError(f"Plugin class {type(plugin).__name__} is not registered")
        return tag

    @classmethod
    def get_all(cls) -> dict[str, Type[Plugin]]:
        return cls._plugins.copy()

    @classmethod
    def unregister(cls, tag: str) -> None:
        plugin_class = cls._plugins.pop(tag, None)
        if plugin_class is not None:
            cls._tags.pop(plugin_class, None)

    @classmethod
    def write_module(cls, plugin: Plugin, writer: BinaryWriter) -> None:
        writer.write_string(cls.tag_of(plugin))
        writer.write_blob(plugin.model_dump_json().encode("utf-8"))

    @classmethod
    def read_module(
        cls, reader: BinaryReader, expected: Type[P] | None = None
    ) -> P:
        """Read one plugin from *reader*.

        Raises:
            PluginNotFoundError: if the tag is not registered
            SnapshotReadError: if the stored parameters are corrupt
            PluginError: if the plugin is not an instance of *expected*
        """
        tag = reader.read_string()
        state = reader.read_blob()
        plugin_class = cls._plugins.get(tag)
        if plugin_class is None:
            logger.error(f"[PluginRegistry] Unknown plugin tag {tag!r}")
            raise PluginNotFoundError(f"Unknown plugin tag: {tag!r}")

        try:
            plugin = plugin_class.model_validate_json(state)
        except PydanticValidationError as exc:
            raise SnapshotReadError(
                f"Corrupt parameters for plugin {tag!r}: {exc}"
            ) from exc

        if expected is not None and not isinstance(plugin, expected):
            raise PluginError(
                f"Plugin {tag!r} is not a {expected.__name__}"
            )
        logger.debug(f"[PluginRegistry] Loaded {tag}")
        return plugin  # type: ignore[return-value]
