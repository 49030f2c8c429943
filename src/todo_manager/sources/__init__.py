"""Reference sources: an in-memory store and a YAML file store."""

from .base import Source, maybe_await
from .memory import MemorySource
from .yaml_file import YamlFileSource

__all__ = ["Source", "MemorySource", "YamlFileSource", "maybe_await"]
