"""Domain models for the Soundpad soundlist."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DefinitionInfo:
    """A flat-list sound definition. Its id is its 0-based position."""

    id: int
    url: str
    custom_tag: str = ""
    artist: str = ""
    title: str = ""
    duration: str = ""


@dataclass(frozen=True)
class CategoryEntry:
    """A visible category and the name of its parent ("" for top level)."""

    name: str
    parent: str


@dataclass(frozen=True)
class CategoryIcon:
    """Icon payload of a named category."""

    name: str
    icon: str
    is_base64: bool


@dataclass(frozen=True)
class CategoryPlacement:
    """Where a sound is shown: its category, that category's parent, and its slot."""

    category: str
    parent: str
    position: int


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one text-to-text document transformation.

    On failure ``content`` is the untouched input text.
    """

    success: bool
    content: str
    message: str = ""
    error: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, content: str, message: str, **data: Any) -> "MutationResult":
        return cls(success=True, content=content, message=message, data=data)

    @classmethod
    def fail(cls, content: str, error: str) -> "MutationResult":
        return cls(success=False, content=content, error=error)


@dataclass(frozen=True)
class LifecycleOutcome:
    """Result of one stop/edit/relaunch cycle."""

    success: bool
    message: str = ""
    error: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    stopped_cleanly: bool = True
    ready: bool = True
