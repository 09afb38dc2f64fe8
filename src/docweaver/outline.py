"""Documentation outline tree and index-path traversal.

Sections are addressed by an index path: the child index at each level, so
``(1, 0)`` is the first subsection of the second top-level section. Every
traversal here walks the tree iteratively and every mutation returns a copy.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from docweaver.errors import ConfigurationError

IndexPath = tuple[int, ...]


class OutlineSection(BaseModel):
    """One page of the generated documentation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    permalink: str
    single_sentence_description: str = Field(
        default="", alias="singleSentenceDescription"
    )
    key_things_to_cover: list[str] = Field(
        default_factory=list, alias="keythingsToCover"
    )
    subsections: list[OutlineSection] | None = None
    disabled: bool = False


class Outline(BaseModel):
    """Outline as produced by the outline-generation call."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    sections: list[OutlineSection] = Field(default_factory=list)

    @classmethod
    def from_llm(cls, value: Any) -> Outline:
        """Validate a parsed ``CallSuccess.message``.

        Raises:
            pydantic.ValidationError: The value does not have the outline shape.
        """
        return cls.model_validate(value)


def walk(outline: Outline) -> Iterator[tuple[IndexPath, OutlineSection]]:
    """Yield ``(path, section)`` for every section, depth-first in document order."""
    stack: list[tuple[IndexPath, OutlineSection]] = [
        ((i,), s) for i, s in reversed(list(enumerate(outline.sections)))
    ]
    while stack:
        path, section = stack.pop()
        yield path, section
        for i, child in reversed(list(enumerate(section.subsections or []))):
            stack.append(((*path, i), child))


def get_section(outline: Outline, path: IndexPath) -> OutlineSection:
    """Return the section at *path*.

    Raises:
        ConfigurationError: *path* is empty or points outside the tree.
    """
    siblings = outline.sections
    for depth, index in enumerate(path):
        if not 0 <= index < len(siblings):
            raise ConfigurationError(
                f"No section at index path {path}",
                hint=f"Level {depth} has {len(siblings)} section(s).",
            )
        if depth == len(path) - 1:
            return siblings[index]
        siblings = siblings[index].subsections or []
    raise ConfigurationError("Index path must not be empty")


def permalink_levels(outline: Outline, path: IndexPath) -> list[str]:
    """Permalinks of every section from the top level down to *path*."""
    return [get_section(outline, path[: depth + 1]).permalink for depth in range(len(path))]


def set_disabled(outline: Outline, path: IndexPath, disabled: bool = True) -> Outline:
    """Copy of *outline* with the section at *path* and its subtree (dis)abled."""
    updated = outline.model_copy(deep=True)
    target = get_section(updated, path)
    stack = [target]
    while stack:
        section = stack.pop()
        section.disabled = disabled
        stack.extend(section.subsections or [])
    return updated


def enabled_sections(outline: Outline) -> list[tuple[IndexPath, OutlineSection]]:
    """Sections that will be written: enabled, with no disabled ancestor."""
    skipped: list[IndexPath] = []
    selected: list[tuple[IndexPath, OutlineSection]] = []
    for path, section in walk(outline):
        if any(path[: len(s)] == s for s in skipped):
            continue
        if section.disabled:
            skipped.append(path)
            continue
        selected.append((path, section))
    return selected


def prune_disabled(outline: Outline) -> Outline:
    """Copy of *outline* with disabled sections and their subtrees removed."""
    pruned = outline.model_copy(deep=True)
    stack: list[list[OutlineSection]] = [pruned.sections]
    while stack:
        siblings = stack.pop()
        siblings[:] = [s for s in siblings if not s.disabled]
        stack.extend(s.subsections for s in siblings if s.subsections)
    return pruned


def prefix_permalinks(outline: Outline, prefix: str = "") -> Outline:
    """Copy of *outline* whose permalinks are full paths (``parent/child``).

    *prefix*, when given, is prepended to every top-level permalink.
    """
    updated = outline.model_copy(deep=True)
    root = prefix.strip("/")
    stack: list[tuple[str, OutlineSection]] = [(root, s) for s in updated.sections]
    while stack:
        parent, section = stack.pop()
        own = section.permalink.strip("/")
        section.permalink = f"{parent}/{own}" if parent else own
        stack.extend((section.permalink, child) for child in section.subsections or [])
    return updated
