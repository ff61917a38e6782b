"""
Schema definition for search indexing.

A schema lists the indexed text fields (each with a scoring boost), the
name of the reference field that identifies documents, and the ordered
pipeline of text transforms. It is validated eagerly so a malformed
configuration fails before any document is processed.

Example:
    schema = IndexSchema(
        fields=[FieldSpec("title", boost=2.0), FieldSpec("body"), FieldSpec("breadcrumbs")],
        ref="id",
    )
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import math
from typing import Any

from docs_search.search.analyzers import DEFAULT_PIPELINE, TextPipeline, unknown_pipeline_functions
from docs_search.search.errors import ConfigError


INDEX_FORMAT_VERSION = "0.9.5"


@dataclass(frozen=True)
class FieldSpec:
    """
    Analyzed text field.

    Args:
        name: Field name (e.g., "body", "title")
        boost: Field weight in scoring (default: 1.0)
    """

    name: str
    boost: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {"boost": self.boost}


@dataclass(frozen=True)
class IndexSchema:
    """Build configuration for a search index."""

    fields: Sequence[FieldSpec]
    ref: str = "id"
    pipeline: Sequence[str] = DEFAULT_PIPELINE
    lang: str = "English"
    save_documents: bool = True
    name: str = "default"
    _field_map: Mapping[str, FieldSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate schema after initialization."""
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "pipeline", tuple(self.pipeline))

        if not self.fields:
            raise ConfigError("Schema must declare at least one indexed field")
        if not isinstance(self.ref, str) or not self.ref:
            raise ConfigError("Schema ref field name must be a non-empty string")

        field_map: dict[str, FieldSpec] = {}
        for entry in self.fields:
            if not entry.name:
                raise ConfigError("Field names must be non-empty")
            if entry.name in field_map:
                msg = f"Duplicate field '{entry.name}' in schema"
                raise ConfigError(msg)
            if not math.isfinite(entry.boost) or entry.boost <= 0:
                msg = f"Field '{entry.name}' boost must be a positive number, got {entry.boost!r}"
                raise ConfigError(msg)
            field_map[entry.name] = entry

        if self.ref in field_map:
            msg = f"Ref field '{self.ref}' cannot also be an indexed field"
            raise ConfigError(msg)

        unknown = unknown_pipeline_functions(self.pipeline)
        if unknown:
            msg = f"Unknown pipeline function(s) {unknown}"
            raise ConfigError(msg)

        object.__setattr__(self, "_field_map", field_map)

    def __getitem__(self, name: str) -> FieldSpec:
        """Get field by name."""
        return self._field_map[name]

    def __contains__(self, name: object) -> bool:
        return name in self._field_map

    def __iter__(self):
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self.fields)

    def get_boost(self, field_name: str) -> float:
        """Get boost factor for a field."""
        if field_name in self._field_map:
            return self._field_map[field_name].boost
        return 1.0

    def build_pipeline(self) -> TextPipeline:
        return TextPipeline(self.pipeline)

    def with_boosts(self, boosts: Mapping[str, float]) -> IndexSchema:
        """Return a copy with boosts overridden for the named fields."""

        unknown = sorted(set(boosts) - set(self._field_map))
        if unknown:
            msg = f"Cannot boost unknown field(s): {unknown}"
            raise ConfigError(msg)
        fields = [FieldSpec(entry.name, float(boosts.get(entry.name, entry.boost))) for entry in self.fields]
        return IndexSchema(
            fields=fields,
            ref=self.ref,
            pipeline=self.pipeline,
            lang=self.lang,
            save_documents=self.save_documents,
            name=self.name,
        )


def create_default_schema(*, save_documents: bool = True, name: str = "docs") -> IndexSchema:
    """
    Create the default schema for documentation pages.

    Fields:
    - title: Page or section title (boost=2.0)
    - body: Main content (boost=1.0)
    - breadcrumbs: Hierarchical section path (boost=1.0)
    """
    return IndexSchema(
        fields=[
            FieldSpec("title", boost=2.0),
            FieldSpec("body", boost=1.0),
            FieldSpec("breadcrumbs", boost=1.0),
        ],
        ref="id",
        save_documents=save_documents,
        name=name,
    )
