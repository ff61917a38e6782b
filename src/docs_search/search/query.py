"""Query value objects: options, clauses and parsed queries."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal


DEFAULT_LIMIT = 30
DEFAULT_TEASER_WORD_COUNT = 30

HighlightStyle = Literal["html", "plain", "none"]


class CombineMode(str, Enum):
    """How clauses for distinct query tokens combine."""

    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, value: CombineMode | str) -> CombineMode:
        if isinstance(value, CombineMode):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            msg = f"Unknown combine mode {value!r}; expected 'AND' or 'OR'"
            raise ValueError(msg) from None


@dataclass(frozen=True)
class SearchOptions:
    """Global options for a search call.

    ``fields`` restricts the searched fields (all indexed fields when None);
    ``field_boosts`` overrides the schema boosts per field.
    """

    combine_with: CombineMode = CombineMode.OR
    expand: bool = True
    fields: tuple[str, ...] | None = None
    field_boosts: Mapping[str, float] = field(default_factory=dict)
    limit: int = DEFAULT_LIMIT
    teaser_word_count: int = DEFAULT_TEASER_WORD_COUNT
    normalize_field_length: bool = True
    highlight: HighlightStyle = "html"

    def __post_init__(self) -> None:
        object.__setattr__(self, "combine_with", CombineMode.parse(self.combine_with))
        object.__setattr__(self, "field_boosts", MappingProxyType(dict(self.field_boosts)))
        if self.fields is not None:
            object.__setattr__(self, "fields", tuple(self.fields))
        if self.highlight not in ("html", "plain", "none"):
            msg = f"Unknown highlight style {self.highlight!r}"
            raise ValueError(msg)

    def with_updates(self, **updates: Any) -> SearchOptions:
        return replace(self, **updates)

    def to_search_options_dict(self, boosts: Mapping[str, float]) -> dict[str, Any]:
        """Serialize to the artifact's ``search_options`` object."""
        merged = {**boosts, **self.field_boosts}
        return {
            "bool": self.combine_with.value,
            "expand": self.expand,
            "fields": {name: {"boost": boost} for name, boost in merged.items()},
        }

    def to_results_options_dict(self) -> dict[str, Any]:
        return {"limit_results": self.limit, "teaser_word_count": self.teaser_word_count}

    @classmethod
    def from_artifact(
        cls,
        search_options: Mapping[str, Any] | None,
        results_options: Mapping[str, Any] | None = None,
    ) -> SearchOptions:
        """Build options from the artifact's ``search_options``/``results_options`` objects."""

        search_options = search_options or {}
        results_options = results_options or {}
        boosts: dict[str, float] = {}
        for name, config in (search_options.get("fields") or {}).items():
            if isinstance(config, Mapping) and "boost" in config:
                boosts[name] = float(config["boost"])
        return cls(
            combine_with=CombineMode.parse(search_options.get("bool", CombineMode.OR)),
            expand=bool(search_options.get("expand", True)),
            field_boosts=boosts,
            limit=int(results_options.get("limit_results", DEFAULT_LIMIT)),
            teaser_word_count=int(results_options.get("teaser_word_count", DEFAULT_TEASER_WORD_COUNT)),
        )


@dataclass(frozen=True)
class QueryClause:
    """One normalized query token and how to match it."""

    term: str
    fields: frozenset[str] | None = None
    boost: float = 1.0
    use_prefix: bool = False
    required: bool = False

    def applies_to(self, field_name: str) -> bool:
        return self.fields is None or field_name in self.fields


@dataclass(frozen=True)
class Query:
    """A parsed query: ordered clauses plus the options it was parsed with."""

    text: str
    clauses: tuple[QueryClause, ...]
    options: SearchOptions

    @property
    def terms(self) -> tuple[str, ...]:
        return tuple(clause.term for clause in self.clauses)

    def is_empty(self) -> bool:
        return not self.clauses

    @classmethod
    def from_terms(cls, text: str, terms: Sequence[str], options: SearchOptions) -> Query:
        """Create one clause per distinct term, keeping first-seen order."""

        seen: set[str] = set()
        clauses: list[QueryClause] = []
        fields = frozenset(options.fields) if options.fields is not None else None
        required = options.combine_with is CombineMode.AND
        for term in terms:
            if not term or term in seen:
                continue
            seen.add(term)
            clauses.append(QueryClause(term=term, fields=fields, use_prefix=options.expand, required=required))
        return cls(text=text, clauses=tuple(clauses), options=options)
