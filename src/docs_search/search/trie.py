"""Per-field postings trie.

Nodes live in a flat arena and reference their children by index, so a
field's vocabulary is a list of small records rather than a deep graph of
node objects. Terminal nodes carry the postings (``doc_id -> tf``); the
document frequency of a node is the size of its postings mapping.

The nested ``{"df": n, "docs": {...}, "<char>": {...}}`` shape used by the
persisted artifact is produced by ``to_dict`` and validated by ``from_dict``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from docs_search.search.errors import MalformedIndexError


_ROOT = 0
_RESERVED_KEYS = frozenset({"df", "docs"})
_EMPTY_POSTINGS: Mapping[int, float] = MappingProxyType({})


@dataclass(slots=True)
class TrieNode:
    """A single arena slot."""

    children: dict[str, int] = field(default_factory=dict)
    docs: dict[int, float] = field(default_factory=dict)

    @property
    def df(self) -> int:
        return len(self.docs)


class TokenTrie:
    """Character trie mapping tokens to postings."""

    def __init__(self) -> None:
        self._nodes: list[TrieNode] = [TrieNode()]
        self._token_count = 0

    def __len__(self) -> int:
        """Return the number of distinct tokens with postings."""
        return self._token_count

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and bool(self.get_docs(token))

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def add(self, token: str, doc_id: int, tf: float) -> None:
        """Record ``tf`` for ``doc_id`` under ``token``, replacing an earlier weight."""
        if not token:
            return
        if tf <= 0:
            msg = f"Term frequency must be positive, got {tf!r} for '{token}'"
            raise ValueError(msg)
        node = self._nodes[self._walk(token, create=True)]
        if not node.docs:
            self._token_count += 1
        node.docs[doc_id] = float(tf)

    def _walk(self, token: str, *, create: bool = False) -> int | None:
        index = _ROOT
        for char in token:
            children = self._nodes[index].children
            child = children.get(char)
            if child is None:
                if not create:
                    return None
                child = len(self._nodes)
                self._nodes.append(TrieNode())
                children[char] = child
            index = child
        return index

    def get_docs(self, token: str) -> Mapping[int, float]:
        """Return the postings for ``token`` (empty when absent)."""

        index = self._walk(token)
        if index is None:
            return _EMPTY_POSTINGS
        return MappingProxyType(self._nodes[index].docs)

    def get_df(self, token: str) -> int:
        index = self._walk(token)
        if index is None:
            return 0
        return self._nodes[index].df

    def get_tf(self, token: str, doc_id: int) -> float:
        return self.get_docs(token).get(doc_id, 0.0)

    def expand(self, prefix: str) -> list[str]:
        """Return every indexed token starting with ``prefix`` (itself included).

        Tokens are returned in lexicographic order of their characters.
        """

        start = self._walk(prefix)
        if start is None:
            return []
        return [token for token, _node in self._iter_from(start, prefix)]

    def tokens(self) -> Iterator[str]:
        for token, _node in self._iter_from(_ROOT, ""):
            yield token

    def items(self) -> Iterator[tuple[str, Mapping[int, float]]]:
        for token, node in self._iter_from(_ROOT, ""):
            yield token, MappingProxyType(node.docs)

    def _iter_from(self, start: int, prefix: str) -> Iterator[tuple[str, TrieNode]]:
        stack: list[tuple[int, str]] = [(start, prefix)]
        while stack:
            index, text = stack.pop()
            node = self._nodes[index]
            if node.docs:
                yield text, node
            # Reverse so the pop order walks children alphabetically
            for char in sorted(node.children, reverse=True):
                stack.append((node.children[char], text + char))

    def doc_ids(self) -> set[int]:
        """Return every document id referenced by a posting."""

        found: set[int] = set()
        for node in self._nodes:
            found.update(node.docs)
        return found

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the nested ``{"root": {...}}`` artifact shape."""

        return {"root": self._node_to_dict(_ROOT)}

    def _node_to_dict(self, index: int) -> dict[str, Any]:
        node = self._nodes[index]
        payload: dict[str, Any] = {
            "df": node.df,
            "docs": {str(doc_id): {"tf": tf} for doc_id, tf in sorted(node.docs.items())},
        }
        for char in sorted(node.children):
            payload[char] = self._node_to_dict(node.children[char])
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, key: str = "root") -> TokenTrie:
        """Rebuild a trie from its artifact shape, validating every node."""

        if not isinstance(data, Mapping) or not isinstance(data.get("root"), Mapping):
            raise MalformedIndexError("Trie is missing its root node", key=key)

        trie = cls()
        stack: list[tuple[Mapping[str, Any], int, str]] = [(data["root"], _ROOT, f"{key}.root")]
        while stack:
            raw, index, path = stack.pop()
            node = trie._nodes[index]
            node.docs.update(_parse_postings(raw, path))
            if node.docs:
                trie._token_count += 1
            for char, child in raw.items():
                if char in _RESERVED_KEYS:
                    continue
                child_path = f"{path}.{char}"
                if len(char) != 1 or not isinstance(child, Mapping):
                    raise MalformedIndexError("Trie child must be keyed by a single character", key=child_path)
                child_index = len(trie._nodes)
                trie._nodes.append(TrieNode())
                node.children[char] = child_index
                stack.append((child, child_index, child_path))
        return trie


def _parse_postings(raw: Mapping[str, Any], path: str) -> dict[int, float]:
    if "df" not in raw or "docs" not in raw:
        raise MalformedIndexError("Trie node is missing 'df' or 'docs'", key=path)
    docs = raw["docs"]
    if not isinstance(docs, Mapping):
        raise MalformedIndexError("Trie node 'docs' must be an object", key=f"{path}.docs")

    postings: dict[int, float] = {}
    for raw_id, entry in docs.items():
        entry_path = f"{path}.docs.{raw_id}"
        try:
            doc_id = int(raw_id)
            tf = float(entry["tf"])
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedIndexError(f"Invalid posting: {exc}", key=entry_path) from exc
        if tf <= 0:
            raise MalformedIndexError(f"Term frequency must be positive, got {tf}", key=entry_path)
        postings[doc_id] = tf

    if raw["df"] != len(postings):
        msg = f"Document frequency {raw['df']!r} does not match {len(postings)} posting(s)"
        raise MalformedIndexError(msg, key=f"{path}.df")
    return postings
