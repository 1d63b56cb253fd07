from __future__ import annotations

import hashlib
from typing import Dict, Iterable, Iterator, List


# -----------------------------------------------------------------------------
# Trie
# -----------------------------------------------------------------------------
class TrieNode:
    """One node of the prefix tree. Children are owned by their parent."""
    __slots__ = ("children", "is_word")

    def __init__(self) -> None:
        self.children: Dict[str, TrieNode] = {}
        self.is_word: bool = False


def _normalize_word(raw) -> str:
    """
    Lowercase and strip one dictionary entry.
    Returns "" when the entry is not usable (empty, or anything besides a-z).
    """
    if raw is None:
        return ""
    s = str(raw).strip().lower()
    if not s or not (s.isascii() and s.isalpha()):
        return ""
    return s


class WordIndex:
    """
    Dictionary used by the square search.

    A prefix tree over lowercase alphabetic words, plus a length -> words
    lookup kept in insertion order. Built once from a caller list and never
    modified afterwards. Bad entries are dropped quietly.
    """

    def __init__(self, words: Iterable[str] = ()) -> None:
        self.root = TrieNode()
        self._by_length: Dict[int, List[str]] = {}
        self._order: List[str] = []

        for raw in words or ():
            w = _normalize_word(raw)
            if not w:
                continue
            if self._insert(w):
                self._order.append(w)
                self._by_length.setdefault(len(w), []).append(w)

    def _insert(self, word: str) -> bool:
        """Insert a word; returns False if it was already there."""
        node = self.root
        for ch in word:
            nxt = node.children.get(ch)
            if nxt is None:
                nxt = TrieNode()
                node.children[ch] = nxt
            node = nxt
        if node.is_word:
            return False
        node.is_word = True
        return True

    def _walk(self, text: str):
        node = self.root
        for ch in text:
            node = node.children.get(ch)
            if node is None:
                return None
        return node

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def has_prefix(self, prefix: str) -> bool:
        """True if any indexed word starts with prefix ("" always does)."""
        return self._walk(prefix) is not None

    def contains(self, word: str) -> bool:
        """Exact membership."""
        node = self._walk(word)
        return node is not None and node.is_word

    def words_of_length(self, n: int) -> List[str]:
        return list(self._by_length.get(n, []))

    def fingerprint(self) -> str:
        """
        Stable digest of the word set (order-independent).
        Used to tie daily seeds to the dictionary they were generated from.
        """
        h = hashlib.sha256()
        for w in sorted(self._order):
            h.update(w.encode("utf-8"))
            h.update(b"\n")
        return h.hexdigest()

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, word) -> bool:
        return isinstance(word, str) and self.contains(word)

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __repr__(self) -> str:
        lengths = ", ".join(f"{k}:{len(v)}" for k, v in sorted(self._by_length.items()))
        return f"WordIndex({len(self._order)} words; by length {{{lengths}}})"
