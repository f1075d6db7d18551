#!/usr/bin/env python3
"""
N-gram sentence model: a graph of word n-grams built from a corpus,
walked at random to generate sentences.

Construction runs a sliding window of N tokens over the corpus:
- START: gather the first N tokens of a sentence. A terminal token
  (one containing '.') before the window fills aborts the sentence.
- INSIDE: shift the window one token at a time, linking each n-gram to
  the next. A terminal token closes the sentence and returns to START.

Each distinct n-gram is a single node (interned by its identifier), so
repeated phrases share a node and successor lists become multisets. The
graph may contain cycles ("a a a ...").
"""

import logging
import random
from collections import deque
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Union

from gramwalk.errors import EmptyModelError
from gramwalk.tokenizer import is_terminal, iter_tokens, tokenize


logger = logging.getLogger(__name__)

# Safety bound on walk length; walks over cycles without a reachable sink
# would otherwise never end.
DEFAULT_MAX_WORDS = 1000


def gram_key(tokens: Sequence[str]) -> str:
    """
    Identifier of a gram: tokens joined by single spaces, plus a trailing space.

    Example:
        >>> gram_key(["many", "dogs"])
        'many dogs '
    """
    return "".join(f"{token} " for token in tokens)


class GramNode:
    """A graph vertex: an n-gram and the n-grams observed right after it."""

    __slots__ = ("tokens", "successors")

    def __init__(self, tokens: Sequence[str] = ()):
        self.tokens = tuple(tokens)
        self.successors: List["GramNode"] = []

    @property
    def key(self) -> str:
        return gram_key(self.tokens)

    @property
    def last_token(self) -> str:
        return self.tokens[-1]

    @property
    def is_sink(self) -> bool:
        return not self.successors

    def __repr__(self) -> str:
        return f"GramNode({self.key!r}, successors={len(self.successors)})"


class NGramModel:
    """
    Per-corpus n-gram graph with random-walk sentence generation.

    Two sentinel nodes anchor the graph:
    - ``root``: its successors are the first full n-gram of every sentence
      (one reference per sentence, so frequent openings are more likely)
    - ``prefix_root``: the chain of partial openings, one token longer at
      each step, ending at the same full n-grams. Walking from here emits
      the whole opening of the sentence.

    Usage:
        >>> model = NGramModel.from_text("My many dogs have fleas.", n=2)
        >>> model.build_sentence(rng=random.Random(0))
        'many dogs have fleas.'
        >>> model.build_sentence(rng=random.Random(0), full_start=True)
        'My many dogs have fleas.'
    """

    def __init__(self, tokens: Iterable[str], n: int, name: Optional[str] = None):
        """
        Build a model from a token stream.

        Args:
            tokens: Corpus tokens in order (consumed once)
            n: Gram size, at least 1
            name: Optional model name for display

        Raises:
            ValueError: If n is not a positive integer
        """
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise ValueError(f"Gram size must be a positive integer, got {n!r}")

        self.n = n
        self.name = name
        self.root = GramNode()
        self.prefix_root = GramNode()
        self._closed = False

        self._build(tokens)

        logger.debug(
            "Built model %s: n=%d, %d sentences",
            self.name or "<unnamed>", self.n, self.num_sentences
        )

    @classmethod
    def from_text(cls, text: str, n: int, name: Optional[str] = None) -> "NGramModel":
        """Build a model from an in-memory string."""
        return cls(tokenize(text), n, name=name)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        n: int,
        name: Optional[str] = None
    ) -> "NGramModel":
        """
        Build a model from a corpus file.

        The file is streamed through the tokenizer and closed before this
        returns, whether or not construction succeeds.

        Raises:
            OSError: If the file cannot be opened or read
        """
        path = Path(path)
        with open(path, 'rb') as f:
            return cls(iter_tokens(f), n, name=name or path.stem)

    # ========================================================================
    # CONSTRUCTION
    # ========================================================================

    def _build(self, tokens: Iterable[str]):
        grams: Dict[str, GramNode] = {}
        window: List[str] = []
        prev: Optional[GramNode] = None  # None while in START

        for token in tokens:
            if prev is None:
                if is_terminal(token):
                    # Sentence ended before the first window filled
                    window = []
                    continue
                window.append(token)
                if len(window) == self.n:
                    prev = self._start_sentence(grams, window)
                continue

            window = window[1:] + [token]
            node = self._get_or_insert(grams, window)
            prev.successors.append(node)

            if is_terminal(token):
                window = []
                prev = None
            else:
                prev = node

    def _start_sentence(self, grams: Dict[str, GramNode], window: List[str]) -> GramNode:
        """Link a complete opening window into the graph and return its node."""
        prev = self.prefix_root
        for k in range(1, self.n + 1):
            node = self._get_or_insert(grams, window[:k])
            prev.successors.append(node)
            prev = node

        self.root.successors.append(prev)
        return prev

    @staticmethod
    def _get_or_insert(grams: Dict[str, GramNode], tokens: Sequence[str]) -> GramNode:
        key = gram_key(tokens)
        node = grams.get(key)
        if node is None:
            node = GramNode(tokens)
            grams[key] = node
        return node

    # ========================================================================
    # INSPECTION
    # ========================================================================

    def iter_nodes(self, include_prefixes: bool = False) -> Iterator[GramNode]:
        """
        Iterate over every node reachable from the root, breadth-first, once each.

        Args:
            include_prefixes: Also visit the partial-opening nodes under prefix_root
        """
        starts = [self.root, self.prefix_root] if include_prefixes else [self.root]
        seen = set(starts)
        queue = deque(starts)
        while queue:
            node = queue.popleft()
            if node not in starts:
                yield node
            for succ in node.successors:
                if succ not in seen:
                    seen.add(succ)
                    queue.append(succ)

    def get_node(self, tokens: Sequence[str]) -> Optional[GramNode]:
        """Find the node for a gram (full or partial opening), or None."""
        key = gram_key(tokens)
        for node in self.iter_nodes(include_prefixes=True):
            if node.key == key:
                return node
        return None

    @property
    def num_sentences(self) -> int:
        return len(self.root.successors)

    @property
    def num_nodes(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    @property
    def num_edges(self) -> int:
        return len(self.root.successors) + sum(len(node.successors) for node in self.iter_nodes())

    @property
    def is_empty(self) -> bool:
        return not self.root.successors

    # ========================================================================
    # GENERATION
    # ========================================================================

    def walk(
        self,
        rng=None,
        max_words: Optional[int] = DEFAULT_MAX_WORDS,
        full_start: bool = False
    ) -> List[GramNode]:
        """
        Random walk from a sentence start to a sink.

        Every successor is picked uniformly from the successor list, so
        repeated transitions are proportionally more likely.

        Args:
            rng: Random source with ``randrange`` (default: the ``random`` module)
            max_words: Stop after this many nodes (None = no bound)
            full_start: Start from prefix_root so the opening tokens are included

        Returns:
            Visited nodes in order

        Raises:
            EmptyModelError: If the model has no sentence starts
        """
        if max_words is not None and max_words < 1:
            raise ValueError(f"max_words must be positive, got {max_words}")

        start = self.prefix_root if full_start else self.root
        if not start.successors:
            raise EmptyModelError(
                f"Model '{self.name or '<unnamed>'}' has no sentences to generate from"
            )

        rng = rng or random
        curr = start.successors[rng.randrange(len(start.successors))]
        path = [curr]
        while curr.successors:
            if max_words is not None and len(path) >= max_words:
                logger.debug("Walk truncated at %d words", max_words)
                break
            curr = curr.successors[rng.randrange(len(curr.successors))]
            path.append(curr)

        return path

    def build_sentence(
        self,
        rng=None,
        max_words: Optional[int] = DEFAULT_MAX_WORDS,
        full_start: bool = False
    ) -> str:
        """
        Generate one sentence: the last token of each node on a random walk.

        Without ``full_start`` the first n-1 tokens of the starting gram are
        not emitted, since only each node's newest token is.

        Raises:
            EmptyModelError: If the model has no sentence starts
        """
        path = self.walk(rng=rng, max_words=max_words, full_start=full_start)
        return " ".join(node.last_token for node in path)

    # ========================================================================
    # TEARDOWN
    # ========================================================================

    def close(self):
        """Break every edge in the graph so cycles do not keep nodes alive."""
        if self._closed:
            return

        nodes = [self.root, self.prefix_root]
        seen = set(nodes)
        stack = list(nodes)
        while stack:
            node = stack.pop()
            for succ in node.successors:
                if succ not in seen:
                    seen.add(succ)
                    nodes.append(succ)
                    stack.append(succ)

        # Children before parents
        for node in reversed(nodes):
            node.successors.clear()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __repr__(self) -> str:
        name = f"name={self.name!r}, " if self.name else ""
        return f"NGramModel({name}n={self.n}, sentences={self.num_sentences})"
