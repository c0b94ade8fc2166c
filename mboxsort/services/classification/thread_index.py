"""Thread reconstruction over a fully materialized message set."""

from typing import Dict, List, Optional, Sequence

from mboxsort.models.bucket import NO_SUBJECT
from mboxsort.models.message import Message


class ThreadIndex:
    """
    Groups messages into threads.

    A message joins its parent's thread when In-Reply-To, or failing that
    the last resolvable References entry, names a Message-ID present in the
    set. Messages without a resolvable parent are grouped by normalized
    subject instead. Grouping uses union-find, so it does not depend on
    archive adjacency and reference cycles are harmless. Each thread is
    represented by its earliest member in archive order.
    """

    def __init__(self, messages: Sequence[Message]):
        self._messages = sorted(messages, key=lambda message: message.source_offset)
        self._position = {message.id: index for index, message in enumerate(self._messages)}
        self._parent = {message.id: message.id for message in self._messages}
        self._link()
        self._names: Dict[int, str] = {}
        self._ranks: Dict[int, int] = {}
        self._name_threads()

    def _find(self, key: int) -> int:
        root = key
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[key] != root:
            self._parent[key], key = root, self._parent[key]
        return root

    def _union(self, a: int, b: int) -> None:
        root_a, root_b = self._find(a), self._find(b)
        if root_a == root_b:
            return
        if self._position[root_a] <= self._position[root_b]:
            self._parent[root_b] = root_a
        else:
            self._parent[root_a] = root_b

    def _link(self) -> None:
        by_message_id: Dict[str, int] = {}
        for message in self._messages:
            if message.message_id:
                by_message_id.setdefault(message.message_id, message.id)

        by_subject: Dict[str, int] = {}
        for message in self._messages:
            parent = self._resolve_parent(message, by_message_id)
            if parent is not None:
                self._union(message.id, parent)
                continue
            subject = message.normalized_subject
            if subject:
                first = by_subject.setdefault(subject, message.id)
                self._union(first, message.id)

    @staticmethod
    def _resolve_parent(message: Message, by_message_id: Dict[str, int]) -> Optional[int]:
        candidates = []
        if message.in_reply_to:
            candidates.append(message.in_reply_to)
        candidates.extend(reversed(message.references))
        for candidate in candidates:
            parent = by_message_id.get(candidate)
            if parent is not None and parent != message.id:
                return parent
        return None

    def _name_threads(self) -> None:
        used = set()
        for message in self._messages:
            root = self._find(message.id)
            if root in self._names:
                continue
            base = message.message_id or message.normalized_subject or NO_SUBJECT
            name = base if base not in used else f"{base}#{root}"
            used.add(name)
            self._names[root] = name
            self._ranks[root] = len(self._ranks)

    def root_of(self, message: Message) -> Message:
        return self._messages[self._position[self._find(message.id)]]

    def name_of(self, message: Message) -> str:
        """Thread label: the root's Message-ID, else its normalized subject."""
        return self._names[self._find(message.id)]

    def rank_of(self, message: Message) -> int:
        """Position of the message's thread in order of first appearance."""
        return self._ranks[self._find(message.id)]

    def threads(self) -> Dict[str, List[Message]]:
        """Return thread label -> members in archive order, threads in first-appearance order."""
        grouped: Dict[str, List[Message]] = {}
        for message in self._messages:
            grouped.setdefault(self.name_of(message), []).append(message)
        return grouped

    def __len__(self) -> int:
        return len(self._names)
