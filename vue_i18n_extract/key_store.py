from __future__ import annotations

import hashlib
import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Literal

from .resources import deep_merge, flat_to_nested, iter_leaves

KeyStrategy = Literal["increment", "hash"]

INCREMENT_KEY_RE = re.compile(r"^key_(?P<id>\d+)$")
HASH_LENGTH = 8


class KeyStore:
    """Text -> key registry for one extraction run.

    Keys are ``<module>.<local>``. A text that already has a key (loaded from the
    resource dictionary or allocated earlier in the run) keeps it, whichever
    module asks for it.
    """

    def __init__(
        self,
        dictionary: Mapping[str, Any] | None = None,
        *,
        strategy: KeyStrategy = "increment",
    ) -> None:
        if strategy not in ("increment", "hash"):
            raise ValueError(f"Unknown key strategy: {strategy}")
        self.strategy = strategy
        self._dictionary: dict[str, Any] = {}
        self._last_ids: dict[str, int] = {}
        self._text_to_key: dict[str, str] = {}
        self._key_to_text: dict[str, str] = {}
        self._extracted: dict[str, str] = {}
        self.initialize(dictionary or {})

    def initialize(self, dictionary: Mapping[str, Any]) -> None:
        self._dictionary = deep_merge({}, dictionary)
        self._last_ids = {}
        self._text_to_key = {}
        self._key_to_text = {}
        self._extracted = {}

        for path, text in iter_leaves(self._dictionary):
            module, _, local = path.rpartition(".")
            match = INCREMENT_KEY_RE.match(local)
            if module and match:
                self._last_ids[module] = max(
                    self._last_ids.get(module, 0), int(match.group("id"))
                )
            self._key_to_text[path] = text
            self._text_to_key.setdefault(text.strip(), path)

    @property
    def extracted(self) -> dict[str, str]:
        """Entries allocated during this run, ``full.key -> text``."""
        return dict(self._extracted)

    def last_id(self, module: str) -> int:
        return self._last_ids.get(module, 0)

    def lookup(self, text: str) -> str | None:
        return self._text_to_key.get(text.strip())

    def get_or_create_key(self, text: str, module: str) -> str:
        clean = text.strip()
        if not clean:
            raise ValueError("Cannot allocate a key for empty text")

        existing = self._text_to_key.get(clean)
        if existing is not None:
            return existing

        if self.strategy == "increment":
            next_id = self._last_ids.get(module, 0) + 1
            self._last_ids[module] = next_id
            key = f"{module}.key_{next_id}"
        else:
            key = self._hash_key(clean, module)

        self._text_to_key[clean] = key
        self._key_to_text[key] = clean
        self._extracted[key] = clean
        return key

    def _hash_key(self, text: str, module: str) -> str:
        digest = hashlib.md5(text.encode("utf-8")).hexdigest()
        length = HASH_LENGTH
        key = f"{module}.{digest[:length]}"
        while key in self._key_to_text and self._key_to_text[key] != text:
            length += 1
            if length > len(digest):
                raise ValueError(f"Hash space exhausted for module {module!r}")
            key = f"{module}.{digest[:length]}"
        return key

    def export_dictionary(self) -> dict[str, Any]:
        """Loaded dictionary with this run's entries merged on top."""
        return deep_merge(deep_merge({}, self._dictionary), flat_to_nested(self._extracted))

    @contextmanager
    def atomic(self) -> Iterator[KeyStore]:
        """Restore the store if the body raises."""
        snapshot = (
            dict(self._last_ids),
            dict(self._text_to_key),
            dict(self._key_to_text),
            dict(self._extracted),
        )
        try:
            yield self
        except BaseException:
            (
                self._last_ids,
                self._text_to_key,
                self._key_to_text,
                self._extracted,
            ) = snapshot
            raise
