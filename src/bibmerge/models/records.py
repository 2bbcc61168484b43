"""Bibliographic record and collection models.

A ``Record`` is an immutable bibliographic entry. A ``RecordCollection`` is an
ordered bibliography (the merge target, or one loaded source file) whose
writes are serialized by a lock.
"""

import json
import threading
import uuid
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from bibmerge.errors import MergeInvariantError
from bibmerge.utils import calculate_string_sha256


class CollectionMode(StrEnum):
    """Field conventions of a bibliography.

    Attributes
    ----------
    BIBTEX : str
        Classic BibTeX field names (``journal``, ``year``).
    BIBLATEX : str
        BibLaTeX field names (``journaltitle``, ``date``).
    """

    BIBTEX = "bibtex"
    BIBLATEX = "biblatex"


@dataclass(frozen=True)
class RecordOrigin:
    """Where a record was loaded from.

    Attributes
    ----------
    source : str
        Path of the source file.
    index : int
        0-based position of the record in the source file.
    """

    source: str
    index: int


def _new_marker() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, eq=False)
class Record:
    """Immutable bibliographic entry.

    Equality covers ``kind`` and ``fields`` only. The citation key, the
    instance marker and the origin are excluded, so two entries with the same
    content are exactly equal even under different keys.

    Attributes
    ----------
    kind : str
        Entry type, lower-cased (e.g., 'article').
    fields : Mapping[str, str]
        Field name to value. Names are lower-cased on construction.
    citation_key : str
        Citation key, empty when the entry has none.
    marker : str
        Per-instance identity marker, never persisted.
    origin : RecordOrigin | None
        Source file and position, set by the loader.
    """

    kind: str
    fields: Mapping[str, str] = field(default_factory=dict)
    citation_key: str = field(default="", compare=False)
    marker: str = field(default_factory=_new_marker, compare=False, repr=False)
    origin: RecordOrigin | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Normalize kind and field names."""
        normalized: dict[str, str] = {}
        for name, value in self.fields.items():
            key = name.lower()
            if key in normalized:
                raise ValueError(f"Duplicate field name (case-insensitive): {name}")
            normalized[key] = value
        object.__setattr__(self, "kind", self.kind.lower())
        object.__setattr__(self, "fields", MappingProxyType(normalized))
        object.__setattr__(self, "citation_key", (self.citation_key or "").strip())

    def __hash__(self) -> int:
        return hash((self.kind, frozenset(self.fields.items())))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self.kind == other.kind and dict(self.fields) == dict(other.fields)

    def get(self, name: str) -> str | None:
        """Look up a field value case-insensitively.

        Parameters
        ----------
        name : str
            Field name.

        Returns
        -------
        str | None
            Field value or None if absent.
        """
        return self.fields.get(name.lower())

    def digest(self) -> str:
        """Content digest, equal for exactly equal records.

        Returns
        -------
        str
            SHA-256 digest in format "sha256:<hex>".
        """
        canonical = json.dumps(
            {"kind": self.kind, "fields": dict(self.fields)},
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
        )
        return calculate_string_sha256(canonical)

    def with_origin(self, origin: RecordOrigin) -> "Record":
        """Return a copy of this record stamped with its origin."""
        return replace(self, fields=dict(self.fields), origin=origin)

    def label(self) -> str:
        """Short human-readable identifier for diagnostics."""
        return self.citation_key or f"<{self.kind}:{self.marker[:8]}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "kind": self.kind,
            "citation_key": self.citation_key,
            "fields": dict(self.fields),
        }
        if self.origin is not None:
            data["origin"] = {"source": self.origin.source, "index": self.origin.index}
        return data


class RecordCollection:
    """Ordered bibliography with a single-writer lock.

    Committed collections keep citation keys unique (empty keys excepted).
    Collections built from a freshly parsed source file may skip that check,
    since an incoming file need not satisfy it until merged.

    Attributes
    ----------
    lock : threading.RLock
        Held for the duration of every write.
    """

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self.lock = threading.RLock()
        self._records: list[Record] = []
        self.insert_records(list(records))

    @classmethod
    def from_records(
        cls,
        records: Iterable[Record],
        *,
        enforce_unique_keys: bool = True,
    ) -> "RecordCollection":
        """Build a collection from records.

        Parameters
        ----------
        records : Iterable[Record]
            Records in order.
        enforce_unique_keys : bool, optional
            Reject citation key collisions, by default True.

        Returns
        -------
        RecordCollection
            New collection.
        """
        if enforce_unique_keys:
            return cls(records)
        collection = cls()
        collection._records.extend(records)
        return collection

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]

    def __repr__(self) -> str:
        return f"RecordCollection({len(self._records)} records)"

    @property
    def records(self) -> tuple[Record, ...]:
        """Snapshot of the records in order."""
        with self.lock:
            return tuple(self._records)

    def citation_keys(self) -> set[str]:
        """Return the set of non-empty citation keys."""
        with self.lock:
            return {r.citation_key for r in self._records if r.citation_key}

    def find_by_key(self, citation_key: str) -> Record | None:
        """Return the first record with the given citation key, if any."""
        if not citation_key:
            return None
        with self.lock:
            for record in self._records:
                if record.citation_key == citation_key:
                    return record
        return None

    def insert_records(self, records: Iterable[Record]) -> None:
        """Append records in order, all or nothing.

        Parameters
        ----------
        records : Iterable[Record]
            Records to insert.

        Raises
        ------
        MergeInvariantError
            If a citation key collides with the collection or within
            ``records``. The collection is left unchanged.
        """
        incoming = list(records)
        with self.lock:
            seen = self.citation_keys()
            for record in incoming:
                key = record.citation_key
                if not key:
                    continue
                if key in seen:
                    raise MergeInvariantError(
                        f"Citation key collision on insert: {key}",
                        citation_key=key,
                    )
                seen.add(key)
            self._records.extend(incoming)
