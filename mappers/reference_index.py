"""
Slug to identifier lookup used to resolve cross references between entity kinds.

Built once per run from the mapped authors or categories and handed to the
posts stage as an argument. Read-only after construction.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from models import ContentRecord

logger = logging.getLogger('content_sync.mappers.reference_index')


class ReferenceIndex:
    """Immutable mapping of slug -> destination identifier."""

    def __init__(self, entries: Optional[Mapping[str, Any]] = None, name: str = 'records'):
        """
        Initialize the index.

        Args:
            entries: slug -> identifier pairs
            name: Entity kind name used in log messages
        """
        self._entries = MappingProxyType(dict(entries or {}))
        self.name = name

    @classmethod
    def from_records(
        cls,
        records: Iterable[ContentRecord],
        name: str = 'records',
        start: int = 1
    ) -> 'ReferenceIndex':
        """
        Assign sequential positions to records in load order.

        The first record gets ``start`` (1 by default). When two records share
        a slug the first one keeps it.

        Args:
            records: Records in load order
            name: Entity kind name used in log messages
            start: Position of the first record

        Returns:
            ReferenceIndex keyed by slug
        """
        entries: Dict[str, int] = {}
        for position, record in enumerate(records, start=start):
            if record.slug in entries:
                logger.warning(
                    f"Duplicate {name} slug '{record.slug}' at position {position}; "
                    f"keeping position {entries[record.slug]}"
                )
                continue
            entries[record.slug] = position

        logger.debug(f"Built {name} index with {len(entries)} entries")
        return cls(entries, name=name)

    def resolve(self, slug: Any) -> Optional[Any]:
        """
        Look up the identifier for ``slug``.

        Unknown or empty slugs resolve to None; an unresolved reference is not
        an error.
        """
        if not slug or not isinstance(slug, str):
            return None

        identifier = self._entries.get(slug)
        if identifier is None:
            logger.debug(f"Unresolved {self.name} reference: '{slug}'")
        return identifier

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._entries)

    def __contains__(self, slug: object) -> bool:
        return slug in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"ReferenceIndex({self.name}, {len(self._entries)} entries)"


__all__ = ['ReferenceIndex']
