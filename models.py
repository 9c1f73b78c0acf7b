"""Data models for the content collection sync pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple


class EntityKind(Enum):
    """Content collection kinds, in the order they are synced."""
    CATEGORIES = "categories"
    AUTHORS = "authors"
    POSTS = "posts"


class SyncError(Exception):
    """Base class for errors that abort a sync run."""


class ConfigurationError(SyncError):
    """Mandatory configuration is missing or invalid."""


class SourceNotFoundError(SyncError):
    """A mandatory content source directory does not exist."""


class SocialLinksError(SyncError):
    """An author's social links field holds malformed JSON."""


@dataclass(frozen=True)
class ResourceReference:
    """A resource file referenced from a content record's front matter or body.

    Only constructed for files that exist on disk; ``reference`` keeps the
    literal text used in the source so body rewrites can find it again.
    """

    role: str
    source_path: Path
    reference: str = ''

    @property
    def extension(self) -> str:
        return self.source_path.suffix


@dataclass(frozen=True)
class ContentRecord:
    """One parsed content file. Immutable after load."""

    kind: EntityKind
    slug: str
    fields: Dict[str, Any]
    body: str = ''
    source_path: Optional[Path] = None
    resources: Dict[str, ResourceReference] = field(default_factory=dict)
    inline_images: Tuple[ResourceReference, ...] = ()

    def get(self, name: str, default: Any = None) -> Any:
        """Return a front matter field."""
        return self.fields.get(name, default)

    def resource(self, role: str) -> Optional[ResourceReference]:
        """Return the resolved resource for ``role``, if any."""
        return self.resources.get(role)


_MISSING = object()


class FieldValue:
    """Optional value of one destination field.

    Mappers only write through this type, so a field that is absent at the
    source is omitted from the output rather than written as ``null``.
    """

    __slots__ = ('_value',)

    def __init__(self, value: Any = _MISSING):
        self._value = value

    @classmethod
    def of(cls, value: Any) -> 'FieldValue':
        """Present only when ``value`` is truthy."""
        return cls(value) if value else cls()

    @classmethod
    def keep(cls, value: Any) -> 'FieldValue':
        """Present whenever ``value`` is not None (keeps False, 0 and '')."""
        return cls(value) if value is not None else cls()

    @classmethod
    def empty(cls) -> 'FieldValue':
        return cls()

    @property
    def present(self) -> bool:
        return self._value is not _MISSING

    @property
    def value(self) -> Any:
        if not self.present:
            raise ValueError("FieldValue is empty")
        return self._value

    def map(self, func) -> 'FieldValue':
        """Apply ``func`` to a present value."""
        return FieldValue(func(self._value)) if self.present else self

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, FieldValue):
            return False
        return self._value is other._value or self._value == other._value

    def __repr__(self) -> str:
        return f"FieldValue({self._value!r})" if self.present else "FieldValue(<empty>)"


class MappedRecord:
    """Destination-shape projection of a content record.

    Keys keep insertion order, which is the order they appear in the
    written JSON.
    """

    def __init__(self) -> None:
        self._fields: Dict[str, Any] = {}

    def put(self, name: str, value: FieldValue) -> 'MappedRecord':
        """Set ``name`` when ``value`` is present, otherwise leave it out."""
        if value.present:
            self._fields[name] = value.value
        return self

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def get(self, name: str, default: Any = None) -> Any:
        return self._fields.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, converting nested mapped records."""
        result = {}
        for key, value in self._fields.items():
            if isinstance(value, MappedRecord):
                value = value.to_dict()
            result[key] = value
        return result

    def __repr__(self) -> str:
        return f"MappedRecord({self._fields!r})"


@dataclass
class KindResult:
    """Outcome of syncing one entity kind."""

    kind: EntityKind
    records: List[Dict[str, Any]] = field(default_factory=list)
    loaded: int = 0
    synced: int = 0
    failed: int = 0
    skipped: int = 0
    source_missing: bool = False
    errors: List[Dict[str, str]] = field(default_factory=list)

    def add_error(self, record_name: str, error: Exception) -> None:
        self.failed += 1
        self.errors.append({'record': record_name, 'error': str(error)})

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'loaded': self.loaded,
            'synced': self.synced,
            'failed': self.failed,
            'skipped': self.skipped,
            'source_missing': self.source_missing,
            'errors': list(self.errors)
        }


__all__ = [
    'ConfigurationError',
    'ContentRecord',
    'EntityKind',
    'FieldValue',
    'KindResult',
    'MappedRecord',
    'ResourceReference',
    'SocialLinksError',
    'SourceNotFoundError',
    'SyncError'
]
