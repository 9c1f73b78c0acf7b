"""Loaders that turn content collection files into ContentRecord objects.

One loader per entity kind. Each applies the kind's identifying-field rule,
derives the slug, normalizes loosely typed front matter values and resolves
the kind's resource fields.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from tqdm import tqdm

from loaders.content_reader import FENCE_PATTERN, ContentReader
from models import ContentRecord, EntityKind, ResourceReference, SocialLinksError

TEAM_VALUES = ('founders', 'team')
SOCIAL_NETWORKS = ('twitter', 'github', 'linkedin')
REMOTE_PREFIXES = ('http://', 'https://', '//', 'data:', 'mailto:')


def is_truthy_flag(value: Any) -> bool:
    """Front matter booleans may arrive as real booleans or as the string 'true'."""
    return value is True or (isinstance(value, str) and value.strip().lower() == 'true')


class EntityLoader:
    """Base loader: scan, parse, filter and build records for one entity kind."""

    kind: EntityKind = None
    required_field: str = 'name'

    def __init__(
        self,
        reader: Optional[ContentReader] = None,
        show_progress: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        self.reader = reader or ContentReader()
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger(f'content_sync.loaders.{self.kind.value}')

        self.stats = {
            'files_scanned': 0,
            'records_loaded': 0,
            'files_skipped': 0,
            'drafts_excluded': 0
        }

    def load(self, root: Path) -> List[ContentRecord]:
        """
        Load every content record below ``root``, in traversal order.

        Args:
            root: Content collection directory

        Returns:
            List of ContentRecord
        """
        files = self.reader.scan(root)
        self.stats['files_scanned'] += len(files)
        self.logger.debug(f"Found {len(files)} {self.kind.value} files in {root}")

        records = []
        for file_path in tqdm(files, desc=f"Loading {self.kind.value}", unit="file",
                              disable=not self.show_progress):
            fields, body = self.reader.read(file_path)

            if not fields or not fields.get(self.required_field):
                self.logger.debug(f"Skipping {file_path}: no '{self.required_field}' field")
                self.stats['files_skipped'] += 1
                continue

            record = self.build_record(file_path, fields, body)
            if record is None:
                continue

            records.append(record)
            self.stats['records_loaded'] += 1

        self.logger.info(f"Loaded {len(records)} {self.kind.value} from {root}")
        return records

    def build_record(self, file_path: Path, fields: Dict[str, Any], body: str) -> Optional[ContentRecord]:
        raise NotImplementedError

    def _resources(self, file_path: Path, **values: Any) -> Dict[str, ResourceReference]:
        resources = {}
        for role, value in values.items():
            reference = self.reader.resolve_resource(file_path, value, role)
            if reference is not None:
                resources[role] = reference
        return resources

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()


class AuthorLoader(EntityLoader):
    """Authors: identified by ``name``; slug is the filename stem."""

    kind = EntityKind.AUTHORS
    required_field = 'name'

    def build_record(self, file_path: Path, fields: Dict[str, Any], body: str) -> ContentRecord:
        normalized = dict(fields)
        normalized['bio'] = fields.get('bio') or ''
        normalized['isTeam'] = is_truthy_flag(fields.get('isTeam'))
        normalized['team'] = fields.get('team') if fields.get('team') in TEAM_VALUES else None
        normalized['social'] = parse_social_links(fields.get('social'), file_path)

        return ContentRecord(
            kind=self.kind,
            slug=file_path.stem,
            fields=normalized,
            body=body,
            source_path=file_path,
            resources=self._resources(file_path, avatar=fields.get('avatar'))
        )


class CategoryLoader(EntityLoader):
    """Categories: identified by ``name``; ``slug`` overrides the filename stem."""

    kind = EntityKind.CATEGORIES
    required_field = 'name'

    def build_record(self, file_path: Path, fields: Dict[str, Any], body: str) -> ContentRecord:
        return ContentRecord(
            kind=self.kind,
            slug=str(fields.get('slug') or file_path.stem),
            fields=dict(fields),
            body=body,
            source_path=file_path,
            resources=self._resources(file_path, featuredImage=fields.get('featuredImage'))
        )


class PostLoader(EntityLoader):
    """Blog posts: identified by ``title``; drafts are excluded."""

    kind = EntityKind.POSTS
    required_field = 'title'

    MARKDOWN_IMAGE_PATTERN = re.compile(r'!\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+["\'][^)]*["\'])?\s*\)')
    HTML_IMAGE_PATTERN = re.compile(r'<img\b[^>]*?\bsrc=["\']([^"\']+)["\']', re.IGNORECASE)

    def build_record(self, file_path: Path, fields: Dict[str, Any], body: str) -> Optional[ContentRecord]:
        if is_truthy_flag(fields.get('draft')):
            self.logger.info(f"Excluding draft: {file_path}")
            self.stats['drafts_excluded'] += 1
            return None

        meta = fields.get('meta') if isinstance(fields.get('meta'), dict) else {}
        og = meta.get('og') if isinstance(meta.get('og'), dict) else {}

        return ContentRecord(
            kind=self.kind,
            slug=self._slug(file_path, fields),
            fields=dict(fields),
            body=body,
            source_path=file_path,
            resources=self._resources(
                file_path,
                cover=fields.get('featuredImage') or fields.get('thumbnail'),
                ogImage=og.get('image')
            ),
            inline_images=self._inline_images(file_path, body)
        )

    @staticmethod
    def _slug(file_path: Path, fields: Dict[str, Any]) -> str:
        if fields.get('slug'):
            return str(fields['slug'])
        # Page-bundle posts live in <slug>/index.md
        if file_path.stem == 'index':
            return file_path.parent.name
        return file_path.stem

    def _inline_images(self, file_path: Path, body: str) -> Tuple[ResourceReference, ...]:
        """Collect local images referenced from the body, in order of first use."""
        references = []
        for match in self._image_matches(body):
            if match in references or match.startswith(REMOTE_PREFIXES):
                continue
            references.append(match)

        images = []
        for reference in references:
            resolved = self.reader.resolve_resource(file_path, reference, 'inline')
            if resolved is not None:
                images.append(resolved)
        return tuple(images)

    def _image_matches(self, body: str) -> List[str]:
        # Images shown inside fenced code are examples, not resources
        body = FENCE_PATTERN.sub('', body)
        found = []
        for pattern in (self.MARKDOWN_IMAGE_PATTERN, self.HTML_IMAGE_PATTERN):
            for match in pattern.finditer(body):
                found.append((match.start(), match.group(1)))
        found.sort()
        return [reference for _, reference in found]


def parse_social_links(value: Any, file_path: Optional[Path] = None) -> Optional[Dict[str, Any]]:
    """
    Normalize an author's ``social`` field.

    The field may be a nested mapping or a JSON-encoded string of the same
    mapping. Malformed JSON is fatal for the run.

    Raises:
        SocialLinksError: If a string value is not a JSON object
    """
    if not value:
        return None

    if isinstance(value, dict):
        return dict(value)

    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            raise SocialLinksError(f"Malformed social JSON in {file_path}: {e}") from e
        if parsed is None:
            return None
        if not isinstance(parsed, dict):
            raise SocialLinksError(f"Social links in {file_path} must be a JSON object")
        return parsed

    raise SocialLinksError(f"Unsupported social links value in {file_path}: {value!r}")


def load_authors(root: Path, reader: Optional[ContentReader] = None) -> List[ContentRecord]:
    return AuthorLoader(reader).load(root)


def load_categories(root: Path, reader: Optional[ContentReader] = None) -> List[ContentRecord]:
    return CategoryLoader(reader).load(root)


def load_posts(root: Path, reader: Optional[ContentReader] = None) -> List[ContentRecord]:
    return PostLoader(reader).load(root)


__all__ = [
    'AuthorLoader',
    'CategoryLoader',
    'EntityLoader',
    'PostLoader',
    'is_truthy_flag',
    'load_authors',
    'load_categories',
    'load_posts',
    'parse_social_links'
]
