"""Projection of loaded content records into destination-shaped records.

Every function here is pure: it takes a ContentRecord together with the
cross-reference ids and materialized resource identifiers already resolved
by the sync driver, and returns a MappedRecord. Destination fields are only
written through FieldValue, so values the source does not provide are left
out and the destination's own defaults apply.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from loaders.entity_loaders import SOCIAL_NETWORKS
from mappers.body_transformer import BodyTransformer
from models import ContentRecord, FieldValue, MappedRecord

logger = logging.getLogger('content_sync.mappers.record_mapper')

PUBLISHED_FIELDS = ('firstPublishedAt', 'date')


def has_social_links(social: Any) -> bool:
    """True when at least one known network has a value."""
    return isinstance(social, dict) and any(social.get(network) for network in SOCIAL_NETWORKS)


def map_author_for_data(
    record: ContentRecord,
    position: int,
    avatar: Optional[str] = None
) -> MappedRecord:
    """
    Map an author to its data file entry.

    Args:
        record: Loaded author
        position: 1-based position in load order
        avatar: Uploads-relative avatar path (the default image when the author has none)
    """
    social = record.get('social')

    return (
        MappedRecord()
        .put('id', FieldValue(position))
        .put('name', FieldValue(record.get('name')))
        .put('bio', FieldValue(record.get('bio') or ''))
        .put('isTeam', FieldValue(bool(record.get('isTeam'))))
        .put('title', FieldValue.of(record.get('title')))
        .put('team', FieldValue.of(record.get('team')))
        .put('position', FieldValue.of(record.get('position')))
        .put('tick', FieldValue.of(record.get('tick')))
        .put('surprising', FieldValue.of(record.get('surprising')))
        .put('weekends', FieldValue.of(record.get('weekends')))
        .put('bgColor', FieldValue.of(record.get('bgColor')))
        .put('avatar', FieldValue.of(avatar))
        .put('social', FieldValue.of(social if has_social_links(social) else None))
    )


def map_author_for_strapi(record: ContentRecord, avatar_id: Any = None) -> Dict[str, Any]:
    """
    Build the ``POST /api/authors`` request body.

    Args:
        record: Loaded author
        avatar_id: Remote id of the uploaded avatar, if any

    Returns:
        ``{'data': {...}}`` payload
    """
    social = record.get('social')

    data = (
        MappedRecord()
        .put('name', FieldValue(record.get('name')))
        .put('bio', FieldValue(record.get('bio') or ''))
        .put('title', FieldValue.keep(record.get('title')))
        .put('isTeam', FieldValue(bool(record.get('isTeam'))))
        .put('team', FieldValue.keep(record.get('team')))
        .put('tick', FieldValue.keep(record.get('tick')))
        .put('surprising', FieldValue.keep(record.get('surprising')))
        .put('weekends', FieldValue.keep(record.get('weekends')))
        .put('avatar', FieldValue.keep(avatar_id))
        .put('social', FieldValue.of(social if has_social_links(social) else None))
    )

    return {'data': data.to_dict()}


def map_category(
    record: ContentRecord,
    position: int,
    featured_image: Optional[str] = None
) -> MappedRecord:
    """Map a category to its data file entry."""
    return (
        MappedRecord()
        .put('id', FieldValue(position))
        .put('name', FieldValue(record.get('name')))
        .put('slug', FieldValue(record.slug))
        .put('subtitle', FieldValue.of(record.get('subtitle')))
        .put('description', FieldValue.of(record.get('description')))
        .put('featuredImage', FieldValue.of(featured_image))
    )


def map_post(
    record: ContentRecord,
    position: int,
    transformer: BodyTransformer,
    author_id: Any = None,
    category_id: Any = None,
    cover: Optional[str] = None,
    og_image: Optional[str] = None,
    image_paths: Optional[Dict[str, str]] = None,
    fallback_published_at: Any = None,
    now: Optional[datetime] = None
) -> MappedRecord:
    """
    Map a blog post to its ``articles`` entry.

    Args:
        record: Loaded post
        position: 1-based position in the sorted article list
        transformer: Body transformer
        author_id: Resolved author identifier
        category_id: Resolved identifier of the post's first category
        cover: Uploads-relative cover image path
        og_image: Uploads-relative social preview image path
        image_paths: Literal body image reference -> uploads-relative path
        fallback_published_at: Publication time used when the source has none
        now: Current time, used when there is no fallback either
    """
    published_at = (
        source_published_at(record)
        or parse_timestamp(fallback_published_at)
        or (now or datetime.now(timezone.utc))
    )

    return (
        MappedRecord()
        .put('id', FieldValue(position))
        .put('title', FieldValue(str(record.get('title'))))
        .put('slug', FieldValue(record.slug))
        .put('description', FieldValue.of(record.get('description')))
        .put('content', FieldValue(transformer.transform(record.body, image_paths)))
        .put('cover', FieldValue.of(cover))
        .put('author', FieldValue.keep(author_id))
        .put('category', FieldValue.keep(category_id))
        .put('publishedAt', FieldValue(format_timestamp(published_at)))
        .put('seo', FieldValue.of(_map_seo(record, og_image) or None))
    )


def _map_seo(record: ContentRecord, og_image: Optional[str]) -> MappedRecord:
    meta = record.get('meta') if isinstance(record.get('meta'), dict) else {}
    og = meta.get('og') if isinstance(meta.get('og'), dict) else {}

    # A remote social preview URL is passed through unchanged
    if not og_image and isinstance(og.get('image'), str) and og['image'].startswith(('http://', 'https://')):
        og_image_value = og['image']
    else:
        og_image_value = og_image

    return (
        MappedRecord()
        .put('metaTitle', FieldValue.of(meta.get('title')))
        .put('metaDescription', FieldValue.of(meta.get('description')))
        .put('ogTitle', FieldValue.of(og.get('title')))
        .put('ogDescription', FieldValue.of(og.get('description')))
        .put('ogImage', FieldValue.of(og_image_value))
    )


def first_category(record: ContentRecord) -> Optional[str]:
    """Posts may list several categories; only the first one is used."""
    categories = record.get('categories')
    if isinstance(categories, str):
        return categories or None
    if isinstance(categories, (list, tuple)) and categories:
        return categories[0] if isinstance(categories[0], str) else None
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Normalize a front matter date to an aware UTC datetime.

    YAML already turns unquoted ISO dates into ``date``/``datetime``; quoted
    or free-form strings go through dateutil. Naive values are taken as UTC.
    Unparseable values resolve to None.
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            # Fields missing from the string (e.g. the day in "March 2024") come from a fixed date
            parsed = date_parser.parse(value, default=datetime(2000, 1, 1))
        except (ValueError, OverflowError) as e:
            logger.debug(f"Ignoring unparseable date '{value}': {e}")
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a 'Z' suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"


def source_published_at(record: ContentRecord) -> Optional[datetime]:
    """Publication time declared by the post itself, if any."""
    for name in PUBLISHED_FIELDS:
        parsed = parse_timestamp(record.get(name))
        if parsed is not None:
            return parsed
    return None


def sort_posts(records: List[ContentRecord]) -> List[ContentRecord]:
    """
    Order posts for the article listing.

    Newest first by declared publication time; undated posts go last; ties
    and undated posts are ordered by ascending slug.
    """
    def sort_key(record: ContentRecord):
        published = source_published_at(record)
        if published is None:
            return (1, 0.0, record.slug)
        return (0, -published.timestamp(), record.slug)

    return sorted(records, key=sort_key)


__all__ = [
    'first_category',
    'format_timestamp',
    'has_social_links',
    'map_author_for_data',
    'map_author_for_strapi',
    'map_category',
    'map_post',
    'parse_timestamp',
    'sort_posts',
    'source_published_at'
]
