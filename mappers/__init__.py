"""Record mapping package.

Package Structure:
- record_mapper: Pure projections of content records into data file / Strapi shapes
- body_transformer: Post body cleanup and inline image rewriting
- reference_index: Slug to identifier lookups for cross references
"""

from .body_transformer import BodyTransformer
from .reference_index import ReferenceIndex
from .record_mapper import (
    first_category,
    map_author_for_data,
    map_author_for_strapi,
    map_category,
    map_post,
    sort_posts
)

__all__ = [
    'BodyTransformer',
    'ReferenceIndex',
    'first_category',
    'map_author_for_data',
    'map_author_for_strapi',
    'map_category',
    'map_post',
    'sort_posts'
]
