"""Content loading package.

Package Structure:
- content_reader: Directory traversal, front matter parsing, resource resolution
- entity_loaders: Per-kind loaders for authors, categories and blog posts
"""

from .content_reader import ContentReader
from .entity_loaders import (
    AuthorLoader,
    CategoryLoader,
    EntityLoader,
    PostLoader,
    load_authors,
    load_categories,
    load_posts
)

__all__ = [
    'ContentReader',
    'AuthorLoader',
    'CategoryLoader',
    'EntityLoader',
    'PostLoader',
    'load_authors',
    'load_categories',
    'load_posts'
]
