"""
Body transformer for blog post migration.

This module cleans MDX post bodies for embedding in the data file: it strips
ESM import statements and layout wrapper components, and rewrites local image
references to their materialized upload paths.
"""

import logging
import re
from typing import Callable, Dict, Iterable, Optional

from loaders.content_reader import FENCE_PATTERN


class BodyTransformer:
    """Transforms post bodies before they are stored in the data file."""

    IMPORT_PATTERN = re.compile(
        r'^import\s+(?:[^;\n]*?\s+from\s+|\{[^}]*\}\s*from\s+)?["\'][^"\'\n]+["\'];?[ \t]*$\n?',
        re.MULTILINE
    )
    MARKDOWN_IMAGE_PATTERN = re.compile(r'(!\[[^\]]*\]\(\s*<?)([^)\s>]+)(>?(?:\s+["\'][^)]*["\'])?\s*\))')
    HTML_IMAGE_PATTERN = re.compile(r'(<img\b[^>]*?\bsrc=["\'])([^"\']+)(["\'])', re.IGNORECASE)
    BLANK_LINES_PATTERN = re.compile(r'\n{3,}')

    def __init__(
        self,
        wrapper_tags: Iterable[str] = (),
        uploads_url_prefix: str = '/uploads',
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize body transformer.

        Args:
            wrapper_tags: Component names whose tags are removed (content is kept)
            uploads_url_prefix: URL prefix under which the uploads directory is served
            logger: Optional logger instance (defaults to module logger)
        """
        self.logger = logger or logging.getLogger('content_sync.mappers.body_transformer')
        self.uploads_url_prefix = uploads_url_prefix.rstrip('/')

        self.wrapper_patterns = [
            re.compile(r'</?' + re.escape(tag) + r'(?:\s[^>]*)?/?>[ \t]*\n?')
            for tag in wrapper_tags
        ]

    def transform(self, body: str, image_paths: Optional[Dict[str, str]] = None) -> str:
        """
        Clean a post body.

        Fenced code blocks are left untouched.

        Args:
            body: Raw body text
            image_paths: Literal image reference -> uploads-relative path

        Returns:
            Transformed body
        """
        if not body:
            return ''

        image_paths = image_paths or {}

        def clean(text: str) -> str:
            text = self.strip_imports(text)
            text = self.strip_wrappers(text)
            return self.rewrite_images(text, image_paths)

        transformed = _outside_code_fences(body, clean)
        transformed = self.BLANK_LINES_PATTERN.sub('\n\n', transformed)

        return transformed.strip()

    def strip_imports(self, text: str) -> str:
        return self.IMPORT_PATTERN.sub('', text)

    def strip_wrappers(self, text: str) -> str:
        for pattern in self.wrapper_patterns:
            text = pattern.sub('', text)
        return text

    def rewrite_images(self, text: str, image_paths: Dict[str, str]) -> str:
        """
        Point image references at their materialized upload paths.

        References without a materialized counterpart (remote URLs, missing
        files) are left as they are.
        """
        if not image_paths:
            return text

        replacements = 0

        def replace(match):
            nonlocal replacements
            target = image_paths.get(match.group(2))
            if target is None:
                return match.group(0)
            replacements += 1
            return f"{match.group(1)}{self.upload_url(target)}{match.group(3)}"

        text = self.MARKDOWN_IMAGE_PATTERN.sub(replace, text)
        text = self.HTML_IMAGE_PATTERN.sub(replace, text)

        if replacements:
            self.logger.debug(f"Rewrote {replacements} image references")

        return text

    def upload_url(self, relative_path: str) -> str:
        return f"{self.uploads_url_prefix}/{relative_path.lstrip('/')}"


def _outside_code_fences(text: str, func: Callable[[str], str]) -> str:
    """Apply ``func`` to the parts of ``text`` outside fenced code blocks."""
    parts = []
    position = 0
    for match in FENCE_PATTERN.finditer(text):
        parts.append(func(text[position:match.start()]))
        parts.append(match.group(0))
        position = match.end()
    parts.append(func(text[position:]))
    return ''.join(parts)


__all__ = ['BodyTransformer']
