"""File materializer for copying referenced images into the uploads directory."""

import logging
import shutil
from pathlib import Path
from typing import Dict, Optional

from models import ContentRecord, ResourceReference

DEFAULT_IMAGE = 'default-image.png'

AUTHORS_DIR = 'authors'
CATEGORIES_DIR = 'categories'
BLOG_DIR = 'blog'


class FileMaterializer:
    """
    Copies resource files into the uploads directory under deterministic names.

    Names are derived from the record slug and resource role:
    - authors/{slug}{ext}
    - categories/{slug}{ext}
    - blog/{slug}-cover{ext}, blog/{slug}-og{ext}, blog/{slug}-{n}{ext}

    Every call returns the path relative to the uploads directory. Existing
    destination files are overwritten without checking.
    """

    def __init__(self, uploads_dir: Path, logger: Optional[logging.Logger] = None):
        """
        Initialize the materializer.

        Args:
            uploads_dir: Uploads root directory
            logger: Logger instance
        """
        self.uploads_dir = Path(uploads_dir)
        self.logger = logger or logging.getLogger('content_sync.materializers.file_materializer')

        self._default_avatar: Optional[str] = None

        self.stats = {
            'copied': 0,
            'defaults_used': 0,
            'total_size_bytes': 0
        }

        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    def copy(self, reference: ResourceReference, relative_path: str) -> str:
        """
        Copy a resource byte-for-byte to ``uploads_dir / relative_path``.

        Args:
            reference: Resolved resource
            relative_path: Destination path relative to the uploads directory

        Returns:
            ``relative_path``
        """
        destination = self.uploads_dir / relative_path
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(reference.source_path, destination)

        self.stats['copied'] += 1
        self.stats['total_size_bytes'] += destination.stat().st_size
        self.logger.info(f"  Copied {reference.role}: {relative_path}")

        return relative_path

    def author_avatar(self, record: ContentRecord) -> str:
        """Copy an author's avatar, falling back to the shared default image."""
        avatar = record.resource('avatar')
        if avatar is None:
            self.stats['defaults_used'] += 1
            self.logger.debug(f"  Using default avatar for {record.get('name')}")
            return self.default_avatar()

        return self.copy(avatar, f"{AUTHORS_DIR}/{record.slug}{avatar.extension}")

    def default_avatar(self) -> str:
        """
        Provide ``authors/default-image.png``.

        The shared default at the uploads root is copied into the authors
        directory the first time it is needed in a run.
        """
        relative_path = f"{AUTHORS_DIR}/{DEFAULT_IMAGE}"
        if self._default_avatar is not None:
            return self._default_avatar

        source = self.uploads_dir / DEFAULT_IMAGE
        if source.is_file():
            self.copy(ResourceReference(role='avatar', source_path=source), relative_path)
        else:
            self.logger.warning(f"Default image not found: {source}")

        self._default_avatar = relative_path
        return relative_path

    def category_image(self, record: ContentRecord) -> Optional[str]:
        image = record.resource('featuredImage')
        if image is None:
            return None
        return self.copy(image, f"{CATEGORIES_DIR}/{record.slug}{image.extension}")

    def post_cover(self, record: ContentRecord) -> Optional[str]:
        cover = record.resource('cover')
        if cover is None:
            return None
        return self.copy(cover, f"{BLOG_DIR}/{record.slug}-cover{cover.extension}")

    def post_og_image(self, record: ContentRecord) -> Optional[str]:
        og_image = record.resource('ogImage')
        if og_image is None:
            return None
        return self.copy(og_image, f"{BLOG_DIR}/{record.slug}-og{og_image.extension}")

    def post_inline_images(self, record: ContentRecord) -> Dict[str, str]:
        """
        Copy the images referenced in a post body.

        Returns:
            Literal body reference -> uploads-relative path
        """
        image_paths = {}
        for index, image in enumerate(record.inline_images, start=1):
            image_paths[image.reference] = self.copy(
                image, f"{BLOG_DIR}/{record.slug}-{index}{image.extension}"
            )
        return image_paths

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()


__all__ = ['FileMaterializer', 'DEFAULT_IMAGE']
