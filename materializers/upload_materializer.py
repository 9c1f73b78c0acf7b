"""
Upload materializer for the Strapi migration.

Makes an author's avatar available in the Strapi media library and returns
the remote id that the author payload refers to.
"""

import logging
from typing import Any, Optional

from materializers.strapi_client import StrapiClient
from models import ContentRecord


class UploadMaterializer:
    """Uploads resolved resources through a StrapiClient."""

    def __init__(self, client: StrapiClient, logger: Optional[logging.Logger] = None):
        """
        Initialize upload materializer.

        Args:
            client: StrapiClient instance
            logger: Optional logger instance
        """
        self.client = client
        self.logger = logger or logging.getLogger('content_sync.materializers.upload_materializer')
        self.uploaded = 0

    def author_avatar(self, record: ContentRecord) -> Optional[Any]:
        """
        Upload an author's avatar.

        Returns:
            Remote file id, or None when the author has no resolvable avatar

        Raises:
            StrapiRequestError: If the upload fails
        """
        avatar = record.resource('avatar')
        if avatar is None:
            return None

        file_id = self.client.upload_file(avatar.source_path, record.get('name'))
        self.uploaded += 1
        self.logger.info(f"  Uploaded avatar for {record.get('name')}")
        return file_id


__all__ = ['UploadMaterializer']
