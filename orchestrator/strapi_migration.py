"""
Strapi author migration.

Uploads each author's avatar to the Strapi media library and creates the
author record right after, one author at a time. A failure for one author
is logged and the run moves on; nothing is rolled back, so an avatar
uploaded for an author whose creation then fails stays in the library.
Reruns create duplicates.
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

from config_loader import SyncConfig
from loaders import AuthorLoader, ContentReader
from logger import ProgressTracker, log_section
from mappers import map_author_for_strapi
from materializers import StrapiClient, StrapiRequestError, UploadMaterializer
from models import EntityKind, KindResult, SourceNotFoundError
from orchestrator.sync_report import SyncReport


class StrapiMigration:
    """Sync driver for the Strapi REST API."""

    def __init__(
        self,
        config: SyncConfig,
        client: Optional[StrapiClient] = None,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the migration.

        Args:
            config: Run configuration (Strapi URL and token are required)
            client: Optional pre-built client
            dry_run: Log payloads instead of calling the API
            logger: Optional logger instance

        Raises:
            ConfigurationError: If the Strapi URL or token is missing
        """
        config.require_strapi()

        self.config = config
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger('content_sync.orchestrator.strapi_migration')
        self.client = client or StrapiClient.from_config(config)
        self.reader = ContentReader(config.extensions)

    def run(self) -> Dict[str, Any]:
        """
        Migrate every author.

        Returns:
            Report dictionary

        Raises:
            SourceNotFoundError: If the authors source directory does not exist
        """
        start_time = time.time()
        log_section("Strapi author migration")

        source = self.config.authors_source
        if not source.is_dir():
            raise SourceNotFoundError(f"Authors source not found: {source}")

        loader = AuthorLoader(self.reader, self.config.progress_bars)
        authors = loader.load(source)

        result = KindResult(EntityKind.AUTHORS, loaded=len(authors))
        result.skipped = loader.stats['files_skipped']
        self.logger.info(f"Found {len(authors)} authors to migrate")

        materializer = UploadMaterializer(self.client)

        with ProgressTracker(len(authors), 'authors') as tracker:
            for author in authors:
                success = self._migrate_author(author, materializer, result)
                tracker.increment(success)

        self.logger.info("Migration complete")

        return SyncReport(self.logger).generate_report(
            'strapi', [result], time.time() - start_time, destination=self.config.strapi_url
        )

    def _migrate_author(self, author, materializer: UploadMaterializer, result: KindResult) -> bool:
        name = author.get('name')

        if self.dry_run:
            payload = map_author_for_strapi(author, '<avatar>' if author.resource('avatar') else None)
            self.logger.info(f"  [dry-run] Would create {name}: {payload}")
            result.records.append({'name': name, 'payload': payload})
            result.synced += 1
            return True

        try:
            avatar_id = materializer.author_avatar(author)
            response = self.client.create_author(map_author_for_strapi(author, avatar_id))
        except (StrapiRequestError, requests.RequestException, OSError, TypeError, ValueError) as e:
            self.logger.error(f"  Failed {name}: {e}")
            result.add_error(name, e)
            return False

        document_id = StrapiClient.document_id(response)
        self.logger.info(f"  Created: {name} ({document_id})")
        result.records.append({'name': name, 'documentId': document_id})
        result.synced += 1
        return True


__all__ = ['StrapiMigration']
