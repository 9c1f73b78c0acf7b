"""
Data file sync: folds authors, categories and blog posts into data.json.

Kinds are synced in dependency order (categories, authors, then posts) and
the slug indexes built for categories and authors are passed to the posts
stage. Referenced images are copied into the uploads directory as each
record is mapped; the document is written once, at the end.
"""

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from config_loader import SyncConfig
from loaders import AuthorLoader, CategoryLoader, ContentReader, PostLoader
from logger import ProgressTracker, log_section
from mappers import (
    BodyTransformer,
    ReferenceIndex,
    first_category,
    map_author_for_data,
    map_category,
    map_post,
    sort_posts
)
from materializers import FileMaterializer
from models import EntityKind, KindResult, SourceNotFoundError
from orchestrator.sync_report import SyncReport

COLLECTIONS = {
    EntityKind.AUTHORS: 'authors',
    EntityKind.CATEGORIES: 'categories',
    EntityKind.POSTS: 'articles',
}


class DataSync:
    """Sync driver for the local JSON data file."""

    def __init__(
        self,
        config: SyncConfig,
        logger: Optional[logging.Logger] = None,
        now: Optional[datetime] = None
    ):
        """
        Initialize the data sync.

        Args:
            config: Run configuration
            logger: Optional logger instance
            now: Fixed current time (used for undated, never-synced posts)
        """
        self.config = config
        self.logger = logger or logging.getLogger('content_sync.orchestrator.data_sync')
        self.now = now

        self.reader = ContentReader(config.extensions)
        self.transformer = BodyTransformer(config.wrapper_tags, config.uploads_url_prefix)

    def run(self) -> Dict[str, Any]:
        """
        Sync every kind and rewrite the data file.

        Returns:
            Report dictionary

        Raises:
            SourceNotFoundError: If the authors source directory does not exist
        """
        start_time = time.time()
        now = self.now or datetime.now(timezone.utc)

        document = self.read_document()
        materializer = FileMaterializer(self.config.uploads_dir)

        categories, category_index = self.sync_categories(materializer)
        authors, author_index = self.sync_authors(materializer)
        posts = self.sync_posts(
            materializer,
            author_index,
            category_index,
            previous_articles=document.get('articles'),
            now=now
        )

        results = [categories, authors, posts]
        for result in results:
            if not result.source_missing:
                document[COLLECTIONS[result.kind]] = result.records

        self.write_document(document)

        return SyncReport(self.logger).generate_report(
            'data', results, time.time() - start_time, destination=str(self.config.data_json)
        )

    def sync_categories(self, materializer: FileMaterializer) -> Tuple[KindResult, ReferenceIndex]:
        """Copy category images and map categories; absent source is a warning."""
        log_section("Categories")
        result = KindResult(EntityKind.CATEGORIES)

        source = self.config.categories_source
        if not source.is_dir():
            self.logger.warning(f"Categories source not found: {source}")
            result.source_missing = True
            return result, ReferenceIndex(name='category')

        loader = CategoryLoader(self.reader, self.config.progress_bars)
        records = loader.load(source)
        result.loaded = len(records)
        result.skipped = loader.stats['files_skipped']

        with ProgressTracker(len(records), 'categories') as tracker:
            for position, record in enumerate(records, start=1):
                featured_image = materializer.category_image(record)
                result.records.append(map_category(record, position, featured_image).to_dict())
                result.synced += 1
                tracker.increment()

        self.logger.info(f"Synced {result.synced} categories")
        return result, ReferenceIndex.from_records(records, name='category')

    def sync_authors(self, materializer: FileMaterializer) -> Tuple[KindResult, ReferenceIndex]:
        """Copy avatars and map authors; absent source is fatal."""
        log_section("Authors")
        result = KindResult(EntityKind.AUTHORS)

        source = self.config.authors_source
        if not source.is_dir():
            raise SourceNotFoundError(f"Authors source not found: {source}")

        loader = AuthorLoader(self.reader, self.config.progress_bars)
        records = loader.load(source)
        result.loaded = len(records)
        result.skipped = loader.stats['files_skipped']
        self.logger.info(f"Found {len(records)} authors")

        with ProgressTracker(len(records), 'authors') as tracker:
            for position, record in enumerate(records, start=1):
                avatar = materializer.author_avatar(record)
                result.records.append(map_author_for_data(record, position, avatar).to_dict())
                result.synced += 1
                tracker.increment()

        self.logger.info(f"Synced {result.synced} authors")
        return result, ReferenceIndex.from_records(records, name='author')

    def sync_posts(
        self,
        materializer: FileMaterializer,
        author_index: ReferenceIndex,
        category_index: ReferenceIndex,
        previous_articles: Any = None,
        now: Optional[datetime] = None
    ) -> KindResult:
        """
        Copy post images and map posts into sorted articles.

        Args:
            materializer: File materializer for this run
            author_index: Author slug -> id
            category_index: Category slug -> id
            previous_articles: ``articles`` from the existing document
            now: Current time for undated posts seen for the first time

        Returns:
            KindResult with the sorted article entries
        """
        log_section("Posts")
        result = KindResult(EntityKind.POSTS)

        source = self.config.posts_source
        if not source.is_dir():
            self.logger.warning(f"Posts source not found: {source}")
            result.source_missing = True
            return result

        loader = PostLoader(self.reader, self.config.progress_bars)
        records = sort_posts(loader.load(source))
        result.loaded = len(records)
        result.skipped = loader.stats['files_skipped'] + loader.stats['drafts_excluded']

        previous_published = self._previous_published(previous_articles)

        with ProgressTracker(len(records), 'posts') as tracker:
            for position, record in enumerate(records, start=1):
                mapped = map_post(
                    record,
                    position,
                    self.transformer,
                    author_id=author_index.resolve(record.get('author')),
                    category_id=category_index.resolve(first_category(record)),
                    cover=materializer.post_cover(record),
                    og_image=materializer.post_og_image(record),
                    image_paths=materializer.post_inline_images(record),
                    fallback_published_at=previous_published.get(record.slug),
                    now=now
                )
                result.records.append(mapped.to_dict())
                result.synced += 1
                tracker.increment()

        self.logger.info(f"Synced {result.synced} posts")
        return result

    @staticmethod
    def _previous_published(previous_articles: Any) -> Dict[str, Any]:
        if not isinstance(previous_articles, list):
            return {}
        return {
            article['slug']: article.get('publishedAt')
            for article in previous_articles
            if isinstance(article, dict) and article.get('slug')
        }

    def read_document(self) -> Dict[str, Any]:
        """Load the existing data file, or start an empty document."""
        path = Path(self.config.data_json)
        if not path.exists():
            self.logger.info(f"Data file {path} does not exist yet; it will be created")
            return {}

        document = json.loads(path.read_text(encoding='utf-8'))
        if not isinstance(document, dict):
            raise ValueError(f"Data file {path} must contain a JSON object")
        return document

    def write_document(self, document: Dict[str, Any]) -> None:
        """Rewrite the whole data file."""
        path = Path(self.config.data_json)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding='utf-8')

        counts = ', '.join(
            f"{len(document[name])} {name}"
            for name in COLLECTIONS.values()
            if isinstance(document.get(name), list)
        )
        self.logger.info(f"Updated {path} with {counts}")


__all__ = ['DataSync', 'COLLECTIONS']
