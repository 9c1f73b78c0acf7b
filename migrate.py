#!/usr/bin/env python3
"""
Content Collection Sync - Main CLI Entry Point

Reads author, category and blog post records from a content collection
(markdown files with YAML front matter) and either folds them into the
local data.json file, copying referenced images into the uploads directory,
or creates the authors in Strapi through its REST API.
"""

import argparse
import logging
import sys
from typing import Optional

from config_loader import ConfigLoader, SyncConfig
from logger import log_config, log_section, setup_logging
from models import ConfigurationError, SocialLinksError, SourceNotFoundError
from orchestrator import DataSync, StrapiMigration, SyncReport

__version__ = "1.0.0"


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Sync content collection authors, categories and posts to data.json or Strapi",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fold authors, categories and posts into data/data.json
  python migrate.py data

  # Use explicit source directories
  python migrate.py data --authors-source ../site/src/content/authors

  # Create authors in Strapi
  STRAPI_URL=https://cms.example.com STRAPI_API_TOKEN=xxx python migrate.py strapi

  # Preview the Strapi payloads
  python migrate.py strapi --dry-run -v
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to an optional YAML configuration file'
    )

    parser.add_argument(
        '--authors-source',
        type=str,
        help='Authors content directory (env: AUTHORS_SOURCE)'
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write a JSON sync report to this path'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    data_parser = subparsers.add_parser('data', help='Sync into the local data.json file')
    data_parser.add_argument(
        '--categories-source',
        type=str,
        help='Categories content directory (env: CATEGORIES_SOURCE)'
    )
    data_parser.add_argument(
        '--posts-source',
        type=str,
        help='Blog posts content directory (env: POSTS_SOURCE)'
    )
    data_parser.add_argument(
        '--data-json',
        type=str,
        help='Data file to rewrite (env: DATA_JSON)'
    )
    data_parser.add_argument(
        '--uploads-dir',
        type=str,
        help='Uploads directory for copied images (env: UPLOADS_DIR)'
    )

    strapi_parser = subparsers.add_parser('strapi', help='Create authors in Strapi')
    strapi_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log the payloads without calling the API'
    )

    return parser


def build_config(args: argparse.Namespace) -> SyncConfig:
    """Fold config file, environment and CLI flags into a SyncConfig."""
    file_config = ConfigLoader.load(args.config) if args.config else {}

    overrides = {
        'sources.authors': args.authors_source,
        'sources.categories': getattr(args, 'categories_source', None),
        'sources.posts': getattr(args, 'posts_source', None),
        'data.json_path': getattr(args, 'data_json', None),
        'data.uploads_dir': getattr(args, 'uploads_dir', None),
    }

    return ConfigLoader.build(file_config, overrides=overrides)


def run_sync(config: SyncConfig, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Run the selected driver and print its report."""
    if args.command == 'strapi':
        driver = StrapiMigration(config, dry_run=args.dry_run, logger=logger)
    else:
        driver = DataSync(config, logger=logger)

    report = driver.run()

    report_generator = SyncReport(logger)
    print("\n" + report_generator.format_console_report(report))

    if args.report:
        report_generator.export_json_report(report, args.report)

    failed = report.get('summary', {}).get('failed', 0)
    if failed:
        logger.warning(f"Sync completed with {failed} failed records")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(verbosity=args.verbose, log_file=args.log_file)

    try:
        log_section("Content Collection Sync")
        logger.info(f"Version: {__version__}")

        config = build_config(args)
        if args.command == 'strapi':
            config.require_strapi()

        log_config(config.to_dict())

        return run_sync(config, args, logger)

    except ConfigurationError as e:
        logger.error(str(e))
        return 2
    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 2
    except (SourceNotFoundError, SocialLinksError) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.error("Sync interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Sync failed: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
