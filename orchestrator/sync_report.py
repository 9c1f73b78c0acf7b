"""
Sync report generation for console display and JSON export.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models import KindResult


class SyncReport:
    """Builds, formats and exports the summary of one sync run."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('content_sync.orchestrator.sync_report')

    def generate_report(
        self,
        target: str,
        results: List[KindResult],
        duration: float,
        destination: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Assemble the report dictionary.

        Args:
            target: 'data' or 'strapi'
            results: Per-kind results in sync order
            duration: Run duration in seconds
            destination: Data file path or Strapi URL

        Returns:
            Report dictionary
        """
        kinds = {result.kind.value: result.to_dict() for result in results}

        return {
            'target': target,
            'destination': destination,
            'generated_at': datetime.now(timezone.utc).isoformat(),
            'summary': {
                'loaded': sum(r.loaded for r in results),
                'synced': sum(r.synced for r in results),
                'failed': sum(r.failed for r in results),
                'skipped': sum(r.skipped for r in results),
                'duration_seconds': round(duration, 3),
                'duration_formatted': self._format_duration(duration)
            },
            'kinds': kinds
        }

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Report dictionary

        Returns:
            Formatted console string
        """
        sections = []

        sections.append("=" * 60)
        sections.append("SYNC REPORT")
        sections.append("=" * 60)
        sections.append("")

        summary = report.get('summary', {})
        sections.append("Summary:")
        sections.append(f"  Target:      {report.get('target', 'unknown')}")
        if report.get('destination'):
            sections.append(f"  Destination: {report['destination']}")
        sections.append(f"  Loaded:      {summary.get('loaded', 0)}")
        sections.append(f"  Synced:      {summary.get('synced', 0)}")
        sections.append(f"  Failed:      {summary.get('failed', 0)}")
        sections.append(f"  Duration:    {summary.get('duration_formatted', '0s')}")
        sections.append("")

        sections.append("By Kind:")
        sections.append("-" * 60)
        for kind, stats in report.get('kinds', {}).items():
            if stats.get('source_missing'):
                sections.append(f"  {kind.capitalize()}: source not found, left unchanged")
                continue
            sections.append(
                f"  {kind.capitalize()}: {stats.get('synced', 0)} synced, "
                f"{stats.get('failed', 0)} failed, {stats.get('skipped', 0)} skipped"
            )
            for error in stats.get('errors', [])[:5]:
                sections.append(f"    - {error['record']}: {error['error']}")

        sections.append("=" * 60)
        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")

    @staticmethod
    def _format_duration(seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes, seconds = divmod(int(seconds), 60)
        return f"{minutes}m {seconds}s"


__all__ = ['SyncReport']
