"""Reader for frontmatter-annotated markdown files in a content collection.

This module scans a content-collection directory tree for markdown files,
splits each file into its YAML front matter and body, and resolves resource
paths declared in the front matter relative to the file that declares them.
"""

import logging
import os
import re
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from models import ResourceReference

HIDDEN_PREFIX = '.'
PARTIAL_PREFIX = '_'

FENCE_PATTERN = re.compile(r'^(```|~~~).*?^\1[ \t]*$', re.MULTILINE | re.DOTALL)


class FrontMatterLoader(yaml.SafeLoader):
    """Safe loader that only reads true/false as booleans (yes, no, on and off stay strings)."""


FrontMatterLoader.yaml_implicit_resolvers = {
    first: [resolver for resolver in resolvers if resolver[0] != 'tag:yaml.org,2002:bool']
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
FrontMatterLoader.add_implicit_resolver(
    'tag:yaml.org,2002:bool',
    re.compile(r'^(?:true|True|TRUE|false|False|FALSE)$'),
    list('tTfF')
)


class ContentReader:
    """
    Reads markdown content files and their front matter.

    Traversal rules:
    1. Directories whose name starts with '.' are not entered
    2. Files whose name starts with '_' are drafts/partials and are ignored
    3. Only files with a recognized markup extension are returned
    """

    FRONTMATTER_PATTERN = re.compile(r'\A---[ \t]*\n(.*?\n)?---[ \t]*(?:\n|\Z)(.*)\Z', re.DOTALL)

    def __init__(
        self,
        extensions: Iterable[str] = ('.md', '.mdx'),
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the content reader.

        Args:
            extensions: Recognized markup file extensions
            logger: Logger instance
        """
        self.extensions = tuple(extensions)
        self.logger = logger or logging.getLogger('content_sync.loaders.content_reader')

    def scan(self, root: Path) -> List[Path]:
        """
        Recursively find content files below ``root``.

        Args:
            root: Content collection directory

        Returns:
            Sorted list of content file paths
        """
        root = Path(root)
        if not root.is_dir():
            raise ValueError(f"Content directory does not exist: {root}")

        files = []
        for dirpath, dirnames, filenames in os.walk(root):
            # Prune hidden directories in place so os.walk skips them
            dirnames[:] = sorted(d for d in dirnames if not d.startswith(HIDDEN_PREFIX))

            for filename in filenames:
                if filename.startswith(PARTIAL_PREFIX):
                    self.logger.debug(f"Skipping partial: {filename}")
                    continue
                # Extension match is case-sensitive: notes.MD is not content
                if Path(filename).suffix not in self.extensions:
                    continue
                files.append(Path(dirpath) / filename)

        files.sort()
        return files

    def read(self, file_path: Path) -> Tuple[Dict[str, Any], str]:
        """
        Read a content file.

        Args:
            file_path: Path to markdown file

        Returns:
            Tuple of (front matter dict, body text)
        """
        content = Path(file_path).read_text(encoding='utf-8')
        return self.parse(content, source=str(file_path))

    def parse(self, content: str, source: str = '<string>') -> Tuple[Dict[str, Any], str]:
        """
        Split content into YAML front matter and body.

        A file without front matter, or whose front matter is not a YAML
        mapping, is returned with empty fields and its full text as body.
        """
        content = content.lstrip('\ufeff').replace('\r\n', '\n')

        match = self.FRONTMATTER_PATTERN.match(content)
        if not match:
            return {}, content

        yaml_str = match.group(1) or ''
        body = match.group(2).strip()

        try:
            fields = yaml.load(yaml_str, Loader=FrontMatterLoader)
        except yaml.YAMLError as e:
            self.logger.warning(f"Failed to parse YAML front matter in {source}: {e}")
            return {}, content

        if fields is None:
            return {}, body

        if not isinstance(fields, dict):
            self.logger.warning(f"Front matter in {source} is not a mapping")
            return {}, content

        return plain_values(fields), body

    def resolve_resource(
        self,
        file_path: Path,
        value: Any,
        role: str
    ) -> Optional[ResourceReference]:
        """
        Resolve a resource path declared by a content file.

        Relative paths are resolved against the content file's directory.
        A path that does not exist resolves to no resource.

        Args:
            file_path: Content file declaring the resource
            value: Raw front matter value
            role: Resource role (e.g. 'avatar', 'cover')

        Returns:
            ResourceReference, or None if the value is empty or the file is missing
        """
        if not value or not isinstance(value, str):
            return None

        candidate = Path(value)
        if not candidate.is_absolute():
            candidate = Path(file_path).parent / value

        if not candidate.is_file():
            self.logger.debug(f"Resource '{value}' for {file_path} not found at {candidate}")
            return None

        return ResourceReference(role=role, source_path=candidate.resolve(), reference=value)


def plain_values(value: Any) -> Any:
    """
    Replace YAML timestamps with ISO-8601 UTC strings, recursively.

    Unquoted dates load as ``date``/``datetime`` objects; every other front
    matter value is already JSON-serializable.
    """
    if isinstance(value, dict):
        return {key: plain_values(item) for key, item in value.items()}
    if isinstance(value, list):
        return [plain_values(item) for item in value]
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"
    if isinstance(value, date):
        return f"{value.isoformat()}T00:00:00.000Z"
    return value


__all__ = ['ContentReader', 'FENCE_PATTERN', 'FrontMatterLoader', 'plain_values']
