"""
Satis configuration writer for depmirror.

Merges the URLs of local mirrors into the "repositories" section of a
Satis JSON descriptor (see https://github.com/composer/satis). Every
other key of the file is left untouched.

Writes are atomic: the file is written to a temp file and renamed.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List

from ..exit_codes import ConfigError

logger = logging.getLogger(__name__)


class SatisWriter:
    """
    Add git repositories to an existing Satis configuration.

    Example:
        writer = SatisWriter("satis.json")
        writer.add_repositories(["file:///srv/mirror/symfony/console.git"])
    """

    def __init__(self, path: str):
        self.path = Path(path).expanduser()

    def read(self) -> Dict[str, Any]:
        try:
            with open(self.path, 'r') as f:
                content = json.load(f)
        except OSError as e:
            raise ConfigError(f"Can't read Satis configuration {self.path}: {e}") from e
        except ValueError as e:
            raise ConfigError(f"Satis configuration {self.path} is not valid JSON: {e}") from e

        if not isinstance(content, dict):
            raise ConfigError(f"Satis configuration {self.path} must be a JSON object")
        return content

    @staticmethod
    def merge_repositories(existing: Iterable[Any], urls: Iterable[str]) -> List[Any]:
        """
        Existing entries first, then new git entries.

        Only entries with a URL are deduplicated. Entries without one, like
        inline "package" repositories, are kept as is.
        """
        merged: List[Any] = []
        seen = set()
        for entry in existing:
            url = entry.get('url') if isinstance(entry, dict) else None
            if url:
                if url in seen:
                    continue
                seen.add(url)
            merged.append(entry)
        for url in urls:
            if url not in seen:
                seen.add(url)
                merged.append({'type': 'git', 'url': url})
        return merged

    def add_repositories(self, urls: Iterable[str]) -> int:
        """
        Merge urls into the file and write it back.

        Returns:
            Number of repositories in the written file
        """
        content = self.read()
        repositories = self.merge_repositories(content.get('repositories') or [], urls)
        content['repositories'] = repositories
        self._write_atomic(content)
        logger.info(f"Satis configuration successfully written to {self.path} ({len(repositories)} repositories)")
        return len(repositories)

    def _write_atomic(self, data: Dict[str, Any]) -> None:
        """Write data atomically using temp file and rename."""
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp"
        )

        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(data, f, indent=4, ensure_ascii=False)
                f.write('\n')

            os.chmod(temp_path, 0o644)
            os.replace(temp_path, self.path)

        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
