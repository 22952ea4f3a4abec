"""
Artifact collection.

Resolves a command's artifact glob patterns against the workspace and
uploads the matching files to the server.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Set

from ..models.api import ArtifactUpload
from ..models.runtime import Artifact
from ..validation import ErrorSeverity, InvalidPatternError, handle_error, validate_glob_pattern

logger = logging.getLogger(__name__)


def find_matches(pattern: str, workspace: Path) -> List[Path]:
    """
    Return the files under ``workspace`` matching ``pattern``, sorted.

    A pattern without a path separator is matched against file names at any
    depth; one with a separator is matched against paths relative to the
    workspace root.

    Raises:
        InvalidPatternError: If the pattern is not a valid glob.
    """
    validate_glob_pattern(pattern, "artifacts")
    if os.path.isabs(pattern):
        raise InvalidPatternError(
            f"Artifact pattern must be relative to the workspace: {pattern!r}",
            field_name="artifacts",
            value=pattern,
        )
    if "/" in pattern:
        candidates = workspace.glob(pattern)
    else:
        candidates = workspace.rglob(pattern)
    return sorted(path for path in candidates if path.is_file())


class ArtifactCollector:
    """
    Finds and uploads the files a command produced.

    Invalid patterns are reported on the console log and skipped; upload
    failures propagate as ``ReportingError`` and abort the run.
    """

    def __init__(self, client, log_transport):
        self.client = client
        self.log_transport = log_transport

    def collect(self, patterns: Iterable[str], workspace: Path) -> List[Artifact]:
        """Resolve ``patterns`` into artifacts, deduplicated in first-match order."""
        artifacts: List[Artifact] = []
        seen: Set[Path] = set()
        for pattern in patterns:
            try:
                matches = find_matches(pattern, workspace)
            except InvalidPatternError as e:
                handle_error(e, f"artifact pattern {pattern!r}", ErrorSeverity.WARNING,
                             reraise=False, logger=logger)
                self.log_transport.append(f"Skipping invalid artifact pattern {pattern!r}: {e}\n")
                continue

            logger.debug(f"Pattern {pattern!r} matched {len(matches)} file(s)")
            for path in matches:
                key = path.resolve()
                if key in seen:
                    continue
                seen.add(key)
                artifacts.append(Artifact.from_path(path))
        return artifacts

    def upload(self, artifacts: Iterable[Artifact]) -> int:
        """Upload ``artifacts`` one after another. Returns the number uploaded."""
        count = 0
        for artifact in artifacts:
            logger.info(f"Uploading artifact {artifact.name} from {artifact.path}")
            self.client.upload_artifact(ArtifactUpload(name=artifact.name, path=artifact.path))
            count += 1
        return count
