"""
Change log generator.

Summarizes the commits that went into this build by running ``git`` in the
workspace. The range is GIT_PREVIOUS_COMMIT..GIT_COMMIT when the CI server
exports them, otherwise just the last commit.
"""

import logging
import shutil
import subprocess
from typing import List

from ..schema.point import Point
from .base import PointGenerator

LOG = logging.getLogger(__name__)

GIT_TIMEOUT = 30
RECORD_SEPARATOR = '\x1e'
UNIT_SEPARATOR = '\x1f'


class ChangeLogPointGenerator(PointGenerator):

    name = 'Change log'

    def has_data(self) -> bool:
        return (self.context.workspace_path / '.git').exists() and shutil.which('git') is not None

    def _git(self, *args: str) -> str:
        result = subprocess.run(
            ['git', *args],
            cwd=str(self.context.workspace_path),
            capture_output=True,
            text=True,
            check=True,
            timeout=GIT_TIMEOUT,
        )
        return result.stdout

    def revision_args(self) -> List[str]:
        build = self.context.build
        current = build.resolve('GIT_COMMIT') or 'HEAD'
        previous = build.resolve('GIT_PREVIOUS_COMMIT')
        if previous:
            return [f"{previous}..{current}"]
        return ['-1', current]

    def generate(self) -> List[Point]:
        log = self._git('log', f"--format=%H{UNIT_SEPARATOR}%an{UNIT_SEPARATOR}%s{RECORD_SEPARATOR}",
                        *self.revision_args())

        commits = []
        for record in log.split(RECORD_SEPARATOR):
            record = record.strip()
            if record:
                commits.append(record.split(UNIT_SEPARATOR))

        if not commits:
            LOG.debug("No commits in change log range")
            return []

        paths = set()
        for commit in commits:
            changed = self._git('diff-tree', '--no-commit-id', '--name-only', '-r', commit[0])
            paths.update(line.strip() for line in changed.splitlines() if line.strip())

        authors = sorted({c[1] for c in commits if len(c) > 1})
        messages = [c[2] for c in commits if len(c) > 2]

        fields = {
            'commit_count': len(commits),
            'commit_messages': '; '.join(messages),
            'culprits': ', '.join(authors),
            'affected_paths': ', '.join(sorted(paths)),
        }
        return [self.build_point(self.measurement('changelog_data'), fields=fields)]
