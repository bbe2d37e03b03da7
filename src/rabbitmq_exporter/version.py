"""Version and build metadata reported by rabbitmq_exporter_build_info."""

import os
from dataclasses import dataclass

__version__ = "1.0.0"


@dataclass(frozen=True)
class BuildInfo:
    """Build metadata labels.

    Release builds set revision, branch and build date through the
    BUILD_REVISION, BUILD_BRANCH and BUILD_DATE environment variables.
    """

    version: str = __version__
    revision: str = ""
    branch: str = ""
    builddate: str = ""

    @classmethod
    def from_env(cls) -> "BuildInfo":
        return cls(
            revision=os.environ.get("BUILD_REVISION", ""),
            branch=os.environ.get("BUILD_BRANCH", ""),
            builddate=os.environ.get("BUILD_DATE", ""),
        )

    def labels(self) -> dict[str, str]:
        return {
            "version": self.version,
            "revision": self.revision,
            "branch": self.branch,
            "builddate": self.builddate,
        }
