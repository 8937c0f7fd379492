"""
multitoken.version — semantic version string and VCS describe helper.

Kept tiny and dependency-free so it can be imported during packaging and by
the CLI before anything else is loaded.

Usage:
    from multitoken.version import __version__, git_describe, version_metadata
"""

from __future__ import annotations

import os
import subprocess
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict

# Bump on tagged releases (semver).
__version__ = "0.1.0"


@lru_cache(maxsize=1)
def git_describe() -> str:
    """
    Best-effort 'git describe' string.

    Resolution order:
      1) MULTITOKEN_GIT_DESCRIBE (hermetic builds, containers)
      2) `git describe --tags --dirty --always`
      3) "<__version__>+local"
    """
    override = os.getenv("MULTITOKEN_GIT_DESCRIBE")
    if override:
        return override.strip()

    try:
        out = subprocess.check_output(
            ["git", "describe", "--tags", "--dirty", "--always"],
            stderr=subprocess.DEVNULL,
        )
        desc = out.decode("utf-8", "replace").strip()
        if desc:
            return desc
    except (OSError, subprocess.CalledProcessError):
        pass

    return f"{__version__}+local"


@lru_cache(maxsize=1)
def version_metadata() -> Dict[str, str]:
    """
    Structured version info for logs / the `multitoken config` command.
    """
    desc = git_describe()
    return {
        "version": __version__,
        "describe": desc,
        "dirty": "true" if desc.endswith("-dirty") else "false",
        "build_time": datetime.now(timezone.utc).isoformat(),
    }


__all__ = ["__version__", "git_describe", "version_metadata"]
