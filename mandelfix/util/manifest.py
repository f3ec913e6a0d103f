"""Run manifest for orbit exports: what was computed, with what, where."""

import json
import os
import platform
import sys
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import importlib.metadata as importlib_metadata

_TRACKED_PACKAGES = ("mandelfix", "numpy", "mpmath", "tqdm")

@dataclass(frozen=True)
class RunManifest:
    created_utc: str
    command: str
    config: Dict[str, Any]
    orbit: Dict[str, Any]
    environment: Dict[str, Any]

def package_versions() -> Dict[str, str]:
    versions = {}
    for name in _TRACKED_PACKAGES:
        try:
            versions[name] = importlib_metadata.version(name)
        except importlib_metadata.PackageNotFoundError:
            continue
    return versions

def environment_info(git_commit: Optional[str]) -> Dict[str, Any]:
    return {
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "packages": package_versions(),
        "git_commit": git_commit,
    }

def build_manifest(*, command: str, config: Dict[str, Any], orbit_info: Dict[str, Any], git_commit: Optional[str]) -> RunManifest:
    return RunManifest(
        created_utc=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        command=command,
        config=config,
        orbit=orbit_info,
        environment=environment_info(git_commit),
    )

def write_manifest(path: str, manifest: RunManifest) -> str:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(manifest), f, indent=2, sort_keys=True)
    return path
