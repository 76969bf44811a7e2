"""Deterministic naming of scan artifacts within a build."""

import threading
from dataclasses import dataclass, field

from wiz_scan_action.models.report import ArtifactInfo

DEFAULT_ARTIFACT_NAME = "wizscan.json"
ARTIFACT_PREFIX = "wizscan-"
ARTIFACT_SUFFIX = ".json"


@dataclass(kw_only=True)
class ArtifactNamer:
    """Hands out artifact names, one per scan.

    The first scan of a build is named ``wizscan.json``; later scans of the
    same build get ``wizscan-2.json``, ``wizscan-3.json`` and so on. Each build
    id keeps its own sequence, so interleaved builds never reuse a name.
    Safe to share between threads.
    """

    _counts: dict[str, int] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def next_artifact(self, build_id: str) -> ArtifactInfo:
        with self._lock:
            count = self._counts.get(build_id, 0) + 1
            self._counts[build_id] = count

        if count == 1:
            return ArtifactInfo(name=DEFAULT_ARTIFACT_NAME)
        suffix = str(count)
        return ArtifactInfo(
            name=f"{ARTIFACT_PREFIX}{suffix}{ARTIFACT_SUFFIX}", suffix=suffix
        )
