"""Client options."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from relaunch.core.config.domains import ClientConfig

# Sessions must carry a release; this is used when none is configured.
UNKNOWN_RELEASE = "unknown"


@dataclass
class Options:
    release: Optional[str] = None
    dist: Optional[str] = None
    environment: Optional[str] = None
    store_dir: Path = Path(".relaunch/store")
    enable_out_of_memory_tracking: bool = True
    stitch_async_code: bool = False
    async_origin_depth: int = 32
    max_breadcrumbs: int = 100
    crash_end_delta_seconds: float = 5.0

    def __post_init__(self) -> None:
        self.store_dir = Path(self.store_dir)
        if self.max_breadcrumbs < 0:
            raise ValueError("max_breadcrumbs must be >= 0")
        if self.crash_end_delta_seconds < 0:
            raise ValueError("crash_end_delta_seconds must be >= 0")

    @property
    def release_name(self) -> str:
        return self.release or UNKNOWN_RELEASE

    @property
    def crash_dir(self) -> Path:
        """Directory owned by the faulthandler crash adapter."""
        return self.store_dir / "crash"

    @classmethod
    def from_config(cls, repo_root: Optional[Path] = None) -> "Options":
        """Build options from the ``client`` configuration section."""
        return cls(**ClientConfig(repo_root=repo_root).get_all_settings())


__all__ = ["Options", "UNKNOWN_RELEASE"]
