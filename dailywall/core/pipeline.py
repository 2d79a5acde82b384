# dailywall/core/pipeline.py
"""
The fetch/parse/download/apply run behind every wallpaper refresh.

A refresh resolves the metadata endpoint, works out the image URL from the
response, downloads the image, replaces the contents of the scratch
directory with it and hands the file to the desktop. Every failure ends the
run early, is logged, and comes back as a RefreshResult; refresh() never
raises.
"""
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from . import downloader as core_downloader
from . import scratch as core_scratch
from . import sources as core_sources
from . import wallpaper as core_wallpaper
from .config import PipelineConfig
from .errors import (
    FilesystemError,
    ParseError,
    PipelineError,
    PlatformError,
    RefreshStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshResult:
    status: RefreshStatus
    message: str = ""
    image_url: str | None = None
    image_path: Path | None = None

    @property
    def ok(self) -> bool:
        return self.status is RefreshStatus.SUCCESS


class WallpaperPipeline:
    """
    Runs refreshes one at a time.

    Args:
        set_wallpaper: Callable taking an absolute image path and returning
            True on success. Defaults to the platform implementation.
        display_available: Callable reporting whether a primary display
            exists. Defaults to the environment check in core.wallpaper.
    """

    def __init__(
        self,
        set_wallpaper: Callable[[Path], bool] | None = None,
        display_available: Callable[[], bool] | None = None,
    ):
        self._set_wallpaper = set_wallpaper or core_wallpaper.set_wallpaper
        self._display_available = display_available or core_wallpaper.primary_display_available
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def refresh(self, config: PipelineConfig, display_available: bool | None = None) -> RefreshResult:
        """
        Replaces the desktop background with the image the configured API
        currently points at.

        Args:
            config: Settings snapshot for this run.
            display_available: Primary display check already taken by the
                caller (e.g. on the GUI thread). When None, the pipeline's
                own check runs right before the wallpaper is set.

        Returns a BUSY result straight away if another refresh is running.
        """
        if not self._lock.acquire(blocking=False):
            logger.info("Refresh already in progress. Skipping this request.")
            return RefreshResult(RefreshStatus.BUSY, "A refresh is already in progress.")
        try:
            return self._run(config, display_available)
        finally:
            self._lock.release()

    def _run(self, config: PipelineConfig, display_available: bool | None) -> RefreshResult:
        image_url = None
        try:
            endpoint = core_sources.resolve_endpoint(config.custom_api, config.region)
            body = core_downloader.fetch_metadata(endpoint, timeout=config.request_timeout)

            image_url = core_sources.resolve_image_url(body)
            if not image_url:
                raise ParseError(f"Response from {endpoint} matches no known shape (tried: "
                                 f"{', '.join(name for name, _ in core_sources.RESPONSE_PARSERS)})")

            image_path = self._download(image_url, config)
            self._apply(image_path, display_available)
        except PipelineError as e:
            logger.error(f"Refresh aborted ({e.status.value}): {e}")
            return RefreshResult(e.status, str(e), image_url=image_url)
        except Exception as e:
            # Anything unforeseen still must not escape to the caller
            logger.critical(f"Unexpected error during refresh: {e}", exc_info=True)
            return RefreshResult(RefreshStatus.PLATFORM_ERROR, f"Unexpected error: {e}", image_url=image_url)

        logger.info(f"Refresh complete. Wallpaper is now {image_path.name}")
        return RefreshResult(RefreshStatus.SUCCESS, f"Wallpaper set to {image_path.name}",
                             image_url=image_url, image_path=image_path)

    def _download(self, image_url: str, config: PipelineConfig) -> Path:
        scratch_dir = config.scratch_dir
        # Staging lives beside the scratch directory, never inside it
        staging_path, filename = core_downloader.download_to_staging(
            image_url, scratch_dir.parent, timeout=config.download_timeout
        )
        if not (core_scratch.ensure_scratch_dir(scratch_dir)
                and core_scratch.is_safe_scratch_dir(scratch_dir)):
            core_downloader.discard_staging(staging_path)
            raise FilesystemError(f"Scratch directory {scratch_dir} is missing or unsafe to clear.")
        core_scratch.clear_scratch_dir(scratch_dir)
        return core_downloader.persist_download(staging_path, scratch_dir, filename)

    def _apply(self, image_path: Path, display_available: bool | None):
        if display_available is None:
            display_available = self._display_available()
        if not display_available:
            raise PlatformError("No primary display available.")
        if not self._set_wallpaper(image_path.resolve()):
            raise PlatformError(f"Desktop rejected {image_path.name} as the new background.")
