# dailywall/core/downloader.py
import logging
import os
import shutil
import tempfile
from email.message import Message
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

import requests

from .errors import ContentError, FilesystemError, TransportError

logger = logging.getLogger(__name__)

FALLBACK_FILENAME = "dailyWallpaper.jpg"
CHUNK_SIZE = 64 * 1024

HEADERS = {
    'User-Agent': 'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/100.0.0.0 Safari/537.36'
}


def fetch_metadata(url: str, timeout: float = 10) -> str:
    """
    GETs a metadata API endpoint and returns the response body as text.

    Raises:
        TransportError: On connection errors, timeouts, HTTP error statuses
            or an empty body.
    """
    logger.info(f"Fetching wallpaper metadata from {url}")
    try:
        response = requests.get(url, headers=HEADERS, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.Timeout as e:
        raise TransportError(f"Timeout fetching metadata from {url}") from e
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Network error fetching metadata from {url}: {e}") from e

    if not response.content:
        raise TransportError(f"Empty response body from {url}")
    return response.text


def _sanitize_filename(name: str | None) -> str | None:
    if not name:
        return None
    # Only ever keep the last path component, whatever separator the server used
    name = PurePosixPath(name.replace('\\', '/')).name.strip()
    if name in ('', '.', '..'):
        return None
    return name


def suggested_filename(response) -> str:
    """
    Picks the filename the server suggests for a response.

    The Content-Disposition filename wins, then the last segment of the final
    URL path if it has an extension, then FALLBACK_FILENAME.
    """
    disposition = response.headers.get('content-disposition')
    if disposition:
        msg = Message()
        msg['content-disposition'] = disposition
        name = _sanitize_filename(msg.get_filename())
        if name:
            return name

    url_name = _sanitize_filename(unquote(urlparse(response.url or '').path))
    if url_name and PurePosixPath(url_name).suffix:
        return url_name

    return FALLBACK_FILENAME


def download_to_staging(url: str, staging_dir: Path, timeout: float = 30) -> tuple[Path, str]:
    """
    Streams an image into a private staging file.

    The content type is checked from the headers before any body is read, so a
    non-image response never reaches the filesystem.

    Args:
        url (str): The image URL.
        staging_dir (Path): Where the staging file is created. Must not be
            the scratch directory, which is wiped before the move.
        timeout (float): Request timeout in seconds.

    Returns:
        tuple[Path, str]: The staging file and the filename to persist it under.

    Raises:
        TransportError, ContentError, FilesystemError
    """
    logger.info(f"Attempting to download image from {url}")
    try:
        with requests.get(url, headers=HEADERS, stream=True, timeout=timeout) as response:
            response.raise_for_status()

            content_type = response.headers.get('content-type', '').lower().strip()
            if not content_type.startswith('image/'):
                raise ContentError(f"URL {url} did not return an image content-type (got: {content_type or 'none'})")

            filename = suggested_filename(response)

            try:
                staging_dir.mkdir(parents=True, exist_ok=True)
                fd, staging_name = tempfile.mkstemp(prefix=".dailywall-", suffix=".part", dir=staging_dir)
            except OSError as e:
                raise FilesystemError(f"Cannot create staging file in {staging_dir}: {e}") from e

            staging_path = Path(staging_name)
            written = 0
            finished = False
            try:
                try:
                    with os.fdopen(fd, 'wb') as f:
                        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                            if chunk:
                                f.write(chunk)
                                written += len(chunk)
                except requests.exceptions.RequestException as e:
                    raise TransportError(f"Network error downloading image from {url}: {e}") from e
                except OSError as e:
                    raise FilesystemError(f"Error writing staging file {staging_path}: {e}") from e

                if written == 0:
                    raise TransportError(f"Downloaded zero bytes from {url}")
                finished = True
            finally:
                if not finished:
                    discard_staging(staging_path)

    except requests.exceptions.Timeout as e:
        raise TransportError(f"Timeout occurred while downloading image from {url}") from e
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Network error downloading image from {url}: {e}") from e

    logger.info(f"Downloaded {written} bytes ({content_type}) to staging file {staging_path.name}")
    return staging_path, filename


def persist_download(staging_path: Path, scratch_dir: Path, filename: str) -> Path:
    """
    Moves a finished staging file into the scratch directory.

    Raises:
        FilesystemError: If the move fails. The staging file is removed.
    """
    destination = scratch_dir / filename
    try:
        scratch_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(str(staging_path), str(destination))
    except OSError as e:
        discard_staging(staging_path)
        raise FilesystemError(f"Error moving {staging_path} to {destination}: {e}") from e
    logger.info(f"Image saved to {destination}")
    return destination


def discard_staging(staging_path: Path):
    try:
        staging_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove staging file {staging_path}: {e}")
