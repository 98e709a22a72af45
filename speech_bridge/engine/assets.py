"""Tokenizer asset installation and download for vocabulary boosting.

WHY: The auxiliary tokenizer needs tokenizer.json and friends in its
cache directory. They usually ship next to the auxiliary models, and can
be fetched from a model hub when they do not.

HOW: install_tokenizer_files copies whatever is missing from the model
directory. download_tokenizer_files fetches the rest with
httpx.AsyncClient, one GET per file, written atomically.

RULES:
- Assets are "present" when both required files exist
- Existing destination files are never overwritten
- A required file that cannot be fetched raises ModelNotFoundError
- Optional files are skipped silently on any failure
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

import httpx

from speech_bridge.bridge.errors import ModelNotFoundError
from speech_bridge.config import OPTIONAL_TOKENIZER_FILES, REQUIRED_TOKENIZER_FILES

logger = logging.getLogger(__name__)

_DOWNLOAD_TIMEOUT = httpx.Timeout(60.0, connect=15.0)


def has_tokenizer_files(directory: Path) -> bool:
    directory = Path(directory)
    return all((directory / name).is_file() for name in REQUIRED_TOKENIZER_FILES)


def install_tokenizer_files(source: Path, destination: Path) -> bool:
    """Copy tokenizer assets from the model directory into the cache.

    Returns:
        True when the destination holds the required files afterwards.
    """
    source = Path(source)
    destination = Path(destination)

    if has_tokenizer_files(destination):
        return True
    if not has_tokenizer_files(source):
        return False

    destination.mkdir(parents=True, exist_ok=True)
    for name in REQUIRED_TOKENIZER_FILES + OPTIONAL_TOKENIZER_FILES:
        source_file = source / name
        destination_file = destination / name
        if not source_file.is_file() or destination_file.exists():
            continue
        shutil.copy2(source_file, destination_file)

    installed = has_tokenizer_files(destination)
    if installed:
        logger.info("Installed tokenizer files in %s", destination)
    return installed


async def download_tokenizer_files(
    destination: Path,
    base_url: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """Fetch missing tokenizer assets from ``{base_url}/{filename}``.

    Args:
        destination: Tokenizer cache directory.
        base_url: Remote directory holding the asset files.
        transport: Optional httpx transport (tests pass a MockTransport).

    Returns:
        True when the destination holds the required files afterwards.

    Raises:
        ModelNotFoundError: A required file was not available remotely.
    """
    destination = Path(destination)
    if has_tokenizer_files(destination):
        return True

    destination.mkdir(parents=True, exist_ok=True)
    base_url = base_url.rstrip("/")

    async with httpx.AsyncClient(
        transport=transport,
        timeout=_DOWNLOAD_TIMEOUT,
        follow_redirects=True,
    ) as client:
        for name in REQUIRED_TOKENIZER_FILES + OPTIONAL_TOKENIZER_FILES:
            target = destination / name
            if target.exists():
                continue

            required = name in REQUIRED_TOKENIZER_FILES
            url = f"{base_url}/{name}"
            try:
                resp = await client.get(url)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                if required:
                    raise ModelNotFoundError(
                        f"Required tokenizer file {name} not available at {url}: {exc}"
                    ) from exc
                continue

            _write_atomic(target, resp.content)

    downloaded = has_tokenizer_files(destination)
    if downloaded:
        logger.info("Downloaded tokenizer files to %s", destination)
    return downloaded


def _write_atomic(target: Path, content: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
