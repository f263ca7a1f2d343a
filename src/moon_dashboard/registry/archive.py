"""Download and unpack mooncake archives."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

from moon_dashboard.core.errors import CheckoutError, CommandError
from moon_dashboard.core.log import logger
from moon_dashboard.core.runner import Runner, render


def archive_url(base_url: str, name: str, version: str) -> str:
    return f"{base_url.rstrip('/')}/{name}/{quote(version, safe='')}.zip"


def download_to(
    runner: Runner,
    commands: dict[str, str],
    base_url: str,
    name: str,
    version: str,
    dst: Path,
    timeout: int | None = None,
) -> Path:
    """Fetch name@version into dst/{version}/.

    Returns:
        The directory the archive was unpacked into

    Raises:
        CheckoutError: If the download or unzip fails
    """
    url = archive_url(base_url, name, version)
    archive = dst / f"{version}.zip"
    target = dst / version

    logger.info(f"Downloading {name}@{version}", url=url)
    try:
        runner.execute(
            render(commands["download"], url=url, dest=archive),
            timeout=timeout,
            check=True,
        )
    except CommandError as e:
        raise CheckoutError(f"failed to download {url}: {e}", version) from e

    try:
        runner.execute(
            render(commands["unpack"], archive=archive, dest=target),
            timeout=timeout,
            check=True,
        )
    except CommandError as e:
        raise CheckoutError(f"failed to unzip {archive}: {e}", version) from e

    return target
