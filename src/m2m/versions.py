"""Lookup of published MSYS2 base-archive versions."""

from __future__ import annotations

import re
import threading
from typing import Callable

import httpx

from m2m.errors import M2MError

DISTRIB_URL = "https://repo.msys2.org/distrib/x86_64/"
FALLBACK_VERSION = "2025-12-13"
FETCH_TIMEOUT_SECONDS = 30.0

_ARCHIVE_PATTERN = re.compile(r"msys2-base-x86_64-(\d{4})(\d{2})(\d{2})\.tar\.")

Fetcher = Callable[[], str]


class VersionLookupError(M2MError):
    """Raised when the version listing can't be fetched."""

    pass


def parse_version_listing(html: str) -> list[str]:
    """Extract ``YYYY-MM-DD`` versions from a directory listing, newest first."""
    versions = {f"{y}-{m}-{d}" for y, m, d in _ARCHIVE_PATTERN.findall(html)}
    return sorted(versions, reverse=True)


def fetch_distrib_listing() -> str:
    """
    Raises:
        VersionLookupError: On any transport or HTTP status error
    """
    try:
        response = httpx.get(
            DISTRIB_URL,
            timeout=httpx.Timeout(FETCH_TIMEOUT_SECONDS, connect=10.0),
            follow_redirects=True,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise VersionLookupError(f"Failed to fetch MSYS2 versions from {DISTRIB_URL}: {e}") from e
    return response.text


class VersionCatalog:
    """Caches the upstream version list for the lifetime of the process.

    The first caller fetches under a lock; concurrent callers wait for that
    fetch instead of starting their own. Once populated the cache is never
    refreshed or invalidated. A failed fetch leaves it empty so a later call
    can try again.
    """

    def __init__(self, fetch: Fetcher | None = None):
        self._fetch = fetch or fetch_distrib_listing
        self._lock = threading.Lock()
        self._versions: tuple[str, ...] | None = None

    def available_versions(self) -> tuple[str, ...]:
        """
        Raises:
            VersionLookupError: If the listing has to be fetched and can't be
        """
        if self._versions is not None:
            return self._versions

        with self._lock:
            if self._versions is None:
                self._versions = tuple(parse_version_listing(self._fetch()))
            return self._versions

    def latest_version(self) -> str:
        versions = self.available_versions()
        return versions[0] if versions else FALLBACK_VERSION
