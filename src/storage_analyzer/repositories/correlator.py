"""Device names referenced by installation repositories."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Set
from urllib.parse import urlsplit

import structlog

# Schemes of installation sources served from locally attached storage.
LOCAL_SCHEMES = frozenset({"cd", "dvd", "dir", "hd", "iso", "file"})

# Only the last device=/devices= parameter is taken.
_DEVICES_PARAM = re.compile(r".*devices?=([^&]*)")

_logger = structlog.get_logger(__name__)


class InstallationRepository(Protocol):
    """What the correlator needs from a repository."""

    url: str

    @property
    def local(self) -> bool:
        """Whether the repository lives on local storage."""


@dataclass(frozen=True, slots=True)
class Repository:
    """Installation source given by its URL.

    Locality is derived from the URL scheme unless ``is_local`` is set.
    """

    url: str
    is_local: Optional[bool] = None

    @property
    def scheme(self) -> str:
        try:
            return urlsplit(self.url).scheme.lower()
        except ValueError:
            return ""

    @property
    def local(self) -> bool:
        if self.is_local is not None:
            return self.is_local
        return self.scheme in LOCAL_SCHEMES


def repository_devices(repository: InstallationRepository) -> List[str]:
    """Device names given in the URL of a repository.

    For example::

        "hd:/subdir?device=/dev/sda1&filesystem=reiserfs" -> ["/dev/sda1"]
        "dvd:/?devices=/dev/sda,/dev/sdb" -> ["/dev/sda", "/dev/sdb"]

    This is a textual match: one parameter, comma separated, no escaping.
    """

    match = _DEVICES_PARAM.match(str(repository.url))
    if match is None:
        return []
    return [token.strip() for token in match.group(1).split(",") if token.strip()]


def device_names_from_repositories(repositories: Iterable[InstallationRepository]) -> Set[str]:
    """Union of the device names of every local repository.

    A repository that cannot be interpreted contributes nothing.
    """

    names: Set[str] = set()
    for repository in repositories:
        try:
            if not repository.local:
                continue
            names.update(repository_devices(repository))
        except Exception as exc:
            _logger.warning(
                "repository-parsing-failed",
                url=str(getattr(repository, "url", None)),
                error=str(exc),
            )
    return names


__all__ = [
    "InstallationRepository",
    "LOCAL_SCHEMES",
    "Repository",
    "device_names_from_repositories",
    "repository_devices",
]
