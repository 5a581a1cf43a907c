"""Installation repositories and the devices they reference."""

from .correlator import (
    LOCAL_SCHEMES,
    InstallationRepository,
    Repository,
    device_names_from_repositories,
    repository_devices,
)

__all__ = [
	"InstallationRepository",
	"LOCAL_SCHEMES",
	"Repository",
	"device_names_from_repositories",
	"repository_devices",
]
