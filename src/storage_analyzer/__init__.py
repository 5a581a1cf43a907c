"""storage-analyzer package initialisation."""

__all__ = [
    "core",
    "etc_files",
    "os_detection",
    "repositories",
    "reporting",
    "shared",
]
