"""Detection of operating systems installed on existing filesystems."""

from .architecture import Architecture, ArchitectureProvider
from .detector import (
    DEFAULT_INSPECTION_TIMEOUT,
    ContentInspector,
    InspectionError,
    InspectionResult,
    OsDetector,
)
from .markers import OsMarkers, load_default_markers, load_markers

__all__ = [
	"Architecture",
	"ArchitectureProvider",
	"ContentInspector",
	"DEFAULT_INSPECTION_TIMEOUT",
	"InspectionError",
	"InspectionResult",
	"OsDetector",
	"OsMarkers",
	"load_default_markers",
	"load_markers",
]
