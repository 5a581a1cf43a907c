"""Device graph model and candidate disk analysis.

``DiskAnalyzer`` is imported from :mod:`storage_analyzer.core.disk_analyzer`
(it depends on :mod:`storage_analyzer.os_detection`, which imports this
package).
"""

from . import models
from .devicegraph import Devicegraph
from .errors import InvalidArgumentError, NotFoundError, StorageAnalyzerError
from .names import NameResolver

__all__ = [
	"models",
	"Devicegraph",
	"InvalidArgumentError",
	"NameResolver",
	"NotFoundError",
	"StorageAnalyzerError",
]
