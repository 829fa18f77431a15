__all__ = ["build_tree"]

from .adaptors.filesystem import FileSystem
from .adaptors.importer import ImportLibImporter
from .adaptors.timing import SystemClockTimer
from .application.config import settings
from .application.tree import DEFAULT_MAX_WORKERS
from .application.usecases import build_tree

settings.configure(
    IMPORTER=ImportLibImporter(file_system=FileSystem()),
    TIMER=SystemClockTimer(),
    MAX_WORKERS=DEFAULT_MAX_WORKERS,
    VENDORED_NAMESPACES={},
)
