import abc
import enum
from dataclasses import dataclass
from typing import Tuple


class ImportMode(enum.Enum):
    # Resolve identity, location and the names of the package's own imports.
    FULL = "full"
    # Resolve identity and location only.
    SHALLOW = "shallow"


@dataclass(frozen=True)
class PackageMetadata:
    """
    What an importer knows about a single package.
    """

    # The canonical import path, e.g. 'requests'.
    import_path: str
    # The directory that the package's own imports should be resolved relative to.
    directory: str
    # Whether the package is part of the standard library.
    is_internal: bool = False
    imports: Tuple[str, ...] = ()
    # Imports made only by test modules within the package.
    test_imports: Tuple[str, ...] = ()
    # Imports made by test modules outside the package that test it.
    external_test_imports: Tuple[str, ...] = ()


class AbstractImporter(abc.ABC):
    """
    Resolves an import name into metadata about the package it refers to.
    """

    @abc.abstractmethod
    def import_package(self, name: str, source_dir: str, mode: ImportMode) -> PackageMetadata:
        """
        Resolve the import name relative to the supplied source directory.

        In ImportMode.SHALLOW the import lists of the returned metadata may be left empty.

        Raises:
            deptree.exceptions.ImportFailure if the name cannot be resolved.
        """
        raise NotImplementedError
