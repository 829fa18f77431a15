from __future__ import annotations

import ast
import importlib.machinery
import logging
import sys
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from deptree import exceptions
from deptree.application.ports.filesystem import AbstractFileSystem
from deptree.application.ports.importer import AbstractImporter, ImportMode, PackageMetadata
from deptree.domain.valueobjects import Module

logger = logging.getLogger(__name__)

_TEST_DIRECTORY_NAMES = frozenset({"tests", "test"})
_PROJECT_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg")


@dataclass(frozen=True)
class _Location:
    # The directory on the search path that the package was found in.
    search_dir: str
    # Directories containing the package's modules.
    package_directories: Tuple[str, ...] = ()
    # The source file, for a package that is a single module.
    filename: Optional[str] = None


class ImportLibImporter(AbstractImporter):
    """
    Resolves Python packages by statically analysing their source.

    Packages are located the way the import system would, but nothing is imported: the
    imports of each package are found by parsing its modules. Each import is reported by the
    name of its top level package, e.g. 'import requests.adapters' is reported as 'requests'.
    """

    def __init__(self, file_system: AbstractFileSystem, include_sys_path: bool = True) -> None:
        """
        Args:
            - file_system:      The file system interface to use.
            - include_sys_path: Whether to search sys.path after the source directory.
        """
        self.file_system = file_system
        self.include_sys_path = include_sys_path

    def import_package(self, name: str, source_dir: str, mode: ImportMode) -> PackageMetadata:
        if not name or name.startswith(".") or not all(name.split(".")):
            # Relative or malformed names can't be located.
            raise exceptions.ImportFailure(name, source_dir)

        module = Module(name)

        if module.package_name in sys.builtin_module_names:
            return PackageMetadata(import_path=module.name, directory="", is_internal=True)

        location = self._locate(module, self._search_dirs(source_dir))
        if location is None:
            raise exceptions.ImportFailure(name, source_dir)

        is_internal = module.package_name in sys.stdlib_module_names
        metadata = PackageMetadata(
            import_path=module.name,
            directory=location.search_dir,
            is_internal=is_internal,
        )
        if mode is ImportMode.SHALLOW:
            return metadata

        imports, test_imports = self._scan_package(module, location, source_dir)
        if is_internal:
            external_test_imports: Set[str] = set()
        else:
            external_test_imports = self._scan_external_tests(module, location, source_dir)

        return PackageMetadata(
            import_path=metadata.import_path,
            directory=metadata.directory,
            is_internal=metadata.is_internal,
            imports=tuple(sorted(imports)),
            test_imports=tuple(sorted(test_imports)),
            external_test_imports=tuple(sorted(external_test_imports)),
        )

    # Locating packages
    # -----------------

    def _search_dirs(self, source_dir: str) -> List[str]:
        candidates = [source_dir]
        if self.include_sys_path:
            candidates.extend(sys.path)

        search_dirs: List[str] = []
        for candidate in candidates:
            if candidate and candidate not in search_dirs:
                search_dirs.append(candidate)
        return search_dirs

    def _locate(self, module: Module, search_dirs: Sequence[str]) -> Optional[_Location]:
        components = module.name.split(".")
        for search_dir in search_dirs:
            filename_root = self.file_system.join(search_dir, *components)
            if self.file_system.exists(self.file_system.join(filename_root, "__init__.py")):
                return _Location(search_dir=search_dir, package_directories=(filename_root,))
            if self.file_system.exists(f"{filename_root}.py"):
                return _Location(search_dir=search_dir, filename=f"{filename_root}.py")

        if module.is_top_level:
            return self._locate_with_importlib(module, search_dirs)
        return None

    def _locate_with_importlib(
        self, module: Module, search_dirs: Sequence[str]
    ) -> Optional[_Location]:
        """
        Locate namespace packages, extension modules and frozen modules.

        Finding a ModuleSpec doesn't execute the module.
        """
        spec = importlib.machinery.PathFinder.find_spec(module.name, list(search_dirs))
        if spec is None:
            if importlib.machinery.FrozenImporter.find_spec(module.name) is not None:
                return _Location(search_dir="")
            return None

        if spec.origin is None and spec.submodule_search_locations:
            # A namespace package.
            package_directories = tuple(spec.submodule_search_locations)
            return _Location(
                search_dir=self.file_system.dirname(package_directories[0]),
                package_directories=package_directories,
            )

        assert spec.origin
        search_dir = self.file_system.dirname(spec.origin)
        if spec.origin.endswith(".py") and self.file_system.exists(spec.origin):
            return _Location(search_dir=search_dir, filename=spec.origin)
        # Compiled, so there's no source to analyse.
        return _Location(search_dir=search_dir)

    # Scanning imports
    # ----------------

    def _scan_package(
        self, module: Module, location: _Location, source_dir: str
    ) -> Tuple[Set[str], Set[str]]:
        imports: Set[str] = set()
        test_imports: Set[str] = set()

        if location.filename:
            imports |= self._scan_file(location.filename, module, source_dir)

        for package_directory in location.package_directories:
            for dirpath, filename in self._get_python_files_inside_directory(package_directory):
                imported = self._scan_file(
                    self.file_system.join(dirpath, filename), module, source_dir
                )
                if self._is_test_module(dirpath, filename, package_directory):
                    test_imports |= imported
                else:
                    imports |= imported

        # Imports between modules of the same package aren't dependencies.
        imports.discard(module.package_name)
        test_imports.discard(module.package_name)
        return imports, test_imports

    def _scan_external_tests(
        self, module: Module, location: _Location, source_dir: str
    ) -> Set[str]:
        """
        Scan the tests that sit alongside the package in its project, if there are any.

        Only test modules that import the package contribute.
        """
        project_directory = self._find_project_directory(location.search_dir)
        if project_directory is None:
            return set()

        tests_directory = self.file_system.join(project_directory, "tests")
        if tests_directory in location.package_directories:
            return set()

        external_test_imports: Set[str] = set()
        for dirpath, filename in self._get_python_files_inside_directory(
            tests_directory, require_init=False
        ):
            imported = self._scan_file(self.file_system.join(dirpath, filename), module, source_dir)
            if module.package_name in imported:
                external_test_imports |= imported

        # As for the package's own modules, imports of the package itself don't count.
        external_test_imports.discard(module.package_name)
        return external_test_imports

    def _find_project_directory(self, search_dir: str) -> Optional[str]:
        candidates = [search_dir]
        head, tail = self.file_system.split(search_dir)
        if tail == "src":
            candidates.append(head)

        for candidate in candidates:
            if any(
                self.file_system.exists(self.file_system.join(candidate, marker))
                for marker in _PROJECT_MARKERS
            ):
                return candidate
        return None

    def _scan_file(self, filename: str, module: Module, source_dir: str) -> Set[str]:
        """
        Return the top level package names imported by the file.
        """
        try:
            module_contents = self.file_system.read(filename)
        except OSError as e:
            # E.g. a broken symlink, or a file without read permission.
            logger.debug(f"Could not read {filename}: {e}")
            raise exceptions.UnreadableSource(module.name, source_dir, filename=filename)

        try:
            syntax_tree = ast.parse(module_contents, filename=filename)
        except SyntaxError as e:
            raise exceptions.SourceSyntaxError(
                module.name,
                source_dir,
                filename=filename,
                lineno=e.lineno,
                text=e.text.strip() if e.text else None,
            )
        except ValueError as e:
            # Undecodable source, or source containing null bytes.
            raise exceptions.SourceSyntaxError(
                module.name, source_dir, filename=filename, lineno=None, text=str(e)
            )

        visitor = _ImportVisitor()
        visitor.visit(syntax_tree)
        return {Module(name).package_name for name in visitor.imported_names}

    def _get_python_files_inside_directory(
        self, directory: str, require_init: bool = True
    ) -> Iterator[Tuple[str, str]]:
        """
        Get the Python files within the supplied directory.

        Return:
            Generator of (directory, filename) tuples.
        """
        for dirpath, dirs, files in self.file_system.walk(directory):
            # Don't include subdirectories that aren't Python packages,
            # nor their subdirectories.
            if require_init and dirpath != directory and "__init__.py" not in files:
                for d in list(dirs):
                    dirs.remove(d)
                continue

            dirs_to_remove = [d for d in dirs if self._should_ignore_dir(d)]
            for d in dirs_to_remove:
                dirs.remove(d)

            for filename in files:
                if self._is_python_file(filename, dirpath):
                    yield dirpath, filename

    def _should_ignore_dir(self, directory: str) -> bool:
        # Skip adding directories that are hidden.
        return directory.startswith(".") or directory == "__pycache__"

    def _is_python_file(self, filename: str, dirpath: str) -> bool:
        """
        Given a filename, return whether it's a Python file.

        Files with extra dots in the name won't be treated as Python files.

        Args:
            filename (str): the filename, excluding the path.
        Returns:
            bool: whether it's a Python file.
        """
        # Ignore hidden files.
        if filename.startswith("."):
            return False

        if not filename.endswith(".py"):
            return False

        # Ignore files like some.module.py.
        if filename.count(".") > 1:
            logger.warning(
                "Warning: skipping module with too many dots in the name: "
                f"{dirpath}{self.file_system.sep}{filename}"
            )
            return False

        return True

    def _is_test_module(self, dirpath: str, filename: str, package_directory: str) -> bool:
        if filename == "conftest.py" or filename.startswith("test_"):
            return True
        if filename.endswith("_test.py"):
            return True
        internal_dirpath = dirpath[len(package_directory) :]
        return any(
            component in _TEST_DIRECTORY_NAMES
            for component in internal_dirpath.split(self.file_system.sep)
        )


class _ImportVisitor(ast.NodeVisitor):
    """
    Collects the absolute names imported anywhere in a module, including in function bodies.

    Relative imports are ignored, as they always refer to the package being scanned. So are
    imports guarded by 'if TYPE_CHECKING:', as they aren't made at runtime.
    """

    def __init__(self) -> None:
        self.imported_names: Set[str] = set()

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self.imported_names.add(alias.name)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        if node.level == 0 and node.module:
            self.imported_names.add(node.module)

    def visit_If(self, node: ast.If) -> None:
        if _is_type_checking_guard(node.test):
            for statement in node.orelse:
                self.visit(statement)
        else:
            self.generic_visit(node)


def _is_type_checking_guard(test: ast.expr) -> bool:
    if isinstance(test, ast.Name):
        return test.id == "TYPE_CHECKING"
    if isinstance(test, ast.Attribute):
        return test.attr == "TYPE_CHECKING"
    return False
