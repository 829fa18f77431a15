from __future__ import annotations

import logging
import threading
from concurrent import futures
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from deptree import exceptions
from deptree.application.ports.importer import AbstractImporter, ImportMode, PackageMetadata
from deptree.domain.stringset import StringSet

logger = logging.getLogger(__name__)

# Names that are imported as compiler directives rather than as packages.
PSEUDO_IMPORTS = frozenset({"C", "__future__"})

DEFAULT_MAX_WORKERS = 32


class Package:
    """
    A package within a DependencyTree, together with the packages it depends on.

    Each occurrence of an import in the tree gets its own Package, so the same import name
    may appear many times, at different positions.
    """

    def __init__(
        self,
        name: str,
        source_dir: str,
        tree: DependencyTree,
        parent: Optional[Package] = None,
        is_test: bool = False,
    ) -> None:
        # Initially the name as imported; replaced by the canonical import path once resolved.
        self.name = name
        self.source_dir = source_dir
        self.tree = tree
        self.parent = parent
        self.is_test = is_test

        self.internal = False
        self.resolved = False
        self.children: List[Package] = []
        self.raw: Optional[PackageMetadata] = None

        # The chain of parents never changes once a package is created.
        self.depth: int = 0 if parent is None else parent.depth + 1

        self._lock = threading.Lock()

    def resolve(self, importer: AbstractImporter) -> None:
        """
        Recursively resolve the package and all the packages it depends on.
        """
        # Resolved means the import was attempted: it's only unset if the importer fails,
        # not if the package is deliberately skipped.
        self.resolved = True

        name = self.tree.clean_name(self.name)
        if not name:
            return

        # Stop resolving imports if we've reached max depth or found a duplicate.
        if self.tree.has_seen_import(name):
            logger.debug(f"Resolving {name} shallowly: already seen.")
            mode = ImportMode.SHALLOW
        elif self.tree.is_at_max_depth(self):
            logger.debug(f"Resolving {name} shallowly: at max depth {self.tree.max_depth}.")
            mode = ImportMode.SHALLOW
        else:
            mode = ImportMode.FULL

        try:
            metadata = importer.import_package(name, self.source_dir, mode)
        except exceptions.ImportFailure as e:
            logger.debug(f"Could not resolve {name}: {e}")
            self.resolved = False
            return
        self.raw = metadata

        # Update the name with the fully qualified import path.
        self.name = metadata.import_path

        if metadata.is_internal:
            self.internal = True
            if not self.tree.should_resolve_internal(self):
                return

        if mode is ImportMode.SHALLOW:
            return

        # Regular imports are claimed first, sharing the set with the test imports, so that
        # anything imported by both is treated as a regular dependency.
        unique = StringSet()
        pending = self._spawn_children(
            importer, metadata.imports, metadata.directory, unique, is_test=False
        )
        if self.tree.resolve_test:
            pending += self._spawn_children(
                importer,
                metadata.test_imports + metadata.external_test_imports,
                metadata.directory,
                unique,
                is_test=True,
            )

        for future in pending:
            # Re-raises anything unexpected from the child's thread.
            future.result()

        self.children.sort(key=by_internal_and_name)

    def add_child(
        self, importer: AbstractImporter, name: str, source_dir: str, is_test: bool
    ) -> Package:
        """
        Create a child package from an import name, resolve it and add it to the children.
        """
        child = Package(
            name=name,
            source_dir=source_dir,
            tree=self.tree,
            parent=self,
            is_test=is_test,
        )
        child.resolve(importer)
        with self._lock:
            self.children.append(child)
        return child

    def _spawn_children(
        self,
        importer: AbstractImporter,
        imports: Iterable[str],
        source_dir: str,
        unique: StringSet,
        is_test: bool,
    ) -> List[futures.Future]:
        pending = []
        for imported in imports:
            # Mostly for test modules, which may import the package they are testing.
            if imported == self.name:
                continue
            if not self.tree.clean_name(imported):
                continue
            if not unique.add(imported):
                continue
            pending.append(self.tree.spawn(self.add_child, importer, imported, source_dir, is_test))
        return pending

    def __str__(self) -> str:
        if self.resolved:
            return self.name
        return f"{self.name} (unresolved)"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self}>"


def by_internal_and_name(package: Package) -> Tuple[bool, str]:
    """
    Sort key placing standard library packages above external ones, then ordering by name.
    """
    return (not package.internal, package.name)


class DependencyTree:
    """
    The policy and shared state for resolving a single tree of dependencies.

    Usage:

        with DependencyTree(max_depth=3, resolve_test=True) as tree:
            root = tree.resolve("mypackage", importer=importer, source_dir="/path/to/src")
    """

    def __init__(
        self,
        *,
        max_depth: Optional[int] = None,
        resolve_test: bool = False,
        resolve_internal: bool = False,
        max_workers: int = DEFAULT_MAX_WORKERS,
        vendored_namespaces: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Args:
            - max_depth:           how far below the root to discover imports. None means
                                   no limit.
            - resolve_test:        whether to follow imports made only by tests.
            - resolve_internal:    whether to follow the imports of standard library packages.
            - max_workers:         the most child resolutions that may run in worker threads
                                   at once.
            - vendored_namespaces: map of reserved namespace prefixes to the segment that
                                   packages under them should be imported from, e.g.
                                   {"someorg": "vendor"} resolves "someorg.x" as
                                   "vendor.someorg.x".
        """
        if max_depth is not None and max_depth < 0:
            raise ValueError("max_depth cannot be negative.")
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1.")

        self.max_depth = max_depth
        self.resolve_test = resolve_test
        self.resolve_internal = resolve_internal
        self.max_workers = max_workers
        self.vendored_namespaces: Dict[str, str] = dict(vendored_namespaces or {})
        self.root: Optional[Package] = None

        self._seen_imports = StringSet()
        self._worker_permits = threading.BoundedSemaphore(max_workers)
        self._executor = futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="deptree"
        )

    def resolve(self, name: str, importer: AbstractImporter, source_dir: str) -> Package:
        """
        Build the tree of dependencies for the named package.

        Raises RootPackageNotResolved if the package itself could not be imported.
        """
        self._seen_imports.reset()
        self.root = Package(name=name, source_dir=source_dir, tree=self)
        self.root.resolve(importer)
        if not self.root.resolved:
            raise exceptions.RootPackageNotResolved(
                f"Could not resolve package '{name}' from {source_dir}."
            )
        return self.root

    @property
    def seen_imports(self) -> StringSet:
        return self._seen_imports

    def has_seen_import(self, name: str) -> bool:
        """
        Record the import name, returning whether it had already been encountered in this tree.
        """
        return not self._seen_imports.add(name)

    def is_at_max_depth(self, package: Package) -> bool:
        return self.max_depth is not None and package.depth >= self.max_depth

    def should_resolve_internal(self, package: Package) -> bool:
        # The root is always resolved, even if it's in the standard library.
        return self.resolve_internal or package is self.root

    def clean_name(self, name: str) -> str:
        """
        Return the name that should be used to import the package.

        An empty string means the package cannot be imported.
        """
        if name in PSEUDO_IMPORTS:
            return ""

        for namespace, vendor_segment in self.vendored_namespaces.items():
            if name == namespace or name.startswith(f"{namespace}."):
                return f"{vendor_segment}.{name}"

        return name

    def spawn(self, fn: Callable[..., Any], *args: Any) -> futures.Future:
        """
        Run the function in a worker thread if one is free, otherwise in the calling thread.

        Falling back to the calling thread means nested resolutions never wait on a worker
        that is itself waiting on them.
        """
        if self._worker_permits.acquire(blocking=False):
            try:
                return self._executor.submit(self._run_with_permit, fn, *args)
            except BaseException:
                self._worker_permits.release()
                raise

        future: futures.Future = futures.Future()
        try:
            future.set_result(fn(*args))
        except Exception as e:
            future.set_exception(e)
        return future

    def _run_with_permit(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        finally:
            self._worker_permits.release()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> DependencyTree:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
