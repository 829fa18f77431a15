"""
Use cases handle application logic.
"""

import logging
import os
from typing import Optional

from ..application.ports.importer import AbstractImporter
from ..application.ports.timing import Timer
from ..application.tree import DependencyTree, Package
from .config import settings

logger = logging.getLogger(__name__)


def build_tree(
    package_name: str,
    *,
    source_dir: Optional[str] = None,
    max_depth: Optional[int] = None,
    resolve_test: bool = False,
    resolve_internal: bool = False,
    max_workers: Optional[int] = None,
) -> Package:
    """
    Build and return the tree of dependencies of the supplied package.

    Args:
        - package_name: the import name of the package at the root of the tree.
        - source_dir: the directory to resolve the package from. Defaults to the current
          working directory.
        - max_depth: how many levels below the root to follow imports. None means no limit.
        - resolve_test: whether to follow imports that are only made by tests.
        - resolve_internal: whether to follow the imports of standard library packages.
        - max_workers: the most resolutions to run concurrently. Defaults to the
          MAX_WORKERS setting.
    Examples:

        tree = build_tree("mypackage")
        tree = build_tree("mypackage", max_depth=2, resolve_test=True)
        tree = build_tree("json", resolve_internal=True)

    Raises:
        deptree.exceptions.RootPackageNotResolved if the package itself cannot be found.
    """
    package_name = _validate_package_name(package_name)

    importer: AbstractImporter = settings.IMPORTER
    timer: Timer = settings.TIMER

    if source_dir is None:
        source_dir = os.getcwd()
    if max_workers is None:
        max_workers = settings.MAX_WORKERS

    start = timer.get_current_time()
    with DependencyTree(
        max_depth=max_depth,
        resolve_test=resolve_test,
        resolve_internal=resolve_internal,
        max_workers=max_workers,
        vendored_namespaces=settings.VENDORED_NAMESPACES,
    ) as tree:
        root = tree.resolve(package_name, importer=importer, source_dir=source_dir)
    logger.debug(
        f"Built dependency tree for {package_name} in "
        f"{timer.get_current_time() - start:.2f}s."
    )

    return root


def _validate_package_name(package_name: object) -> str:
    if not isinstance(package_name, str):
        raise TypeError(f"Package name must be a string, got {package_name.__class__.__name__}.")
    if not package_name:
        raise ValueError("Package name cannot be empty.")
    return package_name
