__version__ = "1.0"

from .application.analysis import Summary, find_chains, render_tree, summarize, to_dict
from .application.ports.importer import AbstractImporter, ImportMode, PackageMetadata
from .application.tree import DependencyTree, Package
from .domain.stringset import StringSet
from .main import build_tree

__all__ = [
    "AbstractImporter",
    "DependencyTree",
    "ImportMode",
    "Package",
    "PackageMetadata",
    "StringSet",
    "Summary",
    "build_tree",
    "find_chains",
    "render_tree",
    "summarize",
    "to_dict",
]
