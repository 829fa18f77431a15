"""
Queries and output formats for a resolved dependency tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Set, Tuple

from typing_extensions import TypedDict

from deptree.application.tree import Package


class SerializedPackage(TypedDict):
    name: str
    internal: bool
    resolved: bool
    deps: List["SerializedPackage"]


@dataclass(frozen=True)
class Summary:
    """
    Counts of the unique dependencies below a package.
    """

    internal: int
    external: int
    testing: int
    unresolved: int

    @property
    def total(self) -> int:
        return self.internal + self.external

    def __str__(self) -> str:
        return (
            f"{self.total} dependencies ({self.internal} internal, {self.external} external, "
            f"{self.testing} testing)."
        )


def iter_packages(package: Package) -> Iterator[Package]:
    """
    Yield the package and all its descendants, depth first, in the order of the children.
    """
    yield package
    for child in package.children:
        yield from iter_packages(child)


def render_tree(package: Package) -> str:
    """
    Render the package and its dependencies as text, in the form:

        mypackage
        ├ json
        ├ requests
        │ ├ http
        │ └ urllib3 (unresolved)
        └ pytest (test)
    """
    lines = [_describe(package)]
    _render_children(package, prefix="", lines=lines)
    return "\n".join(lines)


def _render_children(package: Package, prefix: str, lines: List[str]) -> None:
    for index, child in enumerate(package.children):
        is_last = index == len(package.children) - 1
        lines.append(f"{prefix}{'└ ' if is_last else '├ '}{_describe(child)}")
        _render_children(child, prefix=prefix + ("  " if is_last else "│ "), lines=lines)


def _describe(package: Package) -> str:
    if package.is_test:
        return f"{package} (test)"
    return str(package)


def to_dict(package: Package) -> SerializedPackage:
    """
    Return the package and its dependencies as primitives, suitable for JSON.
    """
    return {
        "name": package.name,
        "internal": package.internal,
        "resolved": package.resolved,
        "deps": [to_dict(child) for child in package.children],
    }


def summarize(package: Package) -> Summary:
    """
    Count the dependencies below the package, counting each name once.
    """
    internal = external = testing = unresolved = 0
    seen: Set[str] = set()
    for descendant in iter_packages(package):
        if descendant is package or descendant.name in seen:
            continue
        seen.add(descendant.name)

        if descendant.internal:
            internal += 1
        else:
            external += 1
        if descendant.is_test:
            testing += 1
        if not descendant.resolved:
            unresolved += 1

    return Summary(internal=internal, external=external, testing=testing, unresolved=unresolved)


def find_chains(package: Package, target: str) -> List[Tuple[str, ...]]:
    """
    Find every chain of dependencies from the package down to a package with the target name.

    Returns:
        A list of tuples of package names, each running from the supplied package to the
        target, in the order they appear in the tree.
    """
    chains: List[Tuple[str, ...]] = []
    _collect_chains(package, target, chain=(), chains=chains)
    return chains


def _collect_chains(
    package: Package, target: str, chain: Tuple[str, ...], chains: List[Tuple[str, ...]]
) -> None:
    chain = chain + (package.name,)
    if package.name == target and len(chain) > 1:
        chains.append(chain)
        return
    for child in package.children:
        _collect_chains(child, target, chain, chains)
