import time

import pytest  # type: ignore

from deptree import exceptions
from deptree.application.ports.importer import ImportMode, PackageMetadata
from deptree.application.tree import DependencyTree, Package, by_internal_and_name
from tests.adaptors.importer import BaseFakeImporter


def _resolve(importer, name="app", source_dir="/src", **tree_kwargs) -> Package:
    with DependencyTree(**tree_kwargs) as tree:
        return tree.resolve(name, importer=importer, source_dir=source_dir)


def _names(package: Package) -> list[str]:
    return [child.name for child in package.children]


def _child(package: Package, name: str) -> Package:
    [child] = [c for c in package.children if c.name == name]
    return child


class SimpleAppImporter(BaseFakeImporter):
    package_map = {
        "app": PackageMetadata("app", "/src", imports=("fmtlib", "netlib")),
        "netlib": PackageMetadata("netlib", "/stdlib", is_internal=True, imports=("bytelib",)),
        "bytelib": PackageMetadata("bytelib", "/stdlib", is_internal=True),
        "fmtlib": PackageMetadata("fmtlib", "/site-packages"),
    }


class TestResolveScenarios:
    def test_resolves_internal_packages(self):
        root = _resolve(SimpleAppImporter(), resolve_internal=True)

        assert root.name == "app"
        assert root.resolved
        assert _names(root) == ["netlib", "fmtlib"]
        netlib = _child(root, "netlib")
        assert netlib.internal
        assert _names(netlib) == ["bytelib"]
        assert _child(netlib, "bytelib").children == []
        assert _child(root, "fmtlib").children == []

    def test_does_not_resolve_into_internal_packages(self):
        root = _resolve(SimpleAppImporter(), resolve_internal=False)

        netlib = _child(root, "netlib")
        assert netlib.resolved
        assert netlib.internal
        assert netlib.children == []

    def test_always_resolves_root_even_if_internal(self):
        root = _resolve(SimpleAppImporter(), name="netlib", resolve_internal=False)

        assert root.internal
        assert _names(root) == ["bytelib"]
        # Dependencies of the root are not resolved into, though.
        assert _child(root, "bytelib").internal

    def test_max_depth_zero_gives_root_alone(self):
        importer = SimpleAppImporter()

        root = _resolve(importer, max_depth=0, resolve_internal=True)

        assert root.resolved
        assert root.children == []
        assert importer.calls == [("app", "/src", ImportMode.SHALLOW)]

    def test_max_depth_one_resolves_children_shallowly(self):
        importer = SimpleAppImporter()

        root = _resolve(importer, max_depth=1, resolve_internal=True)

        assert _names(root) == ["netlib", "fmtlib"]
        for child in root.children:
            assert child.resolved
            assert child.children == []
        assert importer.modes_for("netlib") == [ImportMode.SHALLOW]
        assert importer.modes_for("bytelib") == []

    def test_children_are_resolved_from_parent_directory(self):
        importer = SimpleAppImporter()

        _resolve(importer, resolve_internal=True)

        assert sorted(importer.calls, key=lambda call: call[0]) == [
            ("app", "/src", ImportMode.FULL),
            ("bytelib", "/stdlib", ImportMode.FULL),
            ("fmtlib", "/src", ImportMode.FULL),
            ("netlib", "/src", ImportMode.FULL),
        ]


class TestSpecialImports:
    @pytest.mark.parametrize("pseudo_import", ("C", "__future__"))
    def test_pseudo_imports_are_left_out(self, pseudo_import):
        class FakeImporter(BaseFakeImporter):
            package_map = {
                "app": PackageMetadata("app", "/src", imports=(pseudo_import, "fmtlib")),
                "fmtlib": PackageMetadata("fmtlib", "/site-packages"),
            }

        importer = FakeImporter()
        root = _resolve(importer)

        assert _names(root) == ["fmtlib"]
        assert importer.modes_for(pseudo_import) == []

    def test_pseudo_import_as_root_is_resolved_without_importing(self):
        importer = BaseFakeImporter()

        root = _resolve(importer, name="C")

        assert root.resolved
        assert root.raw is None
        assert root.children == []
        assert importer.calls == []

    def test_self_import_is_skipped(self):
        class FakeImporter(BaseFakeImporter):
            package_map = {
                "app": PackageMetadata(
                    "app", "/src", imports=("app", "fmtlib"), external_test_imports=("app",)
                ),
                "fmtlib": PackageMetadata("fmtlib", "/site-packages"),
            }

        root = _resolve(FakeImporter(), resolve_test=True)

        assert _names(root) == ["fmtlib"]

    def test_vendored_namespace_is_remapped(self):
        class FakeImporter(BaseFakeImporter):
            package_map = {
                "app": PackageMetadata("app", "/src", imports=("someorg.text",)),
                "vendor.someorg.text": PackageMetadata(
                    "vendor.someorg.text", "/stdlib", is_internal=True
                ),
            }

        root = _resolve(FakeImporter(), vendored_namespaces={"someorg": "vendor"})

        [child] = root.children
        assert child.resolved
        assert child.name == "vendor.someorg.text"

    def test_name_is_replaced_with_canonical_import_path(self):
        class FakeImporter(BaseFakeImporter):
            package_map = {
                "app": PackageMetadata("app", "/src", imports=("alias", "middle")),
                "alias": PackageMetadata("zzz.real", "/site-packages"),
                "middle": PackageMetadata("middle", "/site-packages"),
            }

        root = _resolve(FakeImporter())

        assert _names(root) == ["middle", "zzz.real"]


class TestTestDependencies:
    class FakeImporter(BaseFakeImporter):
        package_map = {
            "app": PackageMetadata(
                "app",
                "/src",
                imports=("fmtlib",),
                test_imports=("fmtlib", "pytest"),
                external_test_imports=("app", "mocklib", "pytest"),
            ),
            "fmtlib": PackageMetadata("fmtlib", "/site-packages"),
            "pytest": PackageMetadata("pytest", "/site-packages"),
            "mocklib": PackageMetadata("mocklib", "/site-packages"),
        }

    def test_test_imports_are_ignored_by_default(self):
        root = _resolve(self.FakeImporter())

        assert _names(root) == ["fmtlib"]

    def test_test_imports_are_resolved_if_requested(self):
        root = _resolve(self.FakeImporter(), resolve_test=True)

        assert _names(root) == ["fmtlib", "mocklib", "pytest"]
        assert not _child(root, "fmtlib").is_test
        assert _child(root, "mocklib").is_test
        assert _child(root, "pytest").is_test

    def test_import_in_regular_and_test_imports_produces_one_regular_child(self):
        root = _resolve(self.FakeImporter(), resolve_test=True)

        fmtlib_children = [child for child in root.children if child.name == "fmtlib"]
        assert len(fmtlib_children) == 1
        assert fmtlib_children[0].is_test is False


class TestUnresolvedPackages:
    class FakeImporter(BaseFakeImporter):
        package_map = {
            "app": PackageMetadata("app", "/src", imports=("fmtlib", "missing")),
            "fmtlib": PackageMetadata("fmtlib", "/site-packages", imports=("missing",)),
        }

    def test_failed_import_marks_package_unresolved(self):
        root = _resolve(self.FakeImporter())

        missing = _child(root, "missing")
        assert missing.resolved is False
        assert missing.raw is None
        assert missing.children == []
        assert str(missing) == "missing (unresolved)"

    def test_siblings_are_unaffected(self):
        root = _resolve(self.FakeImporter())

        fmtlib = _child(root, "fmtlib")
        assert fmtlib.resolved
        assert str(fmtlib) == "fmtlib"
        assert [str(child) for child in fmtlib.children] == ["missing (unresolved)"]

    def test_unresolved_root_raises(self):
        with pytest.raises(exceptions.RootPackageNotResolved):
            _resolve(self.FakeImporter(), name="missing")

    def test_unexpected_error_propagates(self):
        class BrokenImporter(BaseFakeImporter):
            package_map = {"app": PackageMetadata("app", "/src", imports=("broken",))}

            def import_package(self, name, source_dir, mode):
                if name == "broken":
                    raise RuntimeError("Something went wrong.")
                return super().import_package(name, source_dir, mode)

        with pytest.raises(RuntimeError, match="Something went wrong."):
            _resolve(BrokenImporter())


class TestDuplicatesAndCycles:
    def test_diamond_dependency_is_only_resolved_fully_once(self):
        class FakeImporter(BaseFakeImporter):
            package_map = {
                "app": PackageMetadata("app", "/src", imports=("left", "right")),
                "left": PackageMetadata("left", "/site-packages", imports=("shared",)),
                "right": PackageMetadata("right", "/site-packages", imports=("shared",)),
                "shared": PackageMetadata("shared", "/site-packages", imports=("leaf",)),
                "leaf": PackageMetadata("leaf", "/site-packages"),
            }

        importer = FakeImporter()
        root = _resolve(importer)

        shared_packages = [
            _child(_child(root, "left"), "shared"),
            _child(_child(root, "right"), "shared"),
        ]
        assert all(package.resolved for package in shared_packages)
        assert sorted(len(package.children) for package in shared_packages) == [0, 1]
        assert sorted(importer.modes_for("shared"), key=lambda mode: mode.value) == [
            ImportMode.FULL,
            ImportMode.SHALLOW,
        ]

    def test_cycle_terminates(self):
        class FakeImporter(BaseFakeImporter):
            package_map = {
                "alpha": PackageMetadata("alpha", "/src", imports=("beta",)),
                "beta": PackageMetadata("beta", "/src", imports=("alpha",)),
            }

        root = _resolve(FakeImporter(), name="alpha")

        beta = _child(root, "beta")
        alpha_again = _child(beta, "alpha")
        assert alpha_again.resolved
        assert alpha_again.children == []

    def test_shallow_resolutions_are_logged(self, caplog):
        class FakeImporter(BaseFakeImporter):
            package_map = {
                "alpha": PackageMetadata("alpha", "/src", imports=("beta",)),
                "beta": PackageMetadata("beta", "/src", imports=("alpha", "gamma")),
                "gamma": PackageMetadata("gamma", "/src"),
            }

        caplog.set_level("DEBUG", logger="deptree.application.tree")

        _resolve(FakeImporter(), name="alpha", max_depth=2)

        assert "Resolving alpha shallowly: already seen." in caplog.messages
        assert "Resolving gamma shallowly: at max depth 2." in caplog.messages

    def test_seen_imports_do_not_leak_between_resolutions(self):
        with DependencyTree(resolve_internal=True) as tree:
            first = tree.resolve("app", importer=SimpleAppImporter(), source_dir="/src")
            second = tree.resolve("app", importer=SimpleAppImporter(), source_dir="/src")

        assert _names(_child(first, "netlib")) == ["bytelib"]
        assert _names(_child(second, "netlib")) == ["bytelib"]


class TestConcurrency:
    def test_children_are_sorted_regardless_of_completion_order(self):
        class SlowImporter(BaseFakeImporter):
            package_map = {
                "app": PackageMetadata("app", "/src", imports=("aaa", "bbb", "ccc", "os")),
                "aaa": PackageMetadata("aaa", "/site-packages"),
                "bbb": PackageMetadata("bbb", "/site-packages"),
                "ccc": PackageMetadata("ccc", "/site-packages"),
                "os": PackageMetadata("os", "/stdlib", is_internal=True),
            }
            delays = {"aaa": 0.06, "bbb": 0.03, "os": 0.09}

            def import_package(self, name, source_dir, mode):
                time.sleep(self.delays.get(name, 0))
                return super().import_package(name, source_dir, mode)

        root = _resolve(SlowImporter())

        assert _names(root) == ["os", "aaa", "bbb", "ccc"]

    @pytest.mark.parametrize("max_workers", (1, 2, 32))
    def test_wide_and_deep_tree_completes_with_bounded_workers(self, max_workers):
        width, depth = 5, 4
        package_map = {}
        for level in range(depth):
            for index in range(width):
                name = f"pkg{level}_{index}"
                imports = (
                    tuple(f"pkg{level + 1}_{i}" for i in range(width))
                    if level < depth - 1
                    else ()
                )
                package_map[name] = PackageMetadata(name, "/site-packages", imports=imports)
        package_map["app"] = PackageMetadata(
            "app", "/src", imports=tuple(f"pkg0_{i}" for i in range(width))
        )

        class FakeImporter(BaseFakeImporter):
            pass

        FakeImporter.package_map = package_map

        root = _resolve(FakeImporter(), max_workers=max_workers)

        assert _names(root) == [f"pkg0_{i}" for i in range(width)]
        assert _names(root.children[0]) == [f"pkg1_{i}" for i in range(width)]

    def test_children_are_appended_without_loss(self):
        number_of_imports = 200

        class FakeImporter(BaseFakeImporter):
            package_map = {
                "app": PackageMetadata(
                    "app", "/src", imports=tuple(f"dep{i:03}" for i in range(number_of_imports))
                ),
                **{
                    f"dep{i:03}": PackageMetadata(f"dep{i:03}", "/site-packages")
                    for i in range(number_of_imports)
                },
            }

        root = _resolve(FakeImporter(), max_workers=16)

        assert _names(root) == [f"dep{i:03}" for i in range(number_of_imports)]


class TestDependencyTree:
    def test_negative_max_depth_is_invalid(self):
        with pytest.raises(ValueError, match="max_depth cannot be negative."):
            DependencyTree(max_depth=-1)

    def test_max_workers_must_be_positive(self):
        with pytest.raises(ValueError, match="max_workers must be at least 1."):
            DependencyTree(max_workers=0)

    @pytest.mark.parametrize(
        "name, expected",
        (
            ("requests", "requests"),
            ("C", ""),
            ("__future__", ""),
            ("someorg", "vendor.someorg"),
            ("someorg.net.http", "vendor.someorg.net.http"),
            ("someorganisation", "someorganisation"),
        ),
    )
    def test_clean_name(self, name, expected):
        with DependencyTree(vendored_namespaces={"someorg": "vendor"}) as tree:
            assert tree.clean_name(name) == expected

    def test_has_seen_import_registers_name(self):
        with DependencyTree() as tree:
            assert tree.has_seen_import("requests") is False
            assert tree.has_seen_import("requests") is True
            assert "requests" in tree.seen_imports

    def test_depth(self):
        root = _resolve(SimpleAppImporter(), resolve_internal=True)

        netlib = _child(root, "netlib")
        assert root.depth == 0
        assert netlib.depth == 1
        assert _child(netlib, "bytelib").depth == 2
        assert netlib.parent is root
        assert netlib.tree is root.tree

    def test_spawn_runs_inline_when_no_workers_are_free(self):
        with DependencyTree(max_workers=1) as tree:
            outer = tree.spawn(lambda: tree.spawn(lambda: "inner").result())

            assert outer.result() == "inner"


class TestOrdering:
    def _package(self, name, internal):
        with DependencyTree() as tree:
            package = Package(name=name, source_dir="/src", tree=tree)
        package.internal = internal
        return package

    def test_internal_packages_come_first_then_by_name(self):
        packages = [
            self._package("requests", internal=False),
            self._package("os", internal=True),
            self._package("attrs", internal=False),
            self._package("json", internal=True),
        ]

        ordered = sorted(packages, key=by_internal_and_name)

        assert [p.name for p in ordered] == ["json", "os", "attrs", "requests"]


class TestPackage:
    def test_str_and_repr(self):
        with DependencyTree() as tree:
            package = Package(name="requests", source_dir="/src", tree=tree)

        assert str(package) == "requests (unresolved)"
        package.resolved = True
        assert str(package) == "requests"
        assert repr(package) == "<Package: requests>"

    def test_add_child(self):
        importer = SimpleAppImporter()
        with DependencyTree() as tree:
            parent = Package(name="app", source_dir="/src", tree=tree)
            child = parent.add_child(importer, "fmtlib", "/src", is_test=True)

        assert parent.children == [child]
        assert child.parent is parent
        assert child.tree is tree
        assert child.is_test
        assert child.resolved
