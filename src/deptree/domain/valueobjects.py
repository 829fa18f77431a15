from dataclasses import dataclass


@dataclass(frozen=True)
class Module:
    """
    A Python module.
    """

    # The fully qualified name of a Python module, e.g. 'package.foo.bar'.
    name: str

    def __str__(self) -> str:
        return self.name

    @property
    def package_name(self) -> str:
        return self.name.split(".")[0]

    @property
    def is_top_level(self) -> bool:
        return "." not in self.name
