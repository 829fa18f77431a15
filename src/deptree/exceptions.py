from typing import Optional


class DeptreeException(Exception):
    """
    Base exception for all custom Deptree exceptions to inherit.
    """


class ImportFailure(DeptreeException):
    """
    Indicates that an importer could not resolve an import name from a source directory.

    This is recorded on the package being resolved rather than propagated: the package is
    marked as unresolved and resolution of that branch of the tree stops.
    """

    def __init__(self, name: str, source_dir: str) -> None:
        """
        Args:
            name: The import name that could not be resolved.
            source_dir: The directory it was resolved relative to.
        """
        self.name = name
        self.source_dir = source_dir

    def __str__(self):
        return f"Could not import '{self.name}' from {self.source_dir or '<no directory>'}."


class SourceSyntaxError(ImportFailure):
    """
    Indicates a syntax error in code that was being statically analysed.
    """

    def __init__(
        self, name: str, source_dir: str, filename: str, lineno: Optional[int], text: Optional[str]
    ) -> None:
        """
        Args:
            name: The import name being resolved.
            source_dir: The directory it was resolved relative to.
            filename: The file which contained the error.
            lineno: The line number containing the error.
            text: The text containing the error.
        """
        super().__init__(name, source_dir)
        self.filename = filename
        self.lineno = lineno
        self.text = text

    def __str__(self):
        lineno = self.lineno or "?"
        text = self.text or "<unavailable>"
        return f"Syntax error in {self.filename}, line {lineno}: {text}"

    def __eq__(self, other):
        return (self.filename, self.lineno, self.text) == (
            other.filename,
            other.lineno,
            other.text,
        )


class UnreadableSource(ImportFailure):
    """
    Indicates that a source file being statically analysed could not be read.
    """

    def __init__(self, name: str, source_dir: str, filename: str) -> None:
        super().__init__(name, source_dir)
        self.filename = filename

    def __str__(self):
        return f"Could not read {self.filename}."


class RootPackageNotResolved(DeptreeException):
    """
    Indicates that the entry package of a dependency tree could not be resolved.
    """
