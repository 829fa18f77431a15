import threading
from typing import Set


class StringSet:
    """
    A set of strings that is safe to share between threads.

    Usage:

        seen = StringSet()
        seen.add("requests")  # True: newly added.
        seen.add("requests")  # False: already present.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._set: Set[str] = set()

    def add(self, key: str) -> bool:
        """
        Add the key, returning whether it was newly added.
        """
        with self._lock:
            if key in self._set:
                return False
            self._set.add(key)
            return True

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._set

    def reset(self) -> None:
        with self._lock:
            self._set.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._set)

    def __repr__(self) -> str:
        with self._lock:
            keys = sorted(self._set)
        return f"<{self.__class__.__name__}: {', '.join(repr(k) for k in keys) or 'empty'}>"
