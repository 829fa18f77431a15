from typing import TYPE_CHECKING

import missingdependencyxyz
import otherpackage

if TYPE_CHECKING:
    import decimal


def load():
    from . import __name__ as package_name

    return package_name
