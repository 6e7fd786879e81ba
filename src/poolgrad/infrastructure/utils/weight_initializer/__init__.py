"""
Weight initialization public API.

Importing this package registers every built-in initializer (Kaiming,
Xavier, constants) into the `WeightInitializer` registry via import side
effects, so they can be looked up by name.
"""

from ._kaiming import *
from ._xavier import *
from ._constants import *
from ._base import WeightInitializer

__all__ = [
    WeightInitializer.__name__,
]
