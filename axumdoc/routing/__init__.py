"""Router composition classification and module file resolution."""

from .calls import CompositionCall, classify
from .modules import ModuleLocator

__all__ = ["CompositionCall", "ModuleLocator", "classify"]
