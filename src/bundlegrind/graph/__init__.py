from .generator import ModuleGraphGenerator
from .identifiers import IdentifierAllocator
from .model import BINDING_MODES, Binding, BindingMode, ExportRef, Module, ModuleGraph
from .random_choice import RandomChoice
from .reachability import ReachabilityAnalyzer
from .resolver import ImportResolver

__all__ = [
    "ModuleGraphGenerator",
    "IdentifierAllocator",
    "BINDING_MODES",
    "Binding",
    "BindingMode",
    "ExportRef",
    "Module",
    "ModuleGraph",
    "RandomChoice",
    "ReachabilityAnalyzer",
    "ImportResolver",
]
