from imgevolve.plugins.base import Evaluator, Initializer, Mutator, Plugin
from imgevolve.plugins.evaluators import LumaEvaluator, RGBEvaluator
from imgevolve.plugins.initializers import RandomInitializer, SegmentedInitializer
from imgevolve.plugins.mutators import HardMutator, SoftMutator
from imgevolve.plugins.registry import PluginRegistry

__all__ = [
    "Evaluator",
    "HardMutator",
    "Initializer",
    "LumaEvaluator",
    "Mutator",
    "Plugin",
    "PluginRegistry",
    "RGBEvaluator",
    "RandomInitializer",
    "SegmentedInitializer",
    "SoftMutator",
]
