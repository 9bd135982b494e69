from imgevolve.genome.dna import DNA
from imgevolve.genome.mutation import Mutation, MutationType
from imgevolve.genome.shape import Shape

__all__ = ["DNA", "Mutation", "MutationType", "Shape"]
