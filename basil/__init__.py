"""Basil: procedurally generated plants grown from evolvable DNA.

Import the DNA module FIRST; the gene modules refer back to it.
"""

from basil.dna import (
    GENE_NAMES,
    Empty,
    PlantDna,
    SetBase,
    apply_message,
    describe,
    generate_mesh,
    mutate_dna,
    new_dna,
    render_plant,
)
from basil.branch import Branch, BranchField, ChangeEnd, SetBranch
from basil.distribution import ChangeValue, Distribution, DistributionField, SetDistribution
from basil.leaf import Leaf, LeafField, SetLeaf
from basil.mesh import Mesh, SharedMesh, Vertex
from basil.texture import Pixel, Texture
