"""The plant DNA tree and dispatch over its gene variants.

A ``PlantDna`` value is one of ``Leaf``, ``Branch``, ``Distribution`` or
``Empty``. Composite genes own exactly one child DNA. All genes are frozen
dataclasses: mutation and edits build new trees rather than changing the old
one, and equality is structural.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Union

import numpy as np

from basil.mesh import Mesh, SharedMesh
from basil.vector import WORLD_UP, normalize

logger = logging.getLogger(__name__)

# Starting frame used when rendering a whole plant; tilted slightly off the
# world up so the first frame is never degenerate.
PREVIEW_DIRECTION = normalize(np.array([0.0, 1.0, -0.01]))
LARGE_TREE = 5000  # expanded gene instances before warning
MAX_TREE = 250_000  # expanded gene instances rendered at most


@dataclass(frozen=True)
class Empty:
    """Terminal gene that grows nothing."""
    NAME: ClassVar[str] = "None"

    @classmethod
    def new(cls, rng: random.Random) -> "Empty":
        return cls()

    def mutate(self, rng: random.Random, variance: float) -> "Empty":
        return self

    def properties(self) -> list:
        return []

    def generate(self, mesh, start, direction, up):
        pass


# Imported after Empty; the gene modules reach back into this module at call time.
from basil.branch import Branch, ChangeEnd, SetBranch  # noqa: E402
from basil.distribution import ChangeValue, Distribution, SetDistribution  # noqa: E402
from basil.leaf import Leaf, SetLeaf  # noqa: E402

PlantDna = Union[Leaf, Branch, Distribution, Empty]

GENE_TYPES = (Leaf, Branch, Distribution, Empty)
GENE_NAMES = tuple(t.NAME for t in GENE_TYPES)
_BY_NAME = {t.NAME: t for t in GENE_TYPES}


def gene_type(name: str):
    try:
        return _BY_NAME[name]
    except KeyError:
        raise ValueError(f"invalid gene type {name!r}, expected one of {GENE_NAMES}") from None


def gene_name(dna: PlantDna) -> str:
    if not isinstance(dna, GENE_TYPES):
        raise TypeError(f"not a plant gene: {type(dna).__name__}")
    return dna.NAME


def children(dna: PlantDna) -> List[PlantDna]:
    child = getattr(type(dna), "CHILD", None)
    return [getattr(dna, child)] if child else []


# ---------- Construction & mutation ----------

def new_dna(rng: random.Random) -> PlantDna:
    """Random gene of a uniformly chosen variant."""
    gene = GENE_TYPES[rng.randrange(len(GENE_TYPES))].new(rng)
    logger.debug(f"Constructed {gene.NAME} gene")
    return gene


def mutate_dna(dna: PlantDna, rng: random.Random, variance: float,
               reroll: bool = True) -> PlantDna:
    """Return a perturbed copy of ``dna``.

    With ``reroll`` the node is replaced by a brand new random gene with
    probability ``0.5 * variance``; otherwise (and for every node that was not
    replaced) each numeric field moves by an offset scaled by ``variance``.
    """
    if reroll and rng.random() < 0.5 * variance:
        gene = new_dna(rng)
        logger.debug(f"Rerolled {gene_name(dna)} gene into {gene.NAME}")
        return gene

    if isinstance(dna, (Branch, Distribution)):
        return dna.mutate(rng, variance, reroll=reroll)
    if isinstance(dna, (Leaf, Empty)):
        return dna.mutate(rng, variance)
    raise TypeError(f"not a plant gene: {type(dna).__name__}")


# ---------- Edit messages ----------

@dataclass(frozen=True)
class SetBase:
    """Replace a node by a fresh random gene of the named variant."""
    name: str

    def apply(self, gene, rng: random.Random) -> PlantDna:
        return gene_type(self.name).new(rng)


def apply_message(dna: PlantDna, message, rng: random.Random) -> PlantDna:
    """Apply one UI edit to ``dna`` and return the edited tree.

    Raises ``TypeError`` when the message targets a different variant than
    the node holds, and ``ValueError`` for an unknown variant name.
    """
    if not isinstance(message, (SetBase, SetLeaf, SetBranch, ChangeEnd,
                                SetDistribution, ChangeValue)):
        raise TypeError(f"invalid message: {message!r}")
    return message.apply(dna, rng)


# ---------- Mesh generation ----------

def generate_mesh(dna: PlantDna, mesh: Mesh, start, direction, up):
    """Append the surface of ``dna`` grown from ``start`` along ``direction``.

    ``up`` is the world up axis; it is passed unchanged to every child.
    """
    if not isinstance(dna, GENE_TYPES):
        raise TypeError(f"not a plant gene: {type(dna).__name__}")
    dna.generate(mesh, start, direction, up)


def render_plant(dna: PlantDna, calculate_normals: bool = True,
                 max_instances: Optional[int] = MAX_TREE) -> SharedMesh:
    """Generate the whole plant from the origin and freeze the mesh.

    Out-of-range gene values give NaN or infinite coordinates rather than
    errors. A plant expanding past ``max_instances`` genes is not generated
    and renders as an empty mesh; pass ``None`` to lift the limit.
    """
    mesh = Mesh()
    count = instance_count(dna)
    if max_instances is not None and count > max_instances:
        logger.warning(f"Plant expands to {count} genes, over the limit of "
                       f"{max_instances}; rendering nothing")
        return mesh.share()
    if count > LARGE_TREE:
        logger.warning(f"Plant expands to {count} genes, mesh will be large")

    with np.errstate(all="ignore"):
        generate_mesh(dna, mesh, np.zeros(3), PREVIEW_DIRECTION, WORLD_UP)
        if calculate_normals:
            mesh.calculate_normals()
    return mesh.share()


# ---------- Inspection ----------

def instance_count(dna: PlantDna) -> int:
    """Number of gene instances once every distribution is expanded."""
    if isinstance(dna, Branch):
        return 1 + instance_count(dna.end)
    if isinstance(dna, Distribution):
        return 1 + dna.instance_count() * instance_count(dna.value)
    return 1


def depth(dna: PlantDna) -> int:
    return 1 + max((depth(c) for c in children(dna)), default=0)


@dataclass(frozen=True)
class GeneView:
    """What an editor shows for one node: variant, sliders and child."""
    name: str
    properties: list = field(default_factory=list)
    child: Optional["GeneView"] = None
    child_field: Optional[str] = None


def describe(dna: PlantDna) -> GeneView:
    kids = children(dna)
    return GeneView(
        name=gene_name(dna),
        properties=dna.properties(),
        child=describe(kids[0]) if kids else None,
        child_field=getattr(type(dna), "CHILD", None),
    )
