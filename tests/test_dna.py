import math
import random

import numpy as np
import pytest

from basil.branch import Branch
from basil.distribution import Distribution
from basil.dna import (
    GENE_NAMES,
    MAX_TREE,
    Empty,
    SetBase,
    apply_message,
    children,
    depth,
    describe,
    gene_name,
    gene_type,
    generate_mesh,
    instance_count,
    mutate_dna,
    new_dna,
    render_plant,
)
from basil.leaf import Leaf, LeafField, SetLeaf
from basil.mesh import Mesh

LEAF = Leaf(length=0.5, width=0.5, bend=0.1, bend_profile=2.0)


def _walk(dna):
    yield dna
    for child in children(dna):
        yield from _walk(child)


def _small_random_trees(count, limit=300):
    trees = []
    seed = 0
    while len(trees) < count:
        dna = new_dna(random.Random(seed))
        if instance_count(dna) <= limit:
            trees.append(dna)
        seed += 1
    return trees


def test_every_variant_is_constructed():
    names = {gene_name(new_dna(random.Random(seed))) for seed in range(100)}
    assert names == set(GENE_NAMES)


def test_new_dna_fields_in_ranges():
    for seed in range(100):
        for gene in _walk(new_dna(random.Random(seed))):
            if isinstance(gene, Leaf):
                assert 0.1 <= gene.length < 1.0
                assert 0.0 <= gene.bend < 0.5
            elif isinstance(gene, Branch):
                assert 0.1 <= gene.length < 2.0
                assert 0.05 <= gene.radius < 0.5
                assert 0.0 <= gene.taper < 1.0
            elif isinstance(gene, Distribution):
                assert gene.min_angle <= gene.max_angle
                assert 0.5 <= gene.amount < 5.0


def test_new_dna_is_deterministic():
    assert new_dna(random.Random(5)) == new_dna(random.Random(5))


@pytest.mark.parametrize("reroll", [True, False])
def test_zero_variance_mutation_is_identity(reroll):
    rng = random.Random(3)
    for dna in _small_random_trees(20):
        assert mutate_dna(dna, rng, 0.0, reroll=reroll) == dna


def test_mutation_without_reroll_keeps_shape():
    rng = random.Random(11)
    for dna in _small_random_trees(20):
        child = mutate_dna(dna, rng, 0.8, reroll=False)
        assert [gene_name(g) for g in _walk(child)] == [gene_name(g) for g in _walk(dna)]


def test_full_variance_rerolls_sometimes():
    rng = random.Random(2)
    results = [mutate_dna(LEAF, rng, 1.0) for _ in range(200)]
    assert any(not isinstance(r, Leaf) for r in results)
    assert any(isinstance(r, Leaf) for r in results)


def test_generated_indices_stay_in_range():
    for dna in _small_random_trees(25):
        mesh = render_plant(dna)
        assert len(mesh.indices) % 3 == 0
        if mesh.indices:
            assert max(mesh.indices) < len(mesh.vertices)


def test_empty_grows_nothing():
    mesh = render_plant(Empty())
    assert mesh.vertices == ()
    assert mesh.indices == ()
    assert mesh.radius == 0.5


def test_render_plant_solves_normals():
    mesh = render_plant(Branch(length=1.0, radius=0.2, bend=0.1, taper=0.3, end=Empty()))
    lengths = np.linalg.norm(mesh.normals(), axis=1)
    assert len(lengths) == 30
    assert np.all(np.abs(lengths - 1.0) < 1e-9)

    flat = render_plant(LEAF, calculate_normals=False)
    assert not np.any(flat.normals())


@pytest.mark.parametrize("dna, vertex_count", [
    (Leaf(length=0.5, width=0.5, bend=0.1, bend_profile=-500.0), 12),
    (Leaf(length=math.inf, width=math.inf, bend=math.inf, bend_profile=math.nan), 12),
    (Branch(length=1.0, radius=0.1, bend=math.inf, taper=0.0, end=LEAF), 42),
    (Branch(length=-math.inf, radius=math.inf, bend=0.2, taper=-math.inf, end=LEAF), 42),
    (Distribution(seed=3, amount=2.0, min_angle=math.inf, max_angle=math.inf, value=LEAF), 48),
    (Distribution(seed=3, amount=2.0, min_angle=-math.inf, max_angle=math.inf, value=LEAF), 48),
    (Distribution(seed=3, amount=1e200, min_angle=0.0, max_angle=0.5, value=LEAF), 0),
])
def test_out_of_range_genes_render_degenerate_geometry(dna, vertex_count):
    mesh = render_plant(dna)
    assert len(mesh.vertices) == vertex_count
    if mesh.indices:
        assert max(mesh.indices) < len(mesh.vertices)
    assert isinstance(mesh.radius, float)


def test_render_plant_limits_expanded_size():
    huge = Distribution(seed=3, amount=1e4, min_angle=0.0, max_angle=0.5, value=LEAF)
    assert instance_count(huge) > MAX_TREE

    mesh = render_plant(huge)
    assert mesh.vertices == ()
    assert mesh.indices == ()

    small = Distribution(seed=3, amount=3.0, min_angle=0.0, max_angle=0.5, value=LEAF)
    assert render_plant(small, max_instances=5).vertices == ()
    assert len(render_plant(small, max_instances=None).vertices) == 9 * 12


def test_gene_lookup_errors():
    assert gene_type("None") is Empty
    with pytest.raises(ValueError):
        gene_type("Flower")
    with pytest.raises(TypeError):
        gene_name(3.5)
    with pytest.raises(TypeError):
        mutate_dna("Leaf", random.Random(0), 0.1, reroll=False)
    with pytest.raises(TypeError):
        generate_mesh(None, Mesh(), (0, 0, 0), (0, 1, 0), (0, 1, 0))


def test_apply_message(rng):
    assert apply_message(LEAF, SetLeaf(LeafField.LENGTH, 0.9), rng).length == 0.9
    assert isinstance(apply_message(LEAF, SetBase("Distribution"), rng), Distribution)
    assert apply_message(LEAF, SetBase("None"), rng) == Empty()

    with pytest.raises(TypeError):
        apply_message(LEAF, "grow", rng)
    with pytest.raises(ValueError):
        apply_message(LEAF, SetBase("Flower"), rng)


def test_instance_count_and_depth():
    dna = Distribution(seed=1, amount=2.0, min_angle=0.0, max_angle=0.5,
                       value=Branch(length=1.0, radius=0.1, bend=0.0, taper=0.0, end=LEAF))
    assert instance_count(dna) == 9
    assert depth(dna) == 3
    assert instance_count(Empty()) == 1
    assert depth(LEAF) == 1


def test_describe_walks_the_tree():
    view = describe(Branch(length=1.0, radius=0.1, bend=0.0, taper=0.0, end=LEAF))
    assert view.name == "Branch"
    assert view.child_field == "end"
    assert [p.label for p in view.properties] == ["Length", "Radius", "Bend", "Taper"]
    assert view.child.name == "Leaf"
    assert view.child.child is None
    assert describe(Empty()).properties == []
