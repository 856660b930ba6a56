import math

import numpy as np
import pytest

from basil.branch import BRANCH_RADIAL, BRANCH_STEPS, Branch, BranchField, ChangeEnd, SetBranch
from basil.dna import Empty
from basil.leaf import Leaf, LeafField, SetLeaf
from basil.mesh import Mesh

START = (0.0, 0.0, 0.0)
FORWARD = (0.0, 1.0, 0.0)
UP = (0.0, 0.0, 1.0)


def _branch(**kwargs):
    values = dict(length=1.0, radius=1.0, bend=0.0, taper=0.0, end=Empty())
    values.update(kwargs)
    return Branch(**values)


def _generate(branch, up=UP):
    mesh = Mesh()
    branch.generate(mesh, START, FORWARD, up)
    return mesh


def test_straight_branch_rings():
    mesh = _generate(_branch())

    assert len(mesh.vertices) == 30
    assert len(mesh.indices) == 150
    assert max(mesh.indices) < 30

    p = mesh.positions()
    for i in range(BRANCH_STEPS + 1):
        ring = p[i * BRANCH_RADIAL:(i + 1) * BRANCH_RADIAL]
        np.testing.assert_allclose(ring[:, 1], i * 0.2, atol=1e-12)
        np.testing.assert_allclose(np.hypot(ring[:, 0], ring[:, 2]), 1.0)


def test_taper_narrows_to_tip():
    mesh = _generate(_branch(radius=0.4, taper=0.5))
    p = mesh.positions()
    base = np.hypot(p[:BRANCH_RADIAL, 0], p[:BRANCH_RADIAL, 2])
    tip = np.hypot(p[-BRANCH_RADIAL:, 0], p[-BRANCH_RADIAL:, 2])
    np.testing.assert_allclose(base, 0.4)
    np.testing.assert_allclose(tip, 0.2)


def test_bent_branch_passes_tip_to_child():
    leaf = Leaf(length=0.5, width=0.5, bend=0.0, bend_profile=1.0)
    mesh = _generate(_branch(bend=0.25, end=leaf))

    assert len(mesh.vertices) == 30 + 12

    step = 1.0 / BRANCH_STEPS
    theta = 0.25 * math.pi / BRANCH_STEPS
    tip = sum(step * np.array([0.0, math.cos(k * theta), -math.sin(k * theta)])
              for k in range(BRANCH_STEPS))
    # the leaf base sits on the spine at the branch tip
    np.testing.assert_allclose(mesh.positions()[30], tip, atol=1e-12)


def test_branch_along_world_up_stays_finite():
    mesh = _generate(_branch(bend=0.5), up=(0.0, 1.0, 0.0))
    assert np.all(np.isfinite(mesh.positions()))


def test_mutate_keeps_structure_without_reroll(rng):
    branch = _branch(end=Leaf(length=0.5, width=0.5, bend=0.1, bend_profile=2.0))
    child = branch.mutate(rng, 0.3, reroll=False)
    assert isinstance(child.end, Leaf)
    assert abs(child.radius - branch.radius) <= 0.03
    assert branch.mutate(rng, 0.0) == branch


def test_set_branch_and_change_end(rng):
    branch = _branch(end=Leaf(length=0.5, width=0.5, bend=0.1, bend_profile=2.0))

    assert SetBranch(BranchField.TAPER, 0.8).apply(branch, rng).taper == 0.8
    edited = ChangeEnd(SetLeaf(LeafField.WIDTH, 0.9)).apply(branch, rng)
    assert edited.end.width == 0.9
    assert edited.length == branch.length


def test_change_end_on_wrong_variant(rng):
    with pytest.raises(TypeError):
        ChangeEnd(SetLeaf(LeafField.WIDTH, 0.9)).apply(_branch(), rng)
    with pytest.raises(TypeError):
        SetBranch(BranchField.LENGTH, 1.0).apply(Empty(), rng)
