"""Leaf gene: a flat drooping ribbon at the end of a growth path."""

import math
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import ClassVar, List

import numpy as np

from basil.gene import Property, expect_gene
from basil.vector import gen_range, local_frame, vec3

LEAF_STEPS = 5  # segments along the leaf, giving LEAF_STEPS + 1 cross-sections


class LeafField(Enum):
    LENGTH = "length"
    WIDTH = "width"
    BEND = "bend"
    BEND_PROFILE = "bend_profile"


@dataclass(frozen=True)
class Leaf:
    NAME: ClassVar[str] = "Leaf"

    length: float
    width: float
    bend: float          # droop at the tip
    bend_profile: float  # exponent of the droop curve

    @classmethod
    def new(cls, rng: random.Random) -> "Leaf":
        return cls(
            length=gen_range(rng, 0.1, 1.0),
            width=gen_range(rng, 0.1, 1.0),
            bend=gen_range(rng, 0.0, 0.5),
            bend_profile=gen_range(rng, 0.5, 5.0),
        )

    def mutate(self, rng: random.Random, variance: float) -> "Leaf":
        return replace(
            self,
            length=self.length + gen_range(rng, -0.5, 0.5) * variance,
            width=self.width + gen_range(rng, -0.5, 0.5) * variance,
            bend=self.bend + gen_range(rng, -0.25, 0.25) * variance,
            bend_profile=self.bend_profile + gen_range(rng, -0.25, 0.25) * variance,
        )

    def properties(self) -> List[Property]:
        return [
            Property("Length", LeafField.LENGTH, 0.1, 1.0, self.length),
            Property("Width", LeafField.WIDTH, 0.1, 1.0, self.width),
            Property("Bend", LeafField.BEND, 0.0, 0.5, self.bend),
            Property("Bend Factor", LeafField.BEND_PROFILE, 0.5, 5.0, self.bend_profile),
        ]

    def generate(self, mesh, start, direction, up):
        start, direction = vec3(start), vec3(direction)
        right, local_up = local_frame(direction, vec3(up))

        for i in range(LEAF_STEPS + 1):
            x = i / LEAF_STEPS

            # the base never droops, even for a non-positive profile
            droop = np.power(x, self.bend_profile) * self.bend if x > 0.0 else 0.0
            half_width = math.sin(x * math.pi) * self.width / 4.0

            spine = start + direction * x * self.length - local_up * droop
            a = mesh.push_vertex(spine + right * half_width)
            b = mesh.push_vertex(spine - right * half_width)

            if i > 0:
                # previous cross-section is (a - 2, b - 2)
                mesh.push_triangle(b, a, b - 2)
                mesh.push_triangle(a, a - 2, b - 2)


@dataclass(frozen=True)
class SetLeaf:
    field: LeafField
    value: float

    def apply(self, gene, rng: random.Random) -> Leaf:
        leaf = expect_gene(self, gene, Leaf)
        return replace(leaf, **{self.field.value: float(self.value)})
