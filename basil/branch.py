"""Branch gene: a tapered, curving tube that continues into another gene."""

import math
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar, List

from basil import dna
from basil.gene import Property, expect_gene
from basil.vector import gen_range, lerp, local_frame, rotate_about, vec3

BRANCH_STEPS = 5   # ring-to-ring segments, giving BRANCH_STEPS + 1 rings
BRANCH_RADIAL = 5  # points around each ring


class BranchField(Enum):
    LENGTH = "length"
    RADIUS = "radius"
    BEND = "bend"
    TAPER = "taper"


@dataclass(frozen=True)
class Branch:
    NAME: ClassVar[str] = "Branch"
    CHILD: ClassVar[str] = "end"

    length: float
    radius: float
    bend: float   # total curvature as a fraction of pi
    taper: float  # narrowing at the tip, 0 keeps a cylinder
    end: Any      # PlantDna grown from the tip

    @classmethod
    def new(cls, rng: random.Random) -> "Branch":
        return cls(
            length=gen_range(rng, 0.1, 2.0),
            radius=gen_range(rng, 0.05, 0.5),
            bend=gen_range(rng, 0.0, 0.75),
            taper=gen_range(rng, 0.0, 1.0),
            end=dna.new_dna(rng),
        )

    def mutate(self, rng: random.Random, variance: float, reroll: bool = True) -> "Branch":
        length = self.length + gen_range(rng, -0.5, 0.5) * variance
        radius = self.radius + gen_range(rng, -0.1, 0.1) * variance
        bend = self.bend + gen_range(rng, -0.25, 0.25) * variance
        taper = self.taper + gen_range(rng, -0.25, 0.25) * variance
        return Branch(length=length, radius=radius, bend=bend, taper=taper,
                      end=dna.mutate_dna(self.end, rng, variance, reroll=reroll))

    def properties(self) -> List[Property]:
        return [
            Property("Length", BranchField.LENGTH, 0.1, 2.0, self.length),
            Property("Radius", BranchField.RADIUS, 0.05, 0.5, self.radius),
            Property("Bend", BranchField.BEND, 0.0, 0.75, self.bend),
            Property("Taper", BranchField.TAPER, 0.0, 1.0, self.taper),
        ]

    def generate(self, mesh, start, direction, up):
        world_up = vec3(up)
        center = vec3(start)
        direction = vec3(direction)
        right, local_up = local_frame(direction, world_up)

        step_length = self.length / BRANCH_STEPS
        step_angle = self.bend * math.pi / BRANCH_STEPS
        tip_radius = self.radius * (1.0 - self.taper)

        previous = None
        for i in range(BRANCH_STEPS + 1):
            r = lerp(self.radius, tip_radius, i / BRANCH_STEPS)

            ring = mesh.push_vertex(center + right * r)
            for j in range(1, BRANCH_RADIAL):
                theta = 2.0 * math.pi * j / BRANCH_RADIAL
                mesh.push_vertex(center + right * math.cos(theta) * r
                                 + local_up * math.sin(theta) * r)

            if previous is not None:
                # create faces connecting the two rings (tube sides)
                for j in range(BRANCH_RADIAL):
                    i1 = previous + j
                    i2 = previous + (j + 1) % BRANCH_RADIAL
                    i3 = ring + j
                    i4 = ring + (j + 1) % BRANCH_RADIAL
                    mesh.push_triangle(i1, i3, i2)
                    mesh.push_triangle(i2, i3, i4)
            previous = ring

            if i == BRANCH_STEPS:
                break

            # advance, then curl the frame around the right axis
            center = center + direction * step_length
            direction = rotate_about(direction, right, step_angle)
            local_up = rotate_about(local_up, right, step_angle)

        dna.generate_mesh(self.end, mesh, center, direction, world_up)


@dataclass(frozen=True)
class SetBranch:
    field: BranchField
    value: float

    def apply(self, gene, rng: random.Random) -> Branch:
        branch = expect_gene(self, gene, Branch)
        return replace(branch, **{self.field.value: float(self.value)})


@dataclass(frozen=True)
class ChangeEnd:
    """Forward an edit to the gene growing from the branch tip."""
    message: Any

    def apply(self, gene, rng: random.Random) -> Branch:
        branch = expect_gene(self, gene, Branch)
        return replace(branch, end=dna.apply_message(branch.end, self.message, rng))
