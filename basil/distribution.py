"""Distribution gene: scatters copies of a child gene around a cone.

The scatter uses its own ``random.Random`` seeded from the gene, so the same
DNA always renders the same way no matter what else drew from the lineage's
random source in between.
"""

import math
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar, List

import numpy as np

from basil import dna
from basil.gene import Property, expect_gene
from basil.vector import gen_range, local_frame, normalize, vec3

HALF_PI = math.pi / 2
TAU = 2.0 * math.pi


class DistributionField(Enum):
    AMOUNT = "amount"
    MIN_ANGLE = "min_angle"
    MAX_ANGLE = "max_angle"


@dataclass(frozen=True)
class Distribution:
    NAME: ClassVar[str] = "Distribution"
    CHILD: ClassVar[str] = "value"

    seed: int
    amount: float     # square root of the instance count
    min_angle: float  # cone elevation bounds in radians, min <= max
    max_angle: float
    value: Any        # PlantDna placed at every instance

    @classmethod
    def new(cls, rng: random.Random) -> "Distribution":
        a = gen_range(rng, -HALF_PI, HALF_PI)
        b = gen_range(rng, -HALF_PI, HALF_PI)
        return cls(
            seed=rng.getrandbits(64),
            amount=gen_range(rng, 0.5, 5.0),
            min_angle=min(a, b),
            max_angle=max(a, b),
            value=dna.new_dna(rng),
        )

    def mutate(self, rng: random.Random, variance: float, reroll: bool = True) -> "Distribution":
        amount = self.amount + gen_range(rng, -0.5, 0.5) * variance
        min_angle = self.min_angle + gen_range(rng, -0.5, 0.5) * variance
        max_angle = self.max_angle + gen_range(rng, -0.5, 0.5) * variance
        value = dna.mutate_dna(self.value, rng, variance, reroll=reroll)

        if min_angle > max_angle:
            min_angle, max_angle = max_angle, min_angle

        return Distribution(seed=self.seed, amount=amount, min_angle=min_angle,
                            max_angle=max_angle, value=value)

    def properties(self) -> List[Property]:
        return [
            Property("Amount", DistributionField.AMOUNT, 0.5, 5.0, self.amount),
            Property("Min Angle", DistributionField.MIN_ANGLE, -HALF_PI, HALF_PI, self.min_angle),
            Property("Max Angle", DistributionField.MAX_ANGLE, -HALF_PI, HALF_PI, self.max_angle),
        ]

    def instance_count(self) -> int:
        # round half away from zero; the density is never negative
        density = self.amount * self.amount
        if not math.isfinite(density):
            return 0
        return int(math.floor(density + 0.5))

    def directions(self, direction, up) -> List[np.ndarray]:
        """Unit growth directions of every scattered instance."""
        direction = vec3(direction)
        right, local_up = local_frame(direction, vec3(up))
        rng = random.Random(self.seed)

        result = []
        for _ in range(self.instance_count()):
            azimuth = gen_range(rng, 0.0, TAU)
            if self.min_angle == self.max_angle:
                elevation = self.min_angle
            else:
                elevation = gen_range(rng, self.min_angle, self.max_angle)

            sin_e, cos_e = np.sin(elevation), np.cos(elevation)
            sin_a, cos_a = np.sin(azimuth), np.cos(azimuth)
            d = (direction * sin_e
                 + local_up * cos_a * cos_e
                 + right * sin_a * cos_e)
            result.append(normalize(d))
        return result

    def generate(self, mesh, start, direction, up):
        if self.amount == 0.0:
            return
        start, up = vec3(start), vec3(up)
        for d in self.directions(direction, up):
            dna.generate_mesh(self.value, mesh, start, d, up)


@dataclass(frozen=True)
class SetDistribution:
    field: DistributionField
    value: float

    def apply(self, gene, rng: random.Random) -> Distribution:
        distribution = expect_gene(self, gene, Distribution)
        x = float(self.value)
        if self.field is DistributionField.MIN_ANGLE:
            return replace(distribution, min_angle=x,
                           max_angle=max(distribution.max_angle, x))
        if self.field is DistributionField.MAX_ANGLE:
            return replace(distribution, max_angle=x,
                           min_angle=min(distribution.min_angle, x))
        return replace(distribution, amount=x)


@dataclass(frozen=True)
class ChangeValue:
    """Forward an edit to the distributed child gene."""
    message: Any

    def apply(self, gene, rng: random.Random) -> Distribution:
        distribution = expect_gene(self, gene, Distribution)
        return replace(distribution,
                       value=dna.apply_message(distribution.value, self.message, rng))
