"""Directed evolution: the user keeps picking among mutations of a plant."""

import logging
import random
from dataclasses import dataclass
from typing import List

from basil.dna import PlantDna, apply_message, gene_name, mutate_dna, new_dna, render_plant
from basil.mesh import SharedMesh

logger = logging.getLogger(__name__)


@dataclass
class EvolutionOptions:
    seed: int
    option_count: int        # mutated choices offered per generation
    variance: float          # mutation strength
    reroll: bool             # allow whole-subtree rerolls while mutating
    calculate_normals: bool  # solve normals when rendering


def default_options(seed=42069) -> EvolutionOptions:
    return EvolutionOptions(
        seed=seed,
        option_count=7,
        variance=0.2,
        reroll=True,
        calculate_normals=True,
    )


class Lineage:
    """One evolving plant: a current DNA and the mutations on offer.

    The lineage owns the random source; every construction, mutation and
    edit draws from it in call order.
    """

    def __init__(self, opt: EvolutionOptions = None, dna: PlantDna = None):
        self.opt = opt or default_options()
        self.rng = random.Random(self.opt.seed)
        self.current: PlantDna = dna if dna is not None else new_dna(self.rng)
        self.generation = 0
        self.choices: List[PlantDna] = self._mutations(self.current)

    def _mutations(self, dna: PlantDna) -> List[PlantDna]:
        return [mutate_dna(dna, self.rng, self.opt.variance, reroll=self.opt.reroll)
                for _ in range(self.opt.option_count)]

    def keep(self):
        """Reject every choice and draw new mutations of the current plant."""
        self.choices = self._mutations(self.current)

    def select(self, index: int) -> PlantDna:
        if not 0 <= index < len(self.choices):
            raise IndexError(f"choice {index} out of range for {len(self.choices)} choices")
        chosen = self.choices[index]
        self.choices = self._mutations(chosen)
        self.current = chosen
        self.generation += 1
        logger.info(f"Generation {self.generation}: selected choice {index} "
                    f"({gene_name(chosen)})")
        return chosen

    def edit(self, message) -> PlantDna:
        """Apply an editor message to the current plant."""
        self.current = apply_message(self.current, message, self.rng)
        self.choices = self._mutations(self.current)
        return self.current

    def render_current(self) -> SharedMesh:
        return render_plant(self.current, calculate_normals=self.opt.calculate_normals)

    def render_choices(self) -> List[SharedMesh]:
        return [render_plant(dna, calculate_normals=self.opt.calculate_normals)
                for dna in self.choices]
