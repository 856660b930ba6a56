from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Property:
    """One editable numeric gene parameter, as shown on a slider."""
    label: str
    field: Enum
    minimum: float
    maximum: float
    value: float


def expect_gene(message, gene, gene_type):
    # a message for the wrong variant means the UI and the DNA tree disagree
    if not isinstance(gene, gene_type):
        raise TypeError(f"{type(message).__name__} cannot be applied to "
                        f"{type(gene).__name__}, expected {gene_type.__name__}")
    return gene
