"""Save and restore plant DNA and generated meshes.

DNA is stored as field-named records in the externally tagged shape::

    {"Branch": {"length": 1.2, "radius": 0.2, "bend": 0.1, "taper": 0.5,
                "end": {"Leaf": {...}}}}

with the empty gene written as the bare string ``"None"``.
"""

import json
import logging
import pathlib
from dataclasses import fields
from typing import Any, Union

from basil.dna import Empty, PlantDna, gene_name, gene_type
from basil.mesh import SharedMesh
from basil.texture import Texture

logger = logging.getLogger(__name__)

PathLike = Union[str, pathlib.Path]

SEED_LIMIT = 2 ** 64  # distribution seeds are 64 random bits


def dna_to_dict(dna: PlantDna) -> Any:
    name = gene_name(dna)
    if isinstance(dna, Empty):
        return name

    child = getattr(type(dna), "CHILD", None)
    record = {}
    for f in fields(dna):
        value = getattr(dna, f.name)
        record[f.name] = dna_to_dict(value) if f.name == child else value
    return {name: record}


def dna_from_dict(data: Any) -> PlantDna:
    if isinstance(data, str):
        cls = gene_type(data)
        if cls is not Empty:
            raise ValueError(f"gene {data!r} needs a field record")
        return Empty()

    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"expected a single-key gene record, got {data!r}")

    (name, record), = data.items()
    cls = gene_type(name)
    if cls is Empty:
        return Empty()
    if not isinstance(record, dict):
        raise ValueError(f"{name} record must be a mapping, got {record!r}")

    child = getattr(cls, "CHILD", None)
    kwargs = {}
    for f in fields(cls):
        if f.name not in record:
            raise ValueError(f"{name} record is missing {f.name!r}")
        value = record[f.name]
        if f.name == child:
            kwargs[f.name] = dna_from_dict(value)
            continue
        # bool is an int subclass; JSON true/false are not numbers here
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{name}.{f.name} must be a number, got {value!r}")
        if f.name == "seed":
            if not isinstance(value, int) or not 0 <= value < SEED_LIMIT:
                raise ValueError(f"{name}.seed must be an integer in [0, 2**64), "
                                 f"got {value!r}")
            kwargs[f.name] = value
        else:
            kwargs[f.name] = float(value)
    return cls(**kwargs)


def dna_to_json(dna: PlantDna, indent: int = 2) -> str:
    return json.dumps(dna_to_dict(dna), indent=indent)


def dna_from_json(text: str) -> PlantDna:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid DNA JSON: {e}") from e
    return dna_from_dict(data)


def save_dna(dna: PlantDna, path: PathLike) -> pathlib.Path:
    path = pathlib.Path(path)
    path.write_text(dna_to_json(dna))
    logger.info(f"Saved {gene_name(dna)} DNA to {path}")
    return path


def load_dna(path: PathLike) -> PlantDna:
    return dna_from_json(pathlib.Path(path).read_text())


def save_mesh(mesh: SharedMesh, path: PathLike, texture: Texture = None) -> pathlib.Path:
    """Export through trimesh; the format follows the file extension."""
    path = pathlib.Path(path)
    color = None
    if texture is not None:
        c = texture.base_color()
        color = (c.r, c.g, c.b, c.a)
    mesh.to_trimesh(color=color).export(str(path))
    logger.info(f"Exported {len(mesh.vertices)} vertices, "
                f"{len(mesh.indices) // 3} faces to {path}")
    return path
