"""Click CLI commands for Basil."""

import logging
import random

import click

from basil.dna import (LARGE_TREE, MAX_TREE, depth, gene_name, instance_count, new_dna,
                       render_plant)
from basil.evolution import Lineage, default_options
from basil.serialize import load_dna, save_dna, save_mesh
from basil.texture import Pixel, Texture

logger = logging.getLogger(__name__)

PLANT_GREEN = Pixel.rgb(86, 148, 70)


def _load(path):
    try:
        return load_dna(path)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Could not read DNA from {path}: {e}")


def _render(dna, calculate_normals=True):
    count = instance_count(dna)
    if count > MAX_TREE:
        raise click.ClickException(f"{gene_name(dna)} DNA expands to {count} genes, "
                                   f"more than the {MAX_TREE} that can be meshed")
    return render_plant(dna, calculate_normals=calculate_normals)


def _summary(dna) -> str:
    count = instance_count(dna)
    head = f"{gene_name(dna):<12} depth={depth(dna)} genes={count}"
    if count > LARGE_TREE:
        return f"{head} (too large to mesh)"
    mesh = render_plant(dna, calculate_normals=False)
    return (f"{head} "
            f"vertices={len(mesh.vertices)} height={mesh.height:.2f} "
            f"radius={mesh.radius:.2f}")


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """Basil CLI for growing and evolving procedural plants."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")


@cli.command(name='random')
@click.option('--seed', '-s', type=int, default=None, help='Random seed (default: random)')
@click.option('--output', '-o', default='plant.json', help='Output DNA JSON path')
def random_dna(seed, output: str):
    """Create a random plant DNA."""
    rng = random.Random(seed)
    dna = new_dna(rng)
    save_dna(dna, output)
    click.echo(_summary(dna))
    click.echo(f"Saved DNA to {output}")


@cli.command()
@click.argument('dna_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', default='plant.obj', help='Output mesh (obj, ply, glb, stl)')
@click.option('--normals/--no-normals', default=True, help='Solve vertex normals')
def mesh(dna_path: str, output: str, normals: bool):
    """Generate a plant mesh from DNA and export it."""
    dna = _load(dna_path)
    shared = _render(dna, calculate_normals=normals)
    if not shared.indices:
        raise click.ClickException(f"{gene_name(dna)} DNA grows no geometry")
    try:
        save_mesh(shared, output, texture=Texture.solid(PLANT_GREEN))
    except Exception as e:
        logger.error(f"Error exporting mesh: {e}")
        raise click.ClickException(str(e))
    click.echo(f"Wrote {len(shared.vertices)} vertices, "
               f"{len(shared.indices) // 3} faces to {output}")


@cli.command()
@click.argument('dna_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', default=None, help='Save the preview image instead of showing it')
def preview(dna_path: str, output):
    """Plot a plant with matplotlib."""
    from basil.preview import plot_mesh

    dna = _load(dna_path)
    plot_mesh(_render(dna), texture=Texture.solid(PLANT_GREEN),
              title=f"{gene_name(dna)} plant", output=output)
    if output:
        click.echo(f"Saved preview to {output}")


@cli.command()
@click.option('--seed', '-s', type=int, default=42069, help='Lineage random seed')
@click.option('--variance', type=float, default=0.2, help='Mutation strength')
@click.option('--options', '-k', 'option_count', type=click.IntRange(1, 32), default=7,
              help='Mutations offered per generation')
@click.option('--no-reroll', is_flag=True, help='Only perturb parameters, never reroll genes')
@click.option('--start', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Start from a saved DNA instead of a random one')
@click.option('--output', '-o', default='plant.json', help='Where to save the final DNA')
def evolve(seed: int, variance: float, option_count: int, no_reroll: bool, start, output: str):
    """Evolve a plant by repeatedly picking among mutations.

    Enter 0 to keep the current plant, 1..K to select a mutation, -1 to stop.
    """
    opt = default_options(seed=seed)
    opt.variance = variance
    opt.option_count = option_count
    opt.reroll = not no_reroll
    lineage = Lineage(opt, dna=_load(start) if start else None)

    while True:
        click.echo(f"\n{'='*50}")
        click.echo(f"Generation {lineage.generation}")
        click.echo(f"  [0] {_summary(lineage.current)}  (current)")
        for i, dna in enumerate(lineage.choices, start=1):
            click.echo(f"  [{i}] {_summary(dna)}")

        choice = click.prompt("Pick", type=click.IntRange(-1, len(lineage.choices)))
        if choice == -1:
            break
        if choice == 0:
            lineage.keep()
        else:
            lineage.select(choice - 1)

    save_dna(lineage.current, output)
    click.echo(f"Saved DNA to {output}")
