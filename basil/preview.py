import numpy as np
from matplotlib import pyplot as plt
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from basil.texture import Texture

LIGHT = np.array([0.3, 1.0, 0.5]) / np.linalg.norm([0.3, 1.0, 0.5])


def plot_mesh(mesh, texture: Texture = None, title=None, output=None):
    """Plot a plant mesh in the texture's flat color.

    Faces are shaded by their vertex normals when those have been solved.
    Saves to ``output`` if given, otherwise opens a window.
    """
    texture = texture or Texture.white()
    fig = plt.figure(figsize=(8, 10))
    ax = fig.add_subplot(111, projection='3d')

    vertices = mesh.positions()
    faces = mesh.triangles()

    if len(faces):
        # y is up in the plant, z is up in matplotlib
        triangles = vertices[faces][:, :, [0, 2, 1]]
        base = np.array(texture.base_color().as_float())

        normals = mesh.normals()
        if np.any(normals):
            face_normals = normals[faces].mean(axis=1)
            shade = 0.35 + 0.65 * np.clip(face_normals @ LIGHT, 0.0, 1.0)
        else:
            shade = np.ones(len(faces))
        colors = np.empty((len(faces), 4))
        colors[:, :3] = base[:3] * shade[:, None]
        colors[:, 3] = base[3]

        collection = Poly3DCollection(triangles, edgecolor='black', linewidth=0.1)
        collection.set_facecolors(colors)
        ax.add_collection3d(collection)

    # degenerate DNA can push vertices to infinity; keep the axes usable
    r = mesh.radius if np.isfinite(mesh.radius) else 1.0
    r = max(r, 1e-3)
    ys = vertices[:, 1][np.isfinite(vertices[:, 1])] if len(vertices) else np.zeros(0)
    bottom = min(0.0, float(ys.min())) if len(ys) else 0.0
    top = mesh.height if np.isfinite(mesh.height) else bottom + 1.0
    top = max(top, bottom + 1e-3)
    ax.set_xlim(-r, r)
    ax.set_ylim(-r, r)
    ax.set_zlim(bottom, top)

    ax.set_box_aspect([1, 1, (top - bottom) / (2 * r)])
    ax.set_xlabel('X'); ax.set_ylabel('Z'); ax.set_zlabel('Y')
    ax.view_init(elev=15, azim=45)
    plt.title(title or f'Plant ({len(vertices)} vertices, {len(faces)} faces)')
    plt.tight_layout()

    if output is not None:
        fig.savefig(output)
        plt.close(fig)
    else:
        plt.show()
    return fig
