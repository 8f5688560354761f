"""
Visualization of diffusion results.

Plots the scalar flux of segment2 and quad4 meshes with matplotlib.
Quadrilaterals are split into two triangles along the 0-2 diagonal
for contouring.

Standard output: 300 DPI PNG images.
"""

import os

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for file output
import matplotlib.pyplot as plt
import matplotlib.tri as mtri


def quads_to_triangles(elements):
    """Split quad4 connectivity (N, 4) into triangles (2N, 3)."""
    elements = np.asarray(elements)
    first = elements[:, [0, 1, 2]]
    second = elements[:, [0, 2, 3]]
    return np.vstack([first, second])


def plot_flux(mesh, flux, ax=None, title=None, cmap='inferno'):
    """Plot a nodal flux field.

    Parameters
    ----------
    mesh : Mesh
        segment2 or quad4 mesh.
    flux : ndarray, shape (N_nodes,)
        Nodal flux values.
    ax : matplotlib.axes.Axes or None
        Axes to plot on. If None, a new figure is created.
    title : str or None
        Plot title.
    cmap : str
        Colormap for 2D plots.

    Returns
    -------
    fig : matplotlib.figure.Figure
    ax : matplotlib.axes.Axes

    Raises
    ------
    ValueError
        If the mesh is not 1D or 2D, or flux has the wrong length.
    """
    flux = np.asarray(flux, dtype=np.float64)
    if flux.shape != (mesh.n_nodes,):
        raise ValueError(
            f"flux shape {flux.shape} != ({mesh.n_nodes},)"
        )
    if mesh.element_type not in ('segment2', 'quad4'):
        raise ValueError(
            f"plot_flux supports 'segment2' and 'quad4' meshes, "
            f"got '{mesh.element_type}'"
        )

    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(8, 6))
    else:
        fig = ax.figure

    if mesh.element_type == 'segment2':
        x = mesh.nodes[:, 0]
        order = np.argsort(x)
        ax.plot(x[order], flux[order], 'b-', linewidth=1.5)
        ax.set_xlabel('x')
        ax.set_ylabel('flux [-]')
        ax.grid(True, alpha=0.3)
    else:
        triangulation = mtri.Triangulation(mesh.nodes[:, 0], mesh.nodes[:, 1],
                                           quads_to_triangles(mesh.elements))
        tcf = ax.tricontourf(triangulation, flux, levels=20, cmap=cmap)
        fig.colorbar(tcf, ax=ax, label='flux [-]')
        ax.set_xlabel('x')
        ax.set_ylabel('y')
        ax.set_aspect('equal')

    if title:
        ax.set_title(title)

    return fig, ax


def save_flux_plot(mesh, flux, filename, title=None):
    """Plot the flux and write it to filename (300 DPI PNG).

    Returns
    -------
    filename : str
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig, _ = plot_flux(mesh, flux, title=title)
    fig.savefig(filename, dpi=300, bbox_inches='tight')
    plt.close(fig)
    return filename
