import math
import numpy as np
import torch
from matplotlib.figure import Figure
from matplotlib.backends.backend_agg import FigureCanvasAgg
from mpl_toolkits.mplot3d.art3d import Poly3DCollection
from .surf import vertex_sample, face_normal, bounding_box


def light_direction(azimuth, elevation):
    """Unit vector pointing towards a light (angles in degrees)"""
    azimuth, elevation = math.radians(azimuth), math.radians(elevation)
    return [math.cos(elevation) * math.cos(azimuth),
            math.cos(elevation) * math.sin(azimuth),
            math.sin(elevation)]


def shade(colors, normals, lights, ambient=0.3):
    """Two-sided Lambertian shading of face colors

    Parameters
    ----------
    colors : (M, 3) tensor
        Face colors
    normals : (M, 3) tensor
        Unit face normals
    lights : (L, 3) tensor
        Unit vectors pointing towards each light
    ambient : float
        Fraction of the color that is not affected by lighting

    Returns
    -------
    colors : (M, 3) tensor

    """
    if len(lights) == 0:
        return colors
    lights = lights.to(normals)
    diffuse = (normals @ lights.T).abs_().sum(-1).clamp_(0, 1)
    return colors * (ambient + (1 - ambient) * diffuse).unsqueeze(-1)


class MatplotlibSession:
    """Render a morphing mesh in a matplotlib 3D axis

    The session holds a single figure whose surface is updated in place
    at each frame. Boundaries are removed and redrawn at each frame.
    """

    def __init__(self, view=(180., 0.), lights=((80., -10.), (-80., -10.)),
                 boundary_width=2, boundary_color='k', figsize=(6, 6),
                 dpi=100, background='white'):
        """
        Parameters
        ----------
        view : (float, float)
            Camera (azimuth, elevation) in degrees, in matplotlib's
            convention (azimuth measured from the +x axis).
        lights : sequence[(float, float)]
            (azimuth, elevation) of each light, relative to the camera.
        boundary_width : float
            Width of boundary lines
        boundary_color : color
            Color of boundary lines
        figsize : (float, float)
            Figure size, in inches
        dpi : int
            Figure resolution
        background : color
            Figure background
        """
        self.view = tuple(view)
        self.lights = [tuple(light) for light in lights]
        self.boundary_width = boundary_width
        self.boundary_color = boundary_color
        self.figure = Figure(figsize=figsize, dpi=dpi, facecolor=background)
        self.canvas = FigureCanvasAgg(self.figure)
        self.ax = self.figure.add_subplot(projection='3d')
        self.ax.set_axis_off()
        self.ax.view_init(elev=self.view[1], azim=self.view[0])
        self.surface = None
        self.boundaries = []

    def _light_vectors(self):
        azim, elev = self.view
        return torch.as_tensor([light_direction(azim + a, elev + e)
                                for a, e in self.lights],
                               dtype=torch.float64).reshape([-1, 3])

    def setup(self, *vertices, pad=0.02):
        """Freeze the axis limits on the bounding box of all keyframes"""
        lower, upper = bounding_box(*[torch.as_tensor(v) for v in vertices])
        center = ((lower + upper) / 2).tolist()
        radius = (upper - lower).max().item() * (0.5 + pad) or 1
        self.ax.set_xlim(center[0] - radius, center[0] + radius)
        self.ax.set_ylim(center[1] - radius, center[1] + radius)
        self.ax.set_zlim(center[2] - radius, center[2] + radius)
        self.ax.set_box_aspect([1, 1, 1])

    def draw(self, vertices, faces, colors, boundaries=()):
        """Update the surface and its boundaries

        Parameters
        ----------
        vertices : (N, 3) tensor
        faces : (M, 3) tensor[long]
        colors : (3*M, 3) tensor
            Color of each face corner
        boundaries : list[(P, 3) tensor]
        """
        vertices = torch.as_tensor(vertices).detach().cpu().double()
        faces = torch.as_tensor(faces).detach().cpu().long()
        colors = torch.as_tensor(colors).detach().cpu().double()

        # matplotlib only knows flat face colors
        fcolors = colors.reshape([-1, 3, 3]).mean(1)
        fcolors = shade(fcolors, face_normal(vertices, faces),
                        self._light_vectors())
        polys = vertex_sample(vertices, faces).numpy()
        fcolors = fcolors.clamp_(0, 1).numpy()

        if self.surface is None:
            self.surface = Poly3DCollection(polys, facecolors=fcolors,
                                            edgecolors='none', linewidths=0)
            self.ax.add_collection3d(self.surface)
        else:
            self.surface.set_verts(polys)
            self.surface.set_facecolor(fcolors)

        for line in self.boundaries:
            line.remove()
        self.boundaries = []
        for boundary in boundaries:
            boundary = torch.as_tensor(boundary).detach().cpu().numpy()
            line, = self.ax.plot(boundary[:, 0], boundary[:, 1],
                                 boundary[:, 2],
                                 color=self.boundary_color,
                                 linewidth=self.boundary_width)
            self.boundaries.append(line)

    def savefig(self, path):
        """Save the current frame as an image"""
        self.figure.savefig(path, facecolor=self.figure.get_facecolor())

    def snapshot(self):
        """Return the current frame as an (H, W, 3) uint8 array"""
        self.canvas.draw()
        rgba = np.asarray(self.canvas.buffer_rgba())
        return np.array(rgba[..., :3], dtype=np.uint8)

    def close(self):
        self.figure.clear()
        self.surface = None
        self.boundaries = []
