import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple
import torch
from .interp import point_on_line, interpolation_ratios
from .colors import (
    get_colormap, rgb2hsv, hsv2rgb, data_limits, face_vertex_colors,
)
from .parcel import find_roi_boundaries
from .surf import check_faces
from .plot import MatplotlibSession
from .writers import PngSequenceWriter, GifWriter
from .errors import InvalidArgument

logger = logging.getLogger(__name__)


class Static:
    """A value shared by all keyframes"""

    varying = False

    def __init__(self, value):
        self.value = value

    def __len__(self):
        return 1

    def __getitem__(self, index):
        return self.value

    def map(self, fn):
        return Static(fn(self.value))


class TimeVarying:
    """One value per keyframe"""

    varying = True

    def __init__(self, values):
        self.values = list(values)

    def __len__(self):
        return len(self.values)

    def __getitem__(self, index):
        return self.values[index]

    def map(self, fn):
        return TimeVarying(map(fn, self.values))


def as_keyframed(value):
    """Wrap a value into `Static` or `TimeVarying`

    Lists and tuples of arrays (or of colormap names) are time-varying,
    anything else is static.
    """
    if isinstance(value, (Static, TimeVarying)):
        return value
    if isinstance(value, (list, tuple)) and value:
        if all(isinstance(v, str) or torch.as_tensor(v).ndim > 0
               for v in value):
            return TimeVarying(value)
    return Static(value)


def _as_count(name, value, minimum):
    try:
        ok = int(value) == value
    except (TypeError, ValueError, OverflowError):
        ok = False
    if not ok or value < minimum:
        raise InvalidArgument(f'{name} must be an integer >= {minimum} '
                              f'but got {value!r}')
    return int(value)


@dataclass
class MorphOptions:
    """Options of a morph animation

    Parameters
    ----------
    plot_boundary : bool
        Draw the boundaries between parcels
    boundary_width : float
        Width of boundary lines
    nb_interp : int
        Number of points per keyframe gap, including both keyframes
    vert_data : [list of] (N,) or (P,) tensor, optional
        Data used to color the vertices (NaN = no data).
        One value per vertex or per parcel. A list holds one array
        per keyframe. Default: no data.
    vert_parc : (N,) tensor[integer], optional
        Parcel id of each vertex. Default: a single parcel.
    colormap : [list of] str or (C, 3) tensor
        Colormap. A list holds one colormap per keyframe.
    view_angle : (float, float)
        Camera (azimuth, elevation), in matplotlib's convention
    camlights : sequence[(float, float)]
        (azimuth, elevation) of each light, relative to the camera
    climits : (float, float), optional
        Fixed color limits. Default: range of the data across keyframes.
    vary_climits : bool
        Use the range of the current data in each frame
        (overrides `climits`)
    cmap_interp : {'hsv', 'rgb'}
        Color space in which time-varying colormaps are interpolated
    freeze_first_frame : int
        Number of times the first frame is written
    freeze_last_frame : int
        Number of times the last frame is written
    save_last_frame : bool
        Write the last frame. Disable to make a seamless loop.
    outdir : str, optional
        Directory where PNG frames are written
    outgif : str, optional
        Path of an animated GIF
    gif_delay : float
        Time between two GIF frames, in seconds
    gif_loop : int
        Number of times the GIF loops (0 = forever)
    """
    plot_boundary: bool = True
    boundary_width: float = 2
    nb_interp: int = 30
    vert_data: object = None
    vert_parc: object = None
    colormap: object = 'turbo'
    view_angle: Tuple[float, float] = (180., 0.)
    camlights: Sequence[Tuple[float, float]] = ((80., -10.), (-80., -10.))
    climits: Optional[Tuple[float, float]] = None
    vary_climits: bool = False
    cmap_interp: str = 'hsv'
    freeze_first_frame: int = 1
    freeze_last_frame: int = 1
    save_last_frame: bool = True
    outdir: Optional[str] = None
    outgif: Optional[str] = None
    gif_delay: float = 1/30
    gif_loop: int = 0

    def __post_init__(self):
        if not self.boundary_width > 0:
            raise InvalidArgument('boundary_width must be positive')
        self.nb_interp = _as_count('nb_interp', self.nb_interp, 2)
        for name in ('freeze_first_frame', 'freeze_last_frame'):
            setattr(self, name, _as_count(name, getattr(self, name), 1))
        self.cmap_interp = self.cmap_interp.lower()
        if self.cmap_interp not in ('hsv', 'rgb'):
            raise InvalidArgument(f'cmap_interp must be "hsv" or "rgb" but '
                                  f'got "{self.cmap_interp}"')
        if len(self.view_angle) != 2:
            raise InvalidArgument('view_angle must be (azimuth, elevation)')
        if any(len(light) != 2 for light in self.camlights):
            raise InvalidArgument('each light must be (azimuth, elevation)')
        if self.climits is not None:
            if len(self.climits) != 2:
                raise InvalidArgument('climits must be (min, max)')
            self.climits = tuple(float(x) for x in self.climits)
        if not self.gif_delay > 0:
            raise InvalidArgument('gif_delay must be positive')


class Frame(NamedTuple):
    index: int
    vertices: torch.Tensor
    colors: torch.Tensor
    boundaries: list
    climits: Tuple[float, float]
    repeat: int


def _nan_to_zero(climits):
    return tuple(0. if x != x else x for x in climits)


class MorphAnimation:
    """Morph a surface through a sequence of keyframes

    Frames are produced in order:

    - the first keyframe, written `freeze_first_frame` times;
    - `nb_interp - 1` frames per keyframe gap, the last of which is
      the next keyframe;
    - the very last frame is written `freeze_last_frame` times, or
      never if `save_last_frame` is false.
    """

    def __init__(self, vertices, faces, options=None, **kwargs):
        """
        Parameters
        ----------
        vertices : list[(N, 3) tensor]
            Vertices of each keyframe
        faces : (M, 3) tensor[integer]
            Faces shared by all keyframes (0-based)
        options : MorphOptions, optional
        **kwargs
            Fields of `MorphOptions`, if `options` is not provided
        """
        if options is None:
            options = MorphOptions(**kwargs)
        elif kwargs:
            raise InvalidArgument('Use either options or keywords, not both')
        self.options = options

        if len(vertices) < 2:
            raise InvalidArgument('At least two keyframes are needed')
        self.vertices = [torch.as_tensor(v) for v in vertices]
        dtype = self.vertices[0].dtype
        if not dtype.is_floating_point:
            dtype = torch.get_default_dtype()
        self.vertices = [v.to(dtype) for v in self.vertices]
        nb_vertices = len(self.vertices[0])
        for k, v in enumerate(self.vertices):
            if v.shape != (nb_vertices, 3):
                raise InvalidArgument(f'Keyframe {k} has shape '
                                      f'{tuple(v.shape)} instead of '
                                      f'({nb_vertices}, 3)')
        self.faces = check_faces(faces, nb_vertices)
        self.nb_keyframes = len(self.vertices)

        self.parc = self._check_parc(options.vert_parc, nb_vertices)
        self.data = self._check_data(options.vert_data, nb_vertices, dtype)
        self.colormaps = self._check_colormaps(options.colormap, dtype)

        if options.climits is not None:
            self.climits = options.climits
        else:
            self.climits = data_limits(*self.data.values) \
                if self.data.varying else data_limits(self.data.value)
        self.climits = _nan_to_zero(self.climits)

        self.plot_boundary = (options.plot_boundary and
                              len(self.parc.unique()) > 1)

    @property
    def nb_frames(self):
        """Number of computed frames"""
        return 1 + (self.nb_keyframes - 1) * (self.options.nb_interp - 1)

    @property
    def nb_written_frames(self):
        """Number of written frames"""
        return sum(self._repeat(i) for i in range(self.nb_frames))

    def _check_parc(self, parc, n):
        if parc is None:
            return torch.ones([n], dtype=torch.long)
        parc = torch.as_tensor(parc)
        if parc.is_floating_point():
            if not torch.equal(parc, parc.round()):
                raise InvalidArgument('vert_parc must contain integers')
        parc = parc.long().flatten()
        if len(parc) != n:
            raise InvalidArgument(f'vert_parc has {len(parc)} values but '
                                  f'the surface has {n} vertices')
        return parc

    def _check_data(self, data, n, dtype):
        if data is None:
            return Static(torch.full([n], float('nan'), dtype=dtype))
        data = as_keyframed(data)
        if data.varying and len(data) != self.nb_keyframes:
            raise InvalidArgument(f'vert_data has {len(data)} keyframes '
                                  f'instead of {self.nb_keyframes}')
        nb_parcels = self.parc.max().item()

        def check(x):
            x = torch.as_tensor(x).to(dtype).flatten()
            if len(x) != n and len(x) != nb_parcels:
                raise InvalidArgument(f'vert_data must have one value per '
                                      f'vertex ({n}) or per parcel '
                                      f'({nb_parcels}) but has {len(x)}')
            return x

        data = data.map(check)
        if data.varying and len(set(map(len, data.values))) > 1:
            raise InvalidArgument('All keyframes of vert_data must have '
                                  'the same length')
        return data

    def _check_colormaps(self, cmap, dtype):
        if (isinstance(cmap, (list, tuple)) and cmap and
                not isinstance(cmap[0], str) and
                torch.as_tensor(cmap[0]).ndim < 2):
            # a single table of RGB rows
            cmap = Static(cmap)
        cmap = as_keyframed(cmap)
        if cmap.varying and len(cmap) != self.nb_keyframes:
            raise InvalidArgument(f'colormap has {len(cmap)} keyframes '
                                  f'instead of {self.nb_keyframes}')
        cmap = cmap.map(lambda x: get_colormap(x, dtype=dtype))
        if cmap.varying and len(set(map(len, cmap.values))) > 1:
            raise InvalidArgument('All colormaps must have the same length')
        return cmap

    def _repeat(self, index):
        options = self.options
        if index == self.nb_frames - 1:
            if not options.save_last_frame:
                return 0
            return options.freeze_last_frame
        if index == 0:
            return options.freeze_first_frame
        return 1

    def _frame(self, index, vertices, data, cmap):
        if self.options.vary_climits:
            climits = _nan_to_zero(data_limits(data))
        else:
            climits = self.climits
        colors = face_vertex_colors(data, self.parc, self.faces, cmap, climits)
        if self.plot_boundary:
            boundaries = find_roi_boundaries(vertices, self.faces, self.parc)
        else:
            boundaries = []
        return Frame(index, vertices, colors, boundaries, climits,
                     self._repeat(index))

    def frames(self):
        """Compute frames one at a time

        Yields
        ------
        frame : Frame
        """
        options = self.options
        data, cmaps = self.data, self.colormaps
        hsv = cmaps.varying and options.cmap_interp == 'hsv'
        if hsv:
            cmaps = cmaps.map(rgb2hsv)

        yield self._frame(0, self.vertices[0], data[0], self.colormaps[0])

        ratios = interpolation_ratios(options.nb_interp).tolist()
        index = 1
        for i in range(self.nb_keyframes - 1):
            for r in ratios[1:]:
                vertices = point_on_line(self.vertices[i],
                                         self.vertices[i+1], r)
                if data.varying:
                    current_data = point_on_line(data[i], data[i+1], r)
                else:
                    current_data = data[i]
                if cmaps.varying:
                    cmap = point_on_line(cmaps[i], cmaps[i+1], r)
                    if hsv:
                        cmap = hsv2rgb(cmap)
                else:
                    cmap = cmaps[i]
                yield self._frame(index, vertices, current_data, cmap)
                index += 1

    def writers(self):
        """Open the frame writers requested by the options"""
        options = self.options
        writers = []
        try:
            if options.outdir:
                writers.append(PngSequenceWriter(options.outdir))
            if options.outgif:
                writers.append(GifWriter(options.outgif, options.gif_delay,
                                         options.gif_loop))
        except Exception:
            for writer in writers:
                writer.close()
            raise
        return writers

    def session(self):
        """Create a rendering session with the options' view and lights"""
        return MatplotlibSession(view=self.options.view_angle,
                                 lights=self.options.camlights,
                                 boundary_width=self.options.boundary_width)

    def run(self, session=None):
        """Render and write all frames

        Parameters
        ----------
        session : MatplotlibSession, optional
            Rendering session. By default, a new session is created
            and closed at the end of the run.

        Returns
        -------
        nb_written : int
            Number of frames written to each output
        """
        owned = session is None
        if owned:
            session = self.session()
        logger.info('Morphing %d keyframes into %d frames',
                    self.nb_keyframes, self.nb_frames)
        nb_written = 0
        writers = []
        try:
            writers = self.writers()
            session.setup(*self.vertices)
            for frame in self.frames():
                logger.debug('Frame %d (written %d times)',
                             frame.index + 1, frame.repeat)
                session.draw(frame.vertices, self.faces, frame.colors,
                             frame.boundaries)
                for _ in range(frame.repeat):
                    for writer in writers:
                        writer.write(session)
                    nb_written += 1
        finally:
            try:
                for writer in writers:
                    writer.close()
            finally:
                if owned:
                    session.close()
        logger.info('Wrote %d frames', nb_written)
        return nb_written


def surf_morph_animation(vertices, faces, session=None, **options):
    """Animate a surface morphing through a sequence of keyframes

    Parameters
    ----------
    vertices : list[(N, 3) tensor]
        Vertices of each keyframe
    faces : (M, 3) tensor[integer]
        Faces shared by all keyframes (0-based)
    session : MatplotlibSession, optional
        Rendering session
    **options
        See `MorphOptions`

    Returns
    -------
    nb_written : int
        Number of frames written to each output

    """
    return MorphAnimation(vertices, faces, MorphOptions(**options)).run(session)
