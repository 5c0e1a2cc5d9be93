import matplotlib
import numpy as np
import torch
from .surf import vertex_sample
from .errors import InvalidArgument


BACKGROUND = (0.5, 0.5, 0.5)


def get_colormap(cmap='turbo', n=256, dtype=None):
    """Return a colormap as a table of RGB colors

    Parameters
    ----------
    cmap : str or (C, 3) tensor_like or (3,) tensor_like
        Name of a matplotlib colormap, or table of RGB values in [0, 1].
        A single RGB triplet is a colormap with one color.
    n : int, default=256
        Number of colors sampled from a named colormap

    Returns
    -------
    cmap : (C, 3) tensor
        RGB table

    """
    dtype = dtype or torch.get_default_dtype()
    if isinstance(cmap, str):
        try:
            cmap = matplotlib.colormaps[cmap]
        except KeyError:
            raise InvalidArgument(f'Unknown colormap: {cmap}')
        cmap = cmap(np.linspace(0, 1, n))[:, :3]
    cmap = torch.as_tensor(cmap, dtype=dtype)
    if cmap.ndim == 1:
        cmap = cmap[None]
    if cmap.ndim != 2 or cmap.shape[-1] != 3 or len(cmap) == 0:
        raise InvalidArgument(f'A colormap must have shape (C, 3) but got '
                              f'{tuple(cmap.shape)}')
    if cmap.min() < 0 or cmap.max() > 1:
        raise InvalidArgument('Colormap values must lie in [0, 1]')
    return cmap


def rgb2hsv(x):
    """Convert RGB colors to HSV

    Parameters
    ----------
    x : (..., 3) tensor
        RGB values in [0, 1]

    Returns
    -------
    x : (..., 3) tensor
        Hue in [0, 360), saturation and value in [0, 1]

    """
    R, G, B = x[..., :3].unbind(-1)
    V, iV = x[..., :3].max(-1)
    v, _ = x[..., :3].min(-1)
    C = V - v
    H = torch.where(iV == 0, ((G-B)/C) % 6,
        torch.where(iV == 1, ((B-R)/C) + 2,
                             ((R-G)/C) + 4))
    H = H * 60
    S = torch.where(V == 0, x.new_zeros([]), C/V)
    H[~torch.isfinite(H)] = 0
    S[~torch.isfinite(S)] = 0
    return torch.stack([H, S, V], -1)


def hsv2rgb(x):
    """Convert HSV colors to RGB

    Parameters
    ----------
    x : (..., 3) tensor
        Hue in degrees, saturation and value in [0, 1]

    Returns
    -------
    x : (..., 3) tensor
        RGB values in [0, 1]

    """
    H, S, V = x[..., :3].unbind(-1)
    H = (H / 60) % 6
    C = V * S
    X = C * (1 - (H % 2 - 1).abs())
    Z = x.new_zeros([])
    R = torch.where((H < 1), C,
        torch.where((H < 2), X,
        torch.where((H < 4), Z,
        torch.where((H < 5), X,
                             C))))
    G = torch.where((H < 1), X,
        torch.where((H < 3), C,
        torch.where((H < 4), X,
                             Z)))
    B = torch.where((H < 2), Z,
        torch.where((H < 3), X,
        torch.where((H < 5), C,
                             X)))
    RGB = torch.stack([R, G, B], -1)
    RGB += (V * (1 - S)).unsqueeze(-1)
    return RGB.clamp_(0, 1)


def data_limits(*data):
    """Range of the data, ignoring NaNs (NaN bounds are replaced by 0)"""
    data = torch.cat([torch.as_tensor(d).flatten().double() for d in data])
    data = data[~torch.isnan(data)]
    if len(data) == 0:
        return 0.0, 0.0
    return data.min().item(), data.max().item()


def parcel_data(data, parc):
    """Expand per-parcel values to per-vertex values

    Parameters
    ----------
    data : (P,) tensor
        One value per parcel id 1..P
    parc : (N,) tensor[integer]
        Parcel id of each vertex (0 = no parcel)

    Returns
    -------
    data : (N,) tensor
        Vertices without a parcel receive NaN

    """
    parc = parc.long()
    if len(parc) and (parc.min() < 0 or parc.max() > len(data)):
        raise InvalidArgument(f'Per-parcel data has {len(data)} values but '
                              f'parcel ids go up to {parc.max().item()}')
    data = torch.cat([data.new_full([1], float('nan')), data])
    return data[parc]


def vertex_colors(data, parc, cmap, climits, background=BACKGROUND):
    """Map vertex data to colors

    Parameters
    ----------
    data : (N,) or (P,) tensor
        Data at each vertex, or in each parcel.
        NaNs are shown in the background color.
    parc : (N,) tensor[integer]
        Parcel id of each vertex
    cmap : (C, 3) tensor
        Colormap
    climits : (float, float)
        Values mapped to the first and last color of the colormap
    background : (3,) sequence[float]
        Color of vertices without data

    Returns
    -------
    colors : (N, 3) tensor

    """
    parc = torch.as_tensor(parc)
    cmap = torch.as_tensor(cmap)
    data = torch.as_tensor(data).to(cmap)
    if len(data) != len(parc):
        data = parcel_data(data, parc)
    background = torch.as_tensor(background).to(cmap)

    colors = background.expand([len(data), 3]).clone()
    nodata = torch.isnan(data)
    if nodata.all():
        return colors
    if len(parc.unique()) == 1 and (data[~nodata] == 0).all():
        # nothing to show
        return colors

    lo, hi = climits
    C = len(cmap)
    if hi == lo:
        index = torch.zeros(len(data), dtype=torch.long, device=data.device)
    else:
        index = (data - lo) / (hi - lo) * (C - 1)
        index = index.round().nan_to_num_(0).clamp_(0, C - 1).long()
    colors[~nodata] = cmap[index[~nodata]]
    return colors


def face_vertex_colors(data, parc, faces, cmap, climits,
                       background=BACKGROUND):
    """Map vertex data to the colors of each face corner

    Parameters
    ----------
    data : (N,) or (P,) tensor
    parc : (N,) tensor[integer]
    faces : (M, 3) tensor[long]
    cmap : (C, 3) tensor
    climits : (float, float)
    background : (3,) sequence[float]

    Returns
    -------
    colors : (3*M, 3) tensor
        Colors of the corners of each face (face-major)

    """
    colors = vertex_colors(data, parc, cmap, climits, background)
    return vertex_sample(colors, faces).reshape([-1, 3])


def color_list2str(color):
    """
    Convert a valued-color (`[255, 255, 255]`) into a rgb- or rgba- string
    (`rgb(255,255,255)`).

    Parameters
    ----------
    color : list[float | int]
        A color represented by a list if values between 0 and 255:
        `[255, 255, 255]`

    Returns
    -------
    color: str
        A color represented by a string:
        `"rgb(255,255,255)"` or `"rgb(255,255,255,1)"`
    """
    if len(color) == 3:
        color = [str(min(255, max(0, int(round(x))))) for x in color]
        return f'rgb({",".join(color)})'
    elif len(color) == 4:
        alpha = str(color[-1])
        color = [str(min(255, max(0, int(round(x))))) for x in color[:-1]]
        color += [alpha]
        return f'rgba({",".join(color)})'
    else:
        raise ValueError('Color should have 3 or 4 numbers')
