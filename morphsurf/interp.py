import torch
from .errors import InvalidArgument, DegenerateSegment


def point_on_line(coords0, coords1, dist, mode='ratio'):
    """Find points on the lines joining two sets of points

    The same routine is used for vertex coordinates, vertex data
    and colormaps (which are just (C, 3) arrays).

    Parameters
    ----------
    coords0 : (N, [D]) tensor
        Start points (or values)
    coords1 : (N, [D]) tensor
        End points (or values)
    dist : float or (N,) tensor
        Ratio or distance along each line.
        With ratios, 0 returns `coords0` and 1 returns `coords1`.
        Values outside of [0, 1] extrapolate.
    mode : {'ratio', 'distance'}, default='ratio'
        'ratio' : `dist` is a fraction of the segment length
        'distance' : `dist` is an absolute distance from `coords0`

    Returns
    -------
    coords : (N, [D]) tensor
        Interpolated points

    """
    coords0 = torch.as_tensor(coords0)
    coords1 = torch.as_tensor(coords1)
    if not coords0.is_floating_point():
        coords0 = coords0.to(torch.get_default_dtype())
    coords1 = coords1.to(coords0)
    if coords0.shape != coords1.shape:
        raise InvalidArgument(f'Start and end points must have the same '
                              f'shape but got {tuple(coords0.shape)} and '
                              f'{tuple(coords1.shape)}')

    t = torch.as_tensor(dist).to(coords0)
    if t.numel() != 1:
        t = t.flatten()
        if coords0.ndim == 0 or len(t) != len(coords0):
            raise InvalidArgument('dist must be a scalar or have one value '
                                  'per pair of points')
    else:
        t = t.reshape([])

    if mode == 'distance':
        d = coords1 - coords0
        if d.ndim > 1:
            d = d.square().sum(-1).sqrt()
        else:
            d = d.abs()
        if (d == 0).any():
            raise DegenerateSegment('Cannot move a distance along a segment '
                                    'of length zero')
        t = t / d
    elif mode != 'ratio':
        raise InvalidArgument(f'Unknown interpolation mode: {mode}')

    if t.ndim and coords0.ndim > 1:
        t = t.unsqueeze(-1)
    return (1 - t) * coords0 + t * coords1


def interpolation_ratios(nb_points, **backend):
    """Ratios of the points interpolated within one keyframe gap

    Parameters
    ----------
    nb_points : int
        Number of points, including both ends

    Returns
    -------
    ratios : (nb_points,) tensor
        Evenly spaced values from 0 to 1

    """
    backend.setdefault('dtype', torch.float64)
    return torch.linspace(0, 1, nb_points, **backend)
