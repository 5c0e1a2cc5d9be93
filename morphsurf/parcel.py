from collections import defaultdict
import logging
import numpy as np
import torch
from scipy.cluster.vq import kmeans2, ClusterError
from .surf import mesh_edges, check_faces
from .linalg import relabel
from .errors import InvalidArgument

logger = logging.getLogger(__name__)


def parcellate_surface(vertices, n_clusters, ignore=None, seed=None,
                       max_iter=1000, replicates=5):
    """Parcellate a surface by k-means clustering of its vertices

    Parameters
    ----------
    vertices : (N, D) tensor
        Vertex coordinates (typically, of a spherical surface)
    n_clusters : int
        Number of parcels
    ignore : (N,) tensor[bool] or sequence[int], optional
        Mask or indices of vertices excluded from the clustering
    seed : int, optional
        Random seed (the first replicate uses `seed`, the next ones
        `seed+1`, ...)
    max_iter : int, default=1000
        Maximum number of k-means iterations. A run stops earlier
        once no vertex changes cluster.
    replicates : int, default=5
        Number of independent k-means runs. The run with the lowest
        within-cluster sum of squares is kept.

    Returns
    -------
    parc : (N,) tensor[long]
        Parcel id of each vertex, in 1..n_clusters.
        Ignored vertices have id 0.

    Notes
    -----
    Parcel ids carry no spatial meaning and change from one run to
    the next. See `reorder_parcels`.

    """
    vertices = torch.as_tensor(vertices)
    if vertices.ndim != 2:
        raise InvalidArgument('vertices must have shape (N, D)')
    n = len(vertices)

    keep = torch.ones([n], dtype=torch.bool)
    if ignore is not None:
        ignore = torch.as_tensor(ignore)
        if ignore.dtype == torch.bool:
            if ignore.shape != (n,):
                raise InvalidArgument('ignore mask must have one value '
                                      'per vertex')
            keep &= ~ignore.cpu()
        else:
            ignore = ignore.long().flatten().cpu()
            if len(ignore) and (ignore.min() < 0 or ignore.max() >= n):
                raise InvalidArgument(f'ignored indices must lie in [0, {n})')
            keep[ignore] = False

    points = vertices.detach().cpu()[keep].double().numpy()
    if max_iter < 1 or replicates < 1:
        raise InvalidArgument('max_iter and replicates must be positive')
    if len(points) == 0:
        raise InvalidArgument('No vertex left to parcellate')
    if n_clusters <= 0 or n_clusters > len(points):
        raise InvalidArgument(f'Number of clusters must lie in '
                              f'[1, {len(points)}] but got {n_clusters}')
    if len(np.unique(points, axis=0)) < n_clusters:
        raise InvalidArgument(f'Fewer than {n_clusters} distinct vertices '
                              f'to parcellate')

    best_label, best_sse = None, float('inf')
    for r in range(replicates):
        try:
            centroid, label = _kmeans(
                points, n_clusters, max_iter,
                seed=None if seed is None else seed + r,
            )
        except ClusterError as e:
            logger.debug('k-means replicate %d failed: %s', r, e)
            continue
        sse = np.square(points - centroid[label]).sum()
        if sse < best_sse:
            best_label, best_sse = label, sse
    if best_label is None:
        raise InvalidArgument(f'k-means left a cluster empty in all '
                              f'{replicates} replicates')

    parc = torch.zeros([n], dtype=torch.long)
    parc[keep] = torch.as_tensor(best_label, dtype=torch.long) + 1
    return parc.to(vertices.device)


def _kmeans(points, k, max_iter, seed=None):
    # kmeans2 has no convergence test: step one iteration at a time
    # and stop once the assignment is stable.
    centroid, label = kmeans2(points, k, iter=1, minit='++', seed=seed,
                              missing='raise')
    for _ in range(max_iter - 1):
        centroid, new_label = kmeans2(points, centroid, iter=1,
                                      minit='matrix', missing='raise')
        stable = np.array_equal(new_label, label)
        label = new_label
        if stable:
            break
    return centroid, label


def reorder_parcels(parc, vertices, key='zmin'):
    """Renumber parcels according to their position

    Parameters
    ----------
    parc : (N,) tensor[integer]
        Parcel id of each vertex (0 = no parcel, kept as is)
    vertices : (N, 3) tensor
        Vertex coordinates
    key : {'xmin', 'ymin', 'zmin', 'xmean', 'ymean', 'zmean'}
        Sorting key. Parcels are numbered by increasing key.

    Returns
    -------
    parc : (N,) tensor[long]

    """
    parc = torch.as_tensor(parc).long()
    vertices = torch.as_tensor(vertices)
    if key[:1] not in ('x', 'y', 'z') or key[1:] not in ('min', 'mean'):
        raise InvalidArgument(f'Unknown sorting key: {key}')
    axis = 'xyz'.index(key[0])
    reduce = key[1:]

    labels = [x for x in parc.unique().tolist() if x != 0]
    values = []
    for label in labels:
        coord = vertices[parc == label, axis]
        values.append(coord.min() if reduce == 'min' else coord.mean())
    order = sorted(range(len(labels)), key=lambda i: values[i])
    return relabel(parc, [[]] + [labels[i] for i in order])


def find_roi_boundaries(vertices, faces, parc, style='midpoint'):
    """Find the boundaries between parcels

    Parameters
    ----------
    vertices : (N, 3) tensor
        Vertex coordinates
    faces : (M, 3) tensor[long]
        Faces
    parc : (N,) tensor[integer]
        Parcel id of each vertex
    style : {'midpoint', 'none'}, default='midpoint'
        'midpoint' : boundaries go through the midpoints of the edges
                     that join two parcels
        'none' : no boundary

    Returns
    -------
    boundaries : list[(P, 3) tensor]
        Boundary polylines. Closed loops end with their first point.

    """
    if style == 'none':
        return []
    if style != 'midpoint':
        raise InvalidArgument(f'Unknown boundary style: {style}')

    vertices = torch.as_tensor(vertices)
    parc = torch.as_tensor(parc, device=vertices.device)
    if len(parc) != len(vertices):
        raise InvalidArgument('parc must have one value per vertex')
    faces = check_faces(faces, len(vertices)).to(vertices.device)

    edges, face_edges = mesh_edges(faces)
    crossing = parc[edges[:, 0]] != parc[edges[:, 1]]
    if not crossing.any():
        return []
    midpoints = (vertices[edges[:, 0]] + vertices[edges[:, 1]]) / 2

    # A triangle has 0, 2 or 3 crossing edges:
    # - 2: the boundary goes through the triangle
    # - 3: three parcels meet in the triangle
    face_crossing = crossing[face_edges]
    nb_crossing = face_crossing.sum(-1)

    mask = nb_crossing == 2
    links = face_edges[mask][face_crossing[mask]].reshape([-1, 2])
    boundaries = [midpoints[chain] for chain in _trace(links.tolist())]

    for e0, e1, e2 in face_edges[nb_crossing == 3].tolist():
        boundaries += [midpoints[[e0, e1]],
                       midpoints[[e1, e2]],
                       midpoints[[e2, e0]]]
    return boundaries


def _trace(links):
    # Chain links (pairs of edge indices) into paths.
    # Open paths start at nodes whose degree is not 2; whatever remains
    # afterwards forms closed loops.
    neighbors = defaultdict(list)
    for k, (a, b) in enumerate(links):
        neighbors[a].append((b, k))
        neighbors[b].append((a, k))
    used = [False] * len(links)

    def next_link(node):
        for other, k in neighbors[node]:
            if not used[k]:
                return other, k
        return None, None

    def walk(node):
        chain = [node]
        while True:
            other, k = next_link(node)
            if k is None:
                return chain
            used[k] = True
            chain.append(other)
            node = other

    chains = []
    for node, nodelinks in neighbors.items():
        if len(nodelinks) != 2:
            while next_link(node)[1] is not None:
                chains.append(walk(node))
    for node in neighbors:
        while next_link(node)[1] is not None:
            chains.append(walk(node))
    return chains
