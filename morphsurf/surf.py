import torch
from .linalg import dot
from .errors import InvalidArgument

# The topology (faces) is shared by every keyframe of an animation:
# only vertex positions change from one frame to the next.


def check_faces(faces, n):
    """Check that a face array is an (M, 3) array of indices in [0, n)

    Parameters
    ----------
    faces : (M, 3) tensor_like[integer]
    n : int
        Number of vertices

    Returns
    -------
    faces : (M, 3) tensor[long]

    """
    faces = torch.as_tensor(faces)
    if faces.is_floating_point():
        if not torch.equal(faces, faces.round()):
            raise InvalidArgument('faces must contain integer indices')
    faces = faces.long()
    if faces.ndim != 2 or faces.shape[-1] != 3:
        raise InvalidArgument(f'faces must have shape (M, 3) but got '
                              f'{tuple(faces.shape)}')
    if len(faces) and (faces.min() < 0 or faces.max() >= n):
        raise InvalidArgument(f'face indices must lie in [0, {n})')
    return faces


def vertex_sample(vertices, indices):
    """Sample values at vertices

    Parameters
    ----------
    vertices : (N, *fshape) tensor
        Mapping from vertex to features
    indices : (*ishape) tensor[long]
        Vertex indices

    Returns
    -------
    sampled_vertices : (*ishape, *fshape)

    """
    N, *fshape = vertices.shape
    ishape = indices.shape
    indices = indices.long().reshape([-1])
    return vertices.index_select(0, indices).reshape([*ishape, *fshape])


def face_normal(coord, faces, normalize=True):
    """Compute the normal vector of each face

    Parameters
    ----------
    coord : (N, 3) tensor
        Vertices coordinates
    faces : (M, 3) tensor[long]
        Vertices indices of each face
    normalize : bool, default=True
        Normalize the vector. Otherwise, its norm equals the face's area.

    Returns
    -------
    norm : (M, 3) tensor
        Normal vector

    """
    vert = vertex_sample(coord, faces)          # M, 3 (corner), 3 (xyz)
    a = vert[:, 1] - vert[:, 0]
    b = vert[:, 2] - vert[:, 0]
    norm = torch.cross(a, b, dim=-1).div_(2)
    if normalize:
        # degenerate faces keep a null normal
        length = dot(norm, norm, keepdim=True).sqrt_()
        norm /= length.clamp_min_(torch.finfo(norm.dtype).tiny)
    return norm


def mesh_edges(faces):
    """Compute the undirected edges of a triangular mesh

    Parameters
    ----------
    faces : (M, 3) tensor[long]
        Faces

    Returns
    -------
    edges : (E, 2) tensor[long]
        Unique edges, as sorted pairs of vertex indices
    face_edges : (M, 3) tensor[long]
        Index (into `edges`) of the edges of each face, in the order
        (0, 1), (1, 2), (2, 0).

    """
    faces = faces.long()
    edges = torch.stack([faces[:, [0, 1]],
                         faces[:, [1, 2]],
                         faces[:, [2, 0]]], 1)        # M, 3, 2
    edges = edges.sort(-1).values.reshape([-1, 2])
    edges, face_edges = torch.unique(edges, dim=0, return_inverse=True)
    return edges, face_edges.reshape([-1, 3])


def bounding_box(*vertices):
    """Compute the bounding box of one or several sets of vertices

    Parameters
    ----------
    vertices : (N, D) tensor

    Returns
    -------
    lower : (D,) tensor
    upper : (D,) tensor

    """
    lower = torch.stack([v.min(0).values for v in vertices]).min(0).values
    upper = torch.stack([v.max(0).values for v in vertices]).max(0).values
    return lower, upper
