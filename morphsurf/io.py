import nibabel.freesurfer.io as fsio
import numpy as np
import torch
from .errors import InvalidArgument


_np_to_torch_dtype = {
    np.float16: torch.float16,
    np.float32: torch.float32,
    np.float64: torch.float64,
    np.bool_: torch.bool,
    np.uint8: torch.uint8,
    np.int8: torch.int8,
    np.int16: torch.int16,
    np.int32: torch.int32,
    np.int64: torch.int64,
    # upcast
    np.uint16: torch.int32,
    np.uint32: torch.int64,
    np.uint64: torch.int64,     # risk overflow
}


def _to_torch(x):
    if not np.dtype(x.dtype).isnative:
        x = x.view(x.dtype.newbyteorder('=')).byteswap(inplace=True)
    if np.dtype(x.dtype).type in (np.uint16, np.uint32, np.uint64):
        x = x.astype(np.int64)
    return torch.as_tensor(x, dtype=_np_to_torch_dtype[np.dtype(x.dtype).type])


def load_mesh(fname, numpy=False):
    """Load a mesh in memory

    Parameters
    ----------
    fname : str
        Path to surface file

    numpy : bool, default=False
        Return numpy array instead of torch tensor

    Returns
    -------
    coord : (N, D) tensor
        Node coordinates.
        Each node has a coordinate in an ambient space.

    faces : (M, K) tensor
        Faces.
        Each face is made of K nodes, whose indices are stored in this tensor.
        For triangular meshes, K = 3.

    """
    v, f = fsio.read_geometry(fname)
    if not numpy:
        v, f = _to_torch(v), _to_torch(f)
    return v, f


def load_keyframes(fnames):
    """Load surfaces that share the same topology

    Parameters
    ----------
    fnames : sequence[str]
        Paths to surface files, in keyframe order

    Returns
    -------
    vertices : list[(N, 3) tensor]
        Vertices of each surface
    faces : (M, 3) tensor[long]
        Faces (shared by all surfaces)

    """
    vertices, faces = [], None
    for fname in fnames:
        v, f = load_mesh(fname)
        if faces is None:
            faces = f.long()
        elif f.shape != faces.shape or not torch.equal(f.long(), faces):
            raise InvalidArgument(f'{fname} does not have the same faces '
                                  f'as {fnames[0]}')
        vertices.append(v)
    return vertices, faces


def load_overlay(fname, numpy=False):
    """Load an overlay (= map from vertex to scalar/vector value)

    Parameters
    ----------
    fname : str
        Path to overlay file

    numpy : bool, default=False
        Return numpy array instead of torch tensor

    Returns
    -------
    overlay : (N,) tensor
        N is the number of vertices

    """
    o = fsio.read_morph_data(fname)
    if not numpy:
        o = _to_torch(o)
    return o


def load_annot(fname, numpy=False):
    """Load an annotation (= map from vertex to label)

    Parameters
    ----------
    fname : str
        Path to overlay file

    numpy : bool, default=False
        Return numpy array instead of torch tensor

    Returns
    -------
    labels : (N,) tensor[integer]
        N is the number of vertices
    ctab : (K, 5) tensor[integer]
        K is the number of labels.
        5 is for RGBT + label id.
    names : (K,) list[str]
        The names of the labels.

    """
    a, c, n = fsio.read_annot(fname)
    n = [n1.decode('utf8') for n1 in n]
    if not numpy:
        a, c = _to_torch(a), _to_torch(c)
    return a, c, n
