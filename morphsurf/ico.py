import math
import torch


def make_cube(device=None, dtype=None, face_dtype=None):
    """Generate a triangulated cube centered on the origin

    Parameters
    ----------
    device : torch.device, default='cpu'
    dtype : torch.dtype, default=`torch.float32`
    face_dtype : torch.dtype, default=`torch.int64`

    Returns
    -------
    vertices : (8, 3) tensor[dtype]
        Corners, with coordinates in {-1, 1}
    faces : (12, 3) tensor[face_dtype]

    """
    dtype = dtype or torch.get_default_dtype()
    face_dtype = face_dtype or torch.int64
    vertices = [
        [-1, -1, -1],
        [ 1, -1, -1],
        [ 1,  1, -1],
        [-1,  1, -1],
        [-1, -1,  1],
        [ 1, -1,  1],
        [ 1,  1,  1],
        [-1,  1,  1],
    ]
    faces = [
        [0, 2, 1], [0, 3, 2],   # z = -1
        [4, 5, 6], [4, 6, 7],   # z = +1
        [0, 1, 5], [0, 5, 4],   # y = -1
        [1, 2, 6], [1, 6, 5],   # x = +1
        [2, 3, 7], [2, 7, 6],   # y = +1
        [3, 0, 4], [3, 4, 7],   # x = -1
    ]
    vertices = torch.as_tensor(vertices, dtype=dtype, device=device)
    faces = torch.as_tensor(faces, dtype=face_dtype, device=device)
    return vertices, faces


def make_icosahedron(device=None, dtype=None, face_dtype=None):
    """Generate an icosahedron whose vertices lie on the unit sphere

    Parameters
    ----------
    device : torch.device, default='cpu'
    dtype : torch.dtype, default=`torch.float32`
    face_dtype : torch.dtype, default=`torch.int64`

    Returns
    -------
    vertices : (12, 3) tensor[dtype]
    faces : (20, 3) tensor[face_dtype]

    """
    dtype = dtype or torch.get_default_dtype()
    face_dtype = face_dtype or torch.int64
    t = (1 + math.sqrt(5)) / 2
    vertices = [
        [-1,  t,  0], [ 1,  t,  0], [-1, -t,  0], [ 1, -t,  0],
        [ 0, -1,  t], [ 0,  1,  t], [ 0, -1, -t], [ 0,  1, -t],
        [ t,  0, -1], [ t,  0,  1], [-t,  0, -1], [-t,  0,  1],
    ]
    faces = [
        [ 0, 11,  5], [ 0,  5,  1], [ 0,  1,  7], [ 0,  7, 10], [ 0, 10, 11],
        [ 1,  5,  9], [ 5, 11,  4], [11, 10,  2], [10,  7,  6], [ 7,  1,  8],
        [ 3,  9,  4], [ 3,  4,  2], [ 3,  2,  6], [ 3,  6,  8], [ 3,  8,  9],
        [ 4,  9,  5], [ 2,  4, 11], [ 6,  2, 10], [ 8,  6,  7], [ 9,  8,  1],
    ]
    vertices = torch.as_tensor(vertices, dtype=dtype, device=device)
    vertices /= math.sqrt(1 + t*t)  # make vertices lie on the unit sphere
    faces = torch.as_tensor(faces, dtype=face_dtype, device=device)
    return vertices, faces


def refine_mesh(vertices, faces, nb_levels=1):
    """Refine a mesh by dividing each triangle into 4 new triangles

    Parameters
    ----------
    vertices : (N, D) tensor[floating]
    faces : (M, 3) tensor[integer]
    nb_levels : int

    Returns
    -------
    vertices : (N', D) tensor[floating]
    faces : (4**nb_levels * M, 3) tensor[integer]

    """
    def refine1(vertices, faces):
        midpoints = {}
        newvertices = list(vertices)

        def midpoint(i, j):
            key = (min(i, j), max(i, j))
            if key not in midpoints:
                midpoints[key] = len(newvertices)
                newvertices.append((vertices[i] + vertices[j]) / 2)
            return midpoints[key]

        newfaces = []
        for a, b, c in faces.tolist():
            ab, bc, ca = midpoint(a, b), midpoint(b, c), midpoint(c, a)
            newfaces += [[a, ab, ca], [ab, b, bc], [ca, bc, c], [ab, bc, ca]]

        newvertices = torch.stack(newvertices)
        newfaces = torch.as_tensor(newfaces, dtype=faces.dtype,
                                   device=faces.device)
        return newvertices, newfaces

    for _ in range(nb_levels):
        vertices, faces = refine1(vertices, faces)
    return vertices, faces


def project_sphere(vertices):
    """Project vertices to the unit sphere"""
    return vertices / vertices.square().sum(-1, keepdim=True).sqrt_()


def make_icosphere(nb_levels=4, device=None, dtype=None, face_dtype=None):
    """Generate an icosphere by recursively subdivising an icosahedron

    Parameters
    ----------
    nb_levels : int
        Number of subdivisions.
        The total number of faces will be `20 * (4 ** nb_levels)`.
    device : torch.device, default='cpu'
    dtype : torch.dtype, default=`torch.float32`
    face_dtype : torch.dtype, default=`torch.int64`

    Returns
    -------
    vertices : (N, 3) tensor[floating]
    faces : (M, 3) tensor[integer]

    """
    vertices, faces = make_icosahedron(device, dtype, face_dtype)
    vertices, faces = refine_mesh(vertices, faces, nb_levels)
    return project_sphere(vertices), faces
