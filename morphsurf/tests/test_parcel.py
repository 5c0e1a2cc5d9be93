import pytest
import torch
from morphsurf.parcel import (
    parcellate_surface, reorder_parcels, find_roi_boundaries,
)
from morphsurf.surf import mesh_edges
from morphsurf.ico import make_cube, make_icosphere
from morphsurf.errors import InvalidArgument


def _edge_midpoints(vertices, faces):
    edges, _ = mesh_edges(faces)
    return (vertices[edges[:, 0]] + vertices[edges[:, 1]]) / 2


def _is_member(points, candidates):
    return torch.cdist(points.double(), candidates.double()).min(-1).values < 1e-6


def _two_blobs():
    torch.manual_seed(0)
    a = torch.randn([10, 3], dtype=torch.float64)
    b = torch.randn([10, 3], dtype=torch.float64) + 100
    return torch.cat([a, b])


def test_parcellate_two_blobs():
    points = _two_blobs()
    parc = parcellate_surface(points, 2, seed=0)
    assert parc.shape == (20,)
    assert set(parc.tolist()) == {1, 2}
    assert len(parc[:10].unique()) == 1
    assert len(parc[10:].unique()) == 1
    assert parc[0] != parc[10]


def test_parcellate_single_cluster():
    parc = parcellate_surface(_two_blobs(), 1, seed=0)
    assert (parc == 1).all()


def test_parcellate_ignore():
    points = _two_blobs()
    parc = parcellate_surface(points, 2, ignore=[0, 1, 19], seed=0)
    assert parc[[0, 1, 19]].tolist() == [0, 0, 0]
    assert set(parc[2:19].tolist()) == {1, 2}

    mask = torch.zeros([20], dtype=torch.bool)
    mask[:10] = True
    parc = parcellate_surface(points, 1, ignore=mask, seed=0)
    assert (parc[:10] == 0).all()
    assert (parc[10:] == 1).all()


def test_parcellate_invalid():
    points = _two_blobs()
    with pytest.raises(InvalidArgument):
        parcellate_surface(points, 0)
    with pytest.raises(InvalidArgument):
        parcellate_surface(points, 21)
    with pytest.raises(InvalidArgument):
        parcellate_surface(points, 1, ignore=list(range(20)))
    with pytest.raises(InvalidArgument):
        parcellate_surface(points, 5, ignore=list(range(17)))
    with pytest.raises(InvalidArgument):
        parcellate_surface(points, 2, max_iter=0)


def test_parcellate_duplicated_points():
    points = torch.zeros([10, 3], dtype=torch.float64)
    points[5:, 0] = 1
    with pytest.raises(InvalidArgument):
        parcellate_surface(points, 3, seed=0)
    parc = parcellate_surface(points, 2, seed=0)
    assert set(parc.tolist()) == {1, 2}
    assert len(parc[:5].unique()) == 1

    # four locations, each repeated: every cluster gets a location
    points = torch.eye(4, dtype=torch.float64).repeat_interleave(3, 0)
    for seed in range(5):
        parc = parcellate_surface(points, 4, seed=seed)
        assert set(parc.tolist()) == {1, 2, 3, 4}


def test_parcellate_converged():
    vertices, _ = make_icosphere(2, dtype=torch.float64)
    parc = parcellate_surface(vertices, 12, seed=0)
    assert set(parc.tolist()) == set(range(1, 13))
    centroids = torch.stack([vertices[parc == k].mean(0)
                             for k in range(1, 13)])
    # each vertex is closest to the mean of its own parcel
    dist = torch.cdist(vertices, centroids)
    own = dist.gather(-1, parc[:, None] - 1)[:, 0]
    assert (own <= dist.min(-1).values + 1e-9).all()


def test_reorder_parcels():
    vertices = torch.as_tensor([[0., 0., 5.],
                                [0., 0., 6.],
                                [0., 0., -3.],
                                [0., 0., 1.],
                                [0., 0., -10.]])
    parc = torch.as_tensor([1, 1, 2, 3, 0])
    parc = reorder_parcels(parc, vertices, key='zmin')
    assert parc.tolist() == [3, 3, 1, 2, 0]
    with pytest.raises(InvalidArgument):
        reorder_parcels(parc, vertices, key='wmax')


def test_boundaries_none():
    vertices, faces = make_cube()
    parc = (vertices[:, 2] > 0).long() + 1
    assert find_roi_boundaries(vertices, faces, parc, style='none') == []


def test_boundaries_single_parcel():
    vertices, faces = make_cube()
    parc = torch.ones([8], dtype=torch.long)
    assert find_roi_boundaries(vertices, faces, parc) == []


def test_boundaries_planar_cut():
    vertices, faces = make_cube()
    parc = (vertices[:, 2] > 0).long() + 1
    boundaries = find_roi_boundaries(vertices, faces, parc)
    assert len(boundaries) == 1
    loop = boundaries[0]
    # eight crossing edges (4 vertical + 4 diagonal), closed loop
    assert loop.shape == (9, 3)
    assert torch.equal(loop[0], loop[-1])
    assert (loop[:, 2] == 0).all()

    edges, _ = mesh_edges(faces)
    crossing = edges[parc[edges[:, 0]] != parc[edges[:, 1]]]
    expected = (vertices[crossing[:, 0]] + vertices[crossing[:, 1]]) / 2
    assert _is_member(loop, expected).all()
    assert _is_member(expected, loop).all()


def test_boundaries_follow_vertices():
    vertices, faces = make_cube()
    parc = (vertices[:, 2] > 0).long() + 1
    loop = find_roi_boundaries(vertices * 3, faces, parc)[0]
    assert _is_member(loop, _edge_midpoints(vertices * 3, faces)).all()
    assert loop[:, :2].abs().max() == 3


def test_boundaries_three_parcels():
    vertices, faces = make_cube()
    parc = torch.ones([8], dtype=torch.long)
    top = vertices[:, 2] > 0
    parc[top & (vertices[:, 0] < 0)] = 2
    parc[top & (vertices[:, 0] > 0)] = 3
    boundaries = find_roi_boundaries(vertices, faces, parc)
    assert len(boundaries) > 0
    points = torch.cat(boundaries)
    assert _is_member(points, _edge_midpoints(vertices, faces)).all()
    assert not _is_member(points, vertices).any()


def test_boundaries_icosphere():
    vertices, faces = make_icosphere(2)
    parc = parcellate_surface(vertices, 4, seed=0)
    boundaries = find_roi_boundaries(vertices, faces, parc)
    assert len(boundaries) > 0
    points = torch.cat(boundaries)
    assert _is_member(points, _edge_midpoints(vertices, faces)).all()


def test_boundaries_invalid():
    vertices, faces = make_cube()
    with pytest.raises(InvalidArgument):
        find_roi_boundaries(vertices, faces, torch.ones([7]))
    with pytest.raises(InvalidArgument):
        find_roi_boundaries(vertices, faces, torch.ones([8]), style='center')
