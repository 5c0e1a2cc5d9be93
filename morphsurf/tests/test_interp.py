import pytest
import torch
from morphsurf.interp import point_on_line, interpolation_ratios
from morphsurf.errors import InvalidArgument, DegenerateSegment


def _segments():
    torch.manual_seed(0)
    a = torch.randn([20, 3], dtype=torch.float64)
    b = torch.randn([20, 3], dtype=torch.float64)
    return a, b


def test_ratio_endpoints():
    a, b = _segments()
    assert torch.equal(point_on_line(a, b, 0), a)
    assert torch.equal(point_on_line(a, b, 1), b)


def test_ratio_on_segment():
    a, b = _segments()
    for t in (0.1, 0.5, 0.9):
        p = point_on_line(a, b, t)
        # |a-p| + |p-b| == |a-b| only for points on the segment
        d = (a - p).norm(dim=-1) + (p - b).norm(dim=-1)
        assert torch.allclose(d, (a - b).norm(dim=-1))


def test_ratio_is_pure():
    a, b = _segments()
    a0, b0 = a.clone(), b.clone()
    p1 = point_on_line(a, b, 0.3)
    p2 = point_on_line(a, b, 0.3)
    assert torch.equal(p1, p2)
    assert torch.equal(a, a0) and torch.equal(b, b0)


def test_extrapolation():
    a = torch.zeros([1, 2])
    b = torch.ones([1, 2])
    assert torch.allclose(point_on_line(a, b, 2), torch.full([1, 2], 2.))
    assert torch.allclose(point_on_line(a, b, -1), torch.full([1, 2], -1.))


def test_ratio_per_row():
    a = torch.zeros([3, 2])
    b = torch.ones([3, 2])
    p = point_on_line(a, b, torch.as_tensor([0., 0.5, 1.]))
    assert torch.allclose(p[:, 0], torch.as_tensor([0., 0.5, 1.]))
    assert torch.allclose(p[:, 1], torch.as_tensor([0., 0.5, 1.]))


def test_scalar_field():
    a = torch.as_tensor([0., 10., float('nan')])
    b = torch.as_tensor([2., 20., 1.])
    p = point_on_line(a, b, 0.5)
    assert torch.allclose(p[:2], torch.as_tensor([1., 15.]))
    assert torch.isnan(p[2])


def test_distance():
    a = torch.as_tensor([[0., 0., 0.], [0., 0., 0.]])
    b = torch.as_tensor([[2., 0., 0.], [0., 4., 0.]])
    p = point_on_line(a, b, 1, mode='distance')
    assert torch.allclose(p, torch.as_tensor([[1., 0., 0.], [0., 1., 0.]]))
    p = point_on_line(a, b, torch.as_tensor([2., 3.]), mode='distance')
    assert torch.allclose(p, torch.as_tensor([[2., 0., 0.], [0., 3., 0.]]))


def test_distance_degenerate():
    a = torch.as_tensor([[0., 0., 0.], [1., 1., 1.]])
    b = torch.as_tensor([[2., 0., 0.], [1., 1., 1.]])
    with pytest.raises(DegenerateSegment):
        point_on_line(a, b, 1, mode='distance')


def test_shape_mismatch():
    with pytest.raises(InvalidArgument):
        point_on_line(torch.zeros([3, 3]), torch.zeros([4, 3]), 0.5)
    with pytest.raises(InvalidArgument):
        point_on_line(torch.zeros([3, 3]), torch.ones([3, 3]),
                      torch.as_tensor([0.1, 0.2]))


def test_unknown_mode():
    with pytest.raises(InvalidArgument):
        point_on_line(torch.zeros([3]), torch.ones([3]), 0.5, mode='angle')


def test_ratios():
    r = interpolation_ratios(5)
    assert r.tolist() == [0, 0.25, 0.5, 0.75, 1]
