import numpy as np
import pytest
import torch
import nibabel.freesurfer.io as fsio
from morphsurf.io import load_mesh, load_keyframes, load_overlay, load_annot
from morphsurf.ico import make_cube
from morphsurf.errors import InvalidArgument


def _write_cube(path, scale=1, faces=None):
    vertices, cube_faces = make_cube(dtype=torch.float64)
    faces = cube_faces if faces is None else faces
    fsio.write_geometry(str(path), vertices.numpy() * scale,
                        faces.numpy().astype(np.int32))
    return vertices * scale, faces


def test_load_mesh(tmp_path):
    vertices, faces = _write_cube(tmp_path / 'lh.white')
    v, f = load_mesh(str(tmp_path / 'lh.white'))
    assert torch.allclose(v.double(), vertices)
    assert torch.equal(f.long(), faces)


def test_load_keyframes(tmp_path):
    fnames = []
    for k in range(3):
        fnames.append(str(tmp_path / f'lh.surf{k}'))
        _write_cube(fnames[-1], scale=k + 1)
    vertices, faces = load_keyframes(fnames)
    assert len(vertices) == 3
    assert faces.dtype == torch.long
    assert torch.allclose(vertices[2].double(), vertices[0].double() * 3)


def test_load_keyframes_mismatch(tmp_path):
    _, faces = make_cube()
    _write_cube(tmp_path / 'lh.a')
    _write_cube(tmp_path / 'lh.b', faces=faces.flip(-1))
    with pytest.raises(InvalidArgument):
        load_keyframes([str(tmp_path / 'lh.a'), str(tmp_path / 'lh.b')])


def test_load_overlay(tmp_path):
    values = np.arange(8, dtype=np.float32)
    fsio.write_morph_data(str(tmp_path / 'lh.sulc'), values)
    overlay = load_overlay(str(tmp_path / 'lh.sulc'))
    assert torch.equal(overlay, torch.as_tensor(values))


def test_load_annot(tmp_path):
    labels = np.array([0, 0, 1, 1, 1, 0, 1, 0], dtype=np.int32)
    ctab = np.array([[255, 0, 0, 0], [0, 255, 0, 0]], dtype=np.int32)
    fsio.write_annot(str(tmp_path / 'lh.parc.annot'), labels, ctab,
                     ['dorsal', 'ventral'])
    parc, ctab, names = load_annot(str(tmp_path / 'lh.parc.annot'))
    assert parc.tolist() == labels.tolist()
    assert names == ['dorsal', 'ventral']
    assert ctab.shape == (2, 5)
