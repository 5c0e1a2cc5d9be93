"""Grow an icosphere into an ellipsoid, colored and parcellated

Output GIFs are written to `./outputs`.
"""
import logging
import os
import torch
from morphsurf.ico import make_icosphere
from morphsurf.parcel import parcellate_surface, reorder_parcels
from morphsurf.animate import surf_morph_animation

logging.basicConfig(level=logging.INFO)
os.makedirs('outputs', exist_ok=True)

sphere, faces = make_icosphere(4)
stretch = torch.as_tensor([1.6, 1.0, 0.8])
keyframes = [sphere * 0.5, sphere * stretch, sphere * stretch * 1.4]

# parcel ids are arbitrary: number them from bottom to top
N = 40
parc = parcellate_surface(sphere, N, seed=0)
parc = reorder_parcels(parc, sphere, key='zmin')

# surface data that changes with time
curv = [(k * s).norm(dim=-1) for k, s in zip(keyframes, [1, 2, 3])]

# no parcellation, no data
surf_morph_animation(keyframes, faces, nb_interp=10,
                     outgif='outputs/growing.gif')

# parcel borders on a grey surface
surf_morph_animation(keyframes, faces, nb_interp=10, vert_parc=parc,
                     colormap=[.5, .5, .5],
                     outgif='outputs/growing_border.gif')

# one color per parcel
surf_morph_animation(keyframes, faces, nb_interp=10, vert_parc=parc,
                     vert_data=torch.arange(1., N + 1),
                     outgif='outputs/growing_parc.gif')

# time-varying data and colormaps, seamless loop
surf_morph_animation(keyframes + keyframes[:1], faces, nb_interp=20,
                     vert_parc=parc, vert_data=curv + curv[:1],
                     colormap=['viridis', 'turbo', 'plasma', 'viridis'],
                     vary_climits=True, save_last_frame=False,
                     outgif='outputs/growing_loop.gif')
