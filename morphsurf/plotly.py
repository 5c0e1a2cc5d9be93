import plotly.graph_objects as go
import torch
from .colors import color_list2str
from .surf import bounding_box


def boundary_lines(boundaries, color='black', width=2, **prm):
    """Return a plotly object representing boundary polylines

    Parameters
    ----------
    boundaries : list[(P, 3) tensor]
    color : str or list[int]
    width : float

    Returns
    -------
    lines : go.Scatter3d
    """
    Xe = []
    Ye = []
    Ze = []
    for line in boundaries:
        line = torch.as_tensor(line).detach().cpu().tolist()
        Xe.extend([p[0] for p in line] + [None])
        Ye.extend([p[1] for p in line] + [None])
        Ze.extend([p[2] for p in line] + [None])

    if isinstance(color, (list, tuple)):
        color = color_list2str(color)

    return go.Scatter3d(
        x=Xe,
        y=Ye,
        z=Ze,
        mode='lines',
        name='',
        line=dict(color=color, width=width, **prm),
    )


def surf(vertices, faces, colors=None, **prm):
    """Return a plotly object representing the mesh as a surface

    Parameters
    ----------
    vertices : (N, 3) tensor
    faces : (M, 3) tensor
    colors : (3*M, 3) tensor, optional
        Color of each face corner, in [0, 1].
        Plotly only uses one color per face (the mean of its corners).

    Returns
    -------
    mesh : go.Mesh3d
    """
    vertices = torch.as_tensor(vertices).detach().cpu().numpy()
    faces = torch.as_tensor(faces).detach().cpu().numpy()
    if colors is not None:
        colors = torch.as_tensor(colors).detach().cpu()
        colors = colors.reshape([-1, 3, 3]).mean(1).mul(255)
        prm['facecolor'] = [color_list2str(c) for c in colors.tolist()]
    prm.setdefault('flatshading', False)
    return go.Mesh3d(
        x=vertices[:, 0], y=vertices[:, 1], z=vertices[:, 2],
        i=faces[:, 0], j=faces[:, 1], k=faces[:, 2],
        **prm,
    )


def frame_data(frame, faces, boundary_width=2):
    """Plotly objects representing one animation frame"""
    data = [surf(frame.vertices, faces, frame.colors)]
    # always two traces, so that plotly frames update them in place
    data += [boundary_lines(frame.boundaries, width=boundary_width)]
    return data


def show_frame(frame, faces, boundary_width=2):
    """Plot one animation frame in plotly

    Parameters
    ----------
    frame : morphsurf.animate.Frame
    faces : (M, 3) tensor

    Returns
    -------
    fig : go.Figure
    """
    fig = go.Figure(data=frame_data(frame, faces, boundary_width))
    fig.show()
    return fig


def morph_figure(animation, duration=None):
    """Build an interactive plotly figure of a morph animation

    Parameters
    ----------
    animation : morphsurf.animate.MorphAnimation
    duration : float, optional
        Time between two frames, in milliseconds.
        Default: the GIF delay of the animation.

    Returns
    -------
    fig : go.Figure
    """
    options = animation.options
    if duration is None:
        duration = 1000 * options.gif_delay

    frames = [
        go.Frame(data=frame_data(f, animation.faces, options.boundary_width),
                 name=str(f.index + 1))
        for f in animation.frames()
    ]

    lower, upper = bounding_box(*animation.vertices)
    axes = {
        f'{name}axis': dict(range=[lo, hi], visible=False)
        for name, lo, hi in zip('xyz', lower.tolist(), upper.tolist())
    }
    play = dict(
        label='Play', method='animate',
        args=[None, dict(frame=dict(duration=duration, redraw=True),
                         fromcurrent=True)],
    )
    slider = dict(steps=[
        dict(method='animate', label=f.name,
             args=[[f.name], dict(mode='immediate',
                                  frame=dict(duration=0, redraw=True))])
        for f in frames
    ])
    fig = go.Figure(
        data=frames[0].data,
        frames=frames,
        layout=go.Layout(
            scene=dict(aspectmode='data', **axes),
            showlegend=False,
            updatemenus=[dict(type='buttons', buttons=[play])],
            sliders=[slider],
        ),
    )
    return fig
