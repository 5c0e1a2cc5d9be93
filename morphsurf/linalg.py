import torch


def dot(a, b, keepdim=False, out=None):
    """(Batched) dot product

    Parameters
    ----------
    a : (..., N) tensor
    b : (..., N) tensor
    keepdim : bool, default=False
    out : tensor, optional

    Returns
    -------
    ab : (..., [1]) tensor

    """
    a = a[..., None, :]
    b = b[..., :, None]
    ab = torch.matmul(a, b, out=out)
    if keepdim:
        ab = ab[..., 0]
    else:
        ab = ab[..., 0, 0]
    return ab


def isin(tensor, labels):
    """Returns a mask for elements that belong to labels

    Parameters
    ----------
    tensor : (*shape) tensor_like
        Input tensor
    labels : int or sequence[int] or set[int]
        Labels

    Returns
    -------
    mask : (*shape) tensor[bool]

    """
    tensor = torch.as_tensor(tensor)
    if isinstance(labels, set):
        labels = list(labels)
    labels = torch.as_tensor(labels, device=tensor.device).flatten()

    mask = tensor.new_zeros(tensor.shape, dtype=torch.bool)
    for label in labels:
        mask = mask | (tensor == label)
    return mask


def relabel(x, lookup):
    """Relabel a label tensor according to a lookup table

    Parameters
    ----------
    x : tensor[integer]
        Input tensor of labels
    lookup : sequence of [sequence of] int
        Element `i` lists the input labels that become label `i`.
        Labels that do not appear in the table become 0.

    Returns
    -------
    x : tensor
        Relabeled tensor

    """
    x = torch.as_tensor(x)
    if torch.is_tensor(lookup):
        lookup = lookup.tolist()
    out = torch.zeros_like(x)
    for i, j in enumerate(lookup):
        out[isin(x, j)] = i
    return out
