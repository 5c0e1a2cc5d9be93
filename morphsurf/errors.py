class InvalidArgument(ValueError):
    """An input has the wrong shape, length or range"""
    pass


class DegenerateSegment(InvalidArgument):
    """Distance interpolation along a segment of length zero"""
    pass


class IOFailure(OSError):
    """A frame could not be written to disk or to the encoder"""
    pass
