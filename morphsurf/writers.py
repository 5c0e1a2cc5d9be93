import logging
import os
import imageio.v3 as iio
from .errors import IOFailure

logger = logging.getLogger(__name__)


class PngSequenceWriter:
    """Save each frame as `<outdir>/Frame<N>.png` (N starts at 1)"""

    def __init__(self, outdir):
        self.outdir = outdir
        try:
            os.makedirs(outdir, exist_ok=True)
        except OSError as e:
            raise IOFailure(f'Cannot create output directory {outdir}: {e}') from e
        self.nb_frames = 0

    def write(self, session):
        self.nb_frames += 1
        path = os.path.join(self.outdir, f'Frame{self.nb_frames}.png')
        logger.debug('Saving frame to %s', path)
        try:
            session.savefig(path)
        except OSError as e:
            raise IOFailure(f'Cannot write frame {path}: {e}') from e

    def close(self):
        logger.info('Saved %d frames to %s', self.nb_frames, self.outdir)


class GifWriter:
    """Append each frame to an animated GIF"""

    def __init__(self, path, delay=1/30, loop=0):
        """
        Parameters
        ----------
        path : str
            Output file
        delay : float
            Time between two frames, in seconds
        loop : int
            Number of times the animation loops (0 = forever)
        """
        self.path = path
        self.delay = delay
        self.loop = loop
        self.nb_frames = 0
        try:
            self.file = iio.imopen(path, 'w', plugin='pillow', extension='.gif')
        except OSError as e:
            raise IOFailure(f'Cannot open {path}: {e}') from e

    def write(self, session):
        self.nb_frames += 1
        image = session.snapshot()
        try:
            self.file.write(image, is_batch=False,
                            duration=int(round(1000 * self.delay)),
                            loop=self.loop)
        except (OSError, ValueError) as e:
            raise IOFailure(f'Cannot append frame to {self.path}: {e}') from e

    def close(self):
        if self.file is None:
            return
        try:
            self.file.close()
        except (OSError, ValueError) as e:
            raise IOFailure(f'Cannot write {self.path}: {e}') from e
        finally:
            self.file = None
        logger.info('Saved %d frames to %s', self.nb_frames, self.path)
