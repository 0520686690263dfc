from nearvertex.core.errors import CapacityOverflowError
from dataclasses import dataclass
import numpy as np

CHANNELS = 3

# Positions are stored in float32 channels, exact only up to 2**24
MAX_CAPACITY = 2 ** 24

@dataclass
class Grid:
    '''
    Host side dense grid: a (rows, columns, 3) float32 texel array holding a
    point set in row-major order, zero-filled past `length`.
    '''
    texels: np.ndarray
    length: int

    @property
    def rows(self):
        return self.texels.shape[0]

    @property
    def columns(self):
        return self.texels.shape[1]

    @property
    def capacity(self):
        return self.rows * self.columns

    def flat(self):
        return self.texels.reshape(-1, CHANNELS)

def as_points(points):
    '''
    Coerce an (n, 3) or flat (3n,) array-like into an (n, 3) float32 array.
    '''
    array = np.asarray(points, dtype=np.float32)
    if array.size == 0:
        return np.zeros((0, CHANNELS), dtype=np.float32)
    if array.ndim == 1:
        if array.shape[0] % CHANNELS != 0:
            raise ValueError(f'Flat point array length {array.shape[0]} is not a multiple of 3')
        array = array.reshape(-1, CHANNELS)
    if array.ndim != 2 or array.shape[1] != CHANNELS:
        raise ValueError(f'points must have shape (n, 3), got {array.shape}')
    return array

def encode(points, rows, columns):
    '''
    Pack a point set into a zero-filled grid of rows x columns texels.

    Args:
        points (array-like): (n, 3) coordinates, or a flat array of 3n floats.
        rows (int): Grid height.
        columns (int): Grid width.

    Returns:
        Grid: Texels with point i stored at flat position i. When n is below
              capacity the texel right after the last point is (0, 0, 0).

    Raises:
        CapacityOverflowError: If n > rows * columns. Nothing is truncated.
    '''
    points = as_points(points)
    capacity = rows * columns
    length = points.shape[0]
    if length > capacity:
        raise CapacityOverflowError(length, capacity)

    texels = np.zeros((rows * columns, CHANNELS), dtype=np.float32)
    texels[:length] = points
    return Grid(texels=texels.reshape(rows, columns, CHANNELS), length=length)

def sentinel_length(values):
    '''
    Position of the first value equal to exactly 0.0, or len(values) if none.
    '''
    values = np.asarray(values)
    zeros = np.flatnonzero(values == 0.0)
    return int(zeros[0]) if zeros.size else int(values.shape[0])

def _scan_length(flat, bound, channel):
    length = sentinel_length(flat[:, channel])
    if bound is not None:
        length = min(length, int(bound))
    return length

def decode(grid, bound=None, channel=0):
    '''
    Read one channel of a grid back as a sequence, stopping at the first
    texel whose channel is 0.0 or after `bound` texels, whichever is first.
    '''
    flat = _as_flat(grid)
    length = _scan_length(flat, bound, channel)
    return flat[:length, channel].copy()

def decode_points(grid, bound=None):
    flat = _as_flat(grid)
    length = _scan_length(flat, bound, 0)
    return flat[:length].copy()

def _as_flat(grid):
    if isinstance(grid, Grid):
        return grid.flat()
    texels = np.asarray(grid)
    return texels.reshape(-1, texels.shape[-1])
