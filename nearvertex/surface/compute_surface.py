from nearvertex.core.errors import CapabilityError
from nearvertex.codec.dense_grid import CHANNELS, MAX_CAPACITY
from nearvertex.utils.cuda import get_cuda_launch_config, describe_current_device
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional
from numba import cuda
from enum import Enum
import numpy as np
import logging

logger = logging.getLogger(__name__)

class TargetReason(Enum):
    COMPLETE = 'complete'
    UNSUPPORTED = 'unsupported'
    INCOMPLETE_ATTACHMENT = 'incomplete attachment'
    INCOMPLETE_DIMENSIONS = 'incomplete dimensions'
    MISSING_ATTACHMENT = 'missing attachment'
    UNEXPECTED = 'unexpected'

@dataclass
class TargetStatus:
    is_complete: bool
    reason: TargetReason
    message: str

class DeviceGrid:
    '''
    A rows x columns x 3 grid resident on the device. `length` is the number
    of valid texels of the point set it carries.
    '''
    def __init__(self, surface, array, length):
        self.surface = surface
        self.array = array
        self.length = length
        self.released = False

    @property
    def shape(self):
        return tuple(self.array.shape) if self.array is not None else None

    def copy_to_host(self):
        if self.released:
            raise RuntimeError('Cannot read back a released grid')
        return self.array.copy_to_host()

    def release(self):
        self.array = None
        self.released = True

class RenderTarget:
    '''
    Output binding for the kernel. Wraps the grid every thread writes into.
    '''
    def __init__(self, surface, attachment):
        self.surface = surface
        self.attachment = attachment

    def release(self):
        if self.attachment is not None:
            self.attachment.release()
        self.attachment = None

class ComputeSurface:
    '''
    Explicit handle on the CUDA device used for nearest vertex searches.

    Every grid has the same rows x columns x 3 float32 layout. Grids are
    created per pipeline run and released at the end of that run; see
    run_scope().
    '''
    def __init__(self, rows=1024, columns=1024, threads_per_block=16):
        if rows < 1 or columns < 1:
            raise ValueError('rows and columns must be positive')
        if rows * columns > MAX_CAPACITY:
            raise ValueError(f'rows x columns must not exceed {MAX_CAPACITY} texels')
        self.rows = rows
        self.columns = columns
        self.threads_per_block = threads_per_block
        self._live = []

    @property
    def capacity(self):
        return self.rows * self.columns

    def supports_floating_point_grids(self):
        '''
        True when a CUDA device (or the numba simulator) can hold float32 grids.
        '''
        return bool(cuda.is_available())

    def require_floating_point_grids(self):
        if not self.supports_floating_point_grids():
            raise CapabilityError()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('Compute surface device: %s', describe_current_device())

    def create_grid(self, dtype=np.float32, initial_data=None, length=0):
        '''
        Allocate a device grid, copying `initial_data` or zero-filling it.

        Args:
            dtype: Texel channel type. Only float32 grids can be attached as
                   render targets.
            initial_data (np.ndarray | None): Host texels of shape (rows, columns, 3).
            length (int): Valid texel count carried alongside the grid.

        Returns:
            DeviceGrid
        '''
        shape = (self.rows, self.columns, CHANNELS)
        if initial_data is None:
            host = np.zeros(shape, dtype=dtype)
        else:
            host = np.ascontiguousarray(initial_data, dtype=dtype)
            if host.shape != shape:
                raise ValueError(f'Grid data has shape {host.shape}, expected {shape}')

        grid = DeviceGrid(self, cuda.to_device(host), length)
        self._live.append(grid)
        return grid

    def attach_as_render_target(self, grid):
        target = RenderTarget(self, grid)
        self._live.append(target)
        return target

    def validate_target(self, target):
        grid = target.attachment if target is not None else None
        if grid is None:
            return TargetStatus(False, TargetReason.MISSING_ATTACHMENT, 'Render target has no attachment')

        try:
            if grid.released or grid.array is None:
                return TargetStatus(
                    False, TargetReason.INCOMPLETE_ATTACHMENT, 'Attached grid has been released'
                )
            shape = grid.shape
            if len(shape) != 3 or shape[2] != CHANNELS:
                return TargetStatus(
                    False, TargetReason.INCOMPLETE_ATTACHMENT,
                    f'Attached grid has shape {shape}, expected {CHANNELS} channels'
                )
            if shape[:2] != (self.rows, self.columns):
                return TargetStatus(
                    False, TargetReason.INCOMPLETE_DIMENSIONS,
                    f'Attached grid is {shape[0]}x{shape[1]}, surface is {self.rows}x{self.columns}'
                )
            if np.dtype(grid.array.dtype) != np.float32:
                return TargetStatus(
                    False, TargetReason.UNSUPPORTED,
                    f'Grids of type {grid.array.dtype} cannot be rendered to'
                )
            if grid.surface is not self or target.surface is not self:
                return TargetStatus(
                    False, TargetReason.UNEXPECTED, 'Attachment belongs to another compute surface'
                )
        except (AttributeError, TypeError) as e:
            return TargetStatus(False, TargetReason.UNEXPECTED, f'Unexpected render target status: {e}')

        return TargetStatus(True, TargetReason.COMPLETE, 'Render target is complete')

    def launch_config(self):
        return get_cuda_launch_config(self.rows, self.columns, self.threads_per_block)

    def release(self, *handles):
        for handle in handles:
            if handle is None:
                continue
            handle.release()
            if handle in self._live:
                self._live.remove(handle)

    @contextmanager
    def run_scope(self):
        '''
        Release every grid and target created inside the block on exit,
        including when the run fails.
        '''
        start = len(self._live)
        try:
            yield self
        finally:
            created = self._live[start:]
            self.release(*reversed(created))
            logger.debug(f'Released {len(created)} device handles')
