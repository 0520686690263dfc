from nearvertex.kernels.nearest_vertex import nearest_vertex_kernel
from nearvertex.codec.dense_grid import encode, as_points
from nearvertex.core.errors import TargetValidationError
from nearvertex.neighbors.extractor import ResultExtractor
from nearvertex.core.search_config import TERMINATION_MODES
from nearvertex.utils.logging import time_function
from numba import cuda
import numpy as np
import logging

logger = logging.getLogger(__name__)

class NearestVertexProgram:
    '''
    The compiled search program bound to one compute surface. It is dispatched
    once per pipeline run and dropped with done() afterwards.
    '''
    def __init__(self, surface, use_sentinel=False):
        self.surface = surface
        self.use_sentinel = use_sentinel
        self.kernel = nearest_vertex_kernel

    @time_function
    def run(self, contacts, vertices, target):
        if self.kernel is None:
            raise RuntimeError('Program has already been released')

        blocks, threads = self.surface.launch_config()
        self.kernel[blocks, threads](
            contacts.array,
            vertices.array,
            contacts.length,
            vertices.length,
            self.use_sentinel,
            target.attachment.array
        )
        cuda.synchronize()

    def done(self):
        self.kernel = None

class NearestVertexFinder:
    '''
    Resolves, for every contact, the 1-based index of its nearest vertex on
    the given compute surface. Each call to find_nearest() is one complete
    pipeline run: encode, allocate, validate, dispatch, read back, release.
    '''
    def __init__(self, contacts, vertices, surface, termination='length'):
        self.contacts = as_points(contacts)
        self.vertices = as_points(vertices)
        self.surface = surface
        self.termination = termination

        if termination not in TERMINATION_MODES:
            raise ValueError(f'termination must be one of {TERMINATION_MODES}')

    @property
    def use_sentinel(self):
        return self.termination == 'sentinel'

    def encode_grids(self):
        rows, columns = self.surface.rows, self.surface.columns
        return encode(self.contacts, rows, columns), encode(self.vertices, rows, columns)

    def allocate(self, contacts_grid, vertices_grid):
        surface = self.surface
        surface.require_floating_point_grids()

        d_contacts = surface.create_grid(np.float32, contacts_grid.texels, contacts_grid.length)
        d_vertices = surface.create_grid(np.float32, vertices_grid.texels, vertices_grid.length)
        d_out = surface.create_grid(np.float32)
        target = surface.attach_as_render_target(d_out)

        status = surface.validate_target(target)
        if not status.is_complete:
            raise TargetValidationError(status)
        return d_contacts, d_vertices, target

    def search(self, d_contacts, d_vertices, target):
        program = NearestVertexProgram(self.surface, self.use_sentinel)
        try:
            program.run(d_contacts, d_vertices, target)
        finally:
            program.done()

    def extract(self, target, num_contacts):
        length = None if self.use_sentinel else num_contacts
        return ResultExtractor().extract(target, length)

    def find_nearest(self):
        '''
        Returns:
            ExtractionResult: indices (1-based, 0 = no vertex), squared
                              distances and scan attempts per contact.

        Raises:
            CapacityOverflowError: A point set does not fit the surface grids.
            CapabilityError: No float grid support on this machine.
            TargetValidationError: The output target is not usable.
        '''
        contacts_grid, vertices_grid = self.encode_grids()
        with self.surface.run_scope():
            d_contacts, d_vertices, target = self.allocate(contacts_grid, vertices_grid)
            self.search(d_contacts, d_vertices, target)
            result = self.extract(target, contacts_grid.length)

        logger.debug(
            f'Resolved {len(result)} contacts against {vertices_grid.length} vertices'
        )
        return result

def find_nearest_vertices(contacts, vertices, surface=None, termination='length'):
    '''
    Shortcut for a single pipeline run; returns only the index array.
    '''
    if surface is None:
        from nearvertex.surface.compute_surface import ComputeSurface
        surface = ComputeSurface()
    finder = NearestVertexFinder(contacts, vertices, surface, termination)
    return finder.find_nearest().indices
