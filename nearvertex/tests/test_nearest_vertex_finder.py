from nearvertex.neighbors.nearest_vertex import (
    NearestVertexFinder,
    NearestVertexProgram,
    find_nearest_vertices
)
from nearvertex.surface.compute_surface import (
    ComputeSurface,
    DeviceGrid,
    TargetReason,
    TargetStatus
)
from nearvertex.core.errors import CapabilityError, CapacityOverflowError, TargetValidationError
from nearvertex.core.process_cell import process_cell
from nearvertex.export import ContactExporter
from nearvertex.core.search_config import SearchConfig
from nearvertex.workflow.steps import step_grids, step_target, step_search, step_extract
from numba import cuda
import numpy as np
import logging
import pytest

class HostArray(np.ndarray):
    def copy_to_host(self):
        return np.array(self)

def host_create_grid(surface):
    '''
    Replacement for ComputeSurface.create_grid that keeps grids in host memory.
    '''
    def create_grid(dtype=np.float32, initial_data=None, length=0):
        shape = (surface.rows, surface.columns, 3)
        data = np.zeros(shape, dtype=dtype) if initial_data is None else np.array(initial_data, dtype=dtype)
        grid = DeviceGrid(surface, data.view(HostArray), length)
        surface._live.append(grid)
        return grid
    return create_grid

def host_run(self, contacts, vertices, target):
    '''
    Host emulation of the kernel (length termination) for pipeline tests.
    '''
    c = contacts.array.reshape(-1, 3)[:contacts.length]
    v = vertices.array.reshape(-1, 3)[:vertices.length]
    out = target.attachment.array.reshape(-1, 3)
    for i, point in enumerate(c):
        if len(v) == 0:
            out[i, 2] = 1
            continue
        d2 = ((v - point) ** 2).sum(axis=1)
        best = int(d2.argmin())
        out[i] = (best + 1, d2[best], len(v) + 1)

@pytest.fixture
def host_surface(monkeypatch):
    surface = ComputeSurface(rows=4, columns=4)
    monkeypatch.setattr(surface, 'create_grid', host_create_grid(surface))
    monkeypatch.setattr(surface, 'require_floating_point_grids', lambda: None)
    monkeypatch.setattr(NearestVertexProgram, 'run', host_run)
    return surface

def test_pipeline_returns_one_index_per_contact(host_surface):
    contacts = [[1.0, 0.0, 0.0], [9.0, 9.0, 9.0]]
    vertices = [[5.0, 5.0, 5.0], [1.0, 1.0, 0.0], [10.0, 10.0, 10.0]]
    result = NearestVertexFinder(contacts, vertices, host_surface).find_nearest()
    np.testing.assert_array_equal(result.indices, [2, 3])
    assert len(result) == 2

def test_pipeline_releases_its_grids(host_surface):
    finder = NearestVertexFinder([[1.0, 1.0, 1.0]], [[2.0, 2.0, 2.0]], host_surface)
    finder.find_nearest()
    assert host_surface._live == []

def test_empty_vertex_set_yields_zero_indices(host_surface):
    result = NearestVertexFinder([[1.0, 2.0, 3.0]], [], host_surface).find_nearest()
    np.testing.assert_array_equal(result.indices, [0])

def test_empty_vertex_set_in_sentinel_mode_exports_null(host_surface):
    finder = NearestVertexFinder([[1.0, 2.0, 3.0]], [], host_surface, termination='sentinel')
    result = finder.find_nearest()
    assert len(result) == 0

    conns = {'a': [{'position': {'x': 1.0, 'y': 2.0, 'z': 3.0}}]}
    ContactExporter().annotate(conns, result.indices)
    assert conns['a'][0]['nearestVertexIndex'] is None

def test_capacity_overflow_is_raised_before_allocation(host_surface):
    contacts = np.ones((17, 3), dtype=np.float32)
    finder = NearestVertexFinder(contacts, [[1.0, 1.0, 1.0]], host_surface)
    with pytest.raises(CapacityOverflowError):
        finder.find_nearest()
    assert host_surface._live == []

def test_missing_capability_stops_the_run(monkeypatch):
    monkeypatch.setattr(cuda, 'is_available', lambda: False)
    surface = ComputeSurface(rows=4, columns=4)
    finder = NearestVertexFinder([[1.0, 1.0, 1.0]], [[2.0, 2.0, 2.0]], surface)
    with pytest.raises(CapabilityError):
        finder.find_nearest()

def test_invalid_target_prevents_kernel_launch(host_surface, monkeypatch):
    launched = []
    monkeypatch.setattr(NearestVertexProgram, 'run', lambda *args: launched.append(args))
    monkeypatch.setattr(
        host_surface,
        'validate_target',
        lambda target: TargetStatus(False, TargetReason.INCOMPLETE_DIMENSIONS, 'mismatched dimensions')
    )

    finder = NearestVertexFinder([[1.0, 1.0, 1.0]], [[2.0, 2.0, 2.0]], host_surface)
    with pytest.raises(TargetValidationError) as info:
        finder.find_nearest()

    assert info.value.status.reason is TargetReason.INCOMPLETE_DIMENSIONS
    assert 'INCOMPLETE_DIMENSIONS' in str(info.value)
    assert launched == []
    assert host_surface._live == []

def test_process_cell_runs_the_cell_workflow(host_surface):
    data = {
        'cell_id': '7',
        'contacts': np.array([[1.0, 0.0, 0.0], [9.0, 9.0, 9.0], [5.0, 5.0, 4.0]], dtype=np.float32),
        'vertices': np.array([[5.0, 5.0, 5.0], [1.0, 1.0, 0.0], [10.0, 10.0, 10.0]], dtype=np.float32)
    }
    config = SearchConfig(contacts_dir='.', rows=4, columns=4)
    result = process_cell(data, config, host_surface)

    np.testing.assert_array_equal(result.indices, [2, 3, 1])
    np.testing.assert_array_equal(result.distances, [1.0, 3.0, 1.0])
    np.testing.assert_array_equal(result.attempts, [4, 4, 4])
    assert host_surface._live == []

def test_process_cell_reraises_and_releases(host_surface):
    data = {
        'cell_id': '8',
        'contacts': np.ones((17, 3), dtype=np.float32),
        'vertices': np.ones((1, 3), dtype=np.float32)
    }
    with pytest.raises(CapacityOverflowError):
        process_cell(data, SearchConfig(contacts_dir='.', rows=4, columns=4), host_surface)
    assert host_surface._live == []

def test_workflow_steps_hand_over_grids_and_target(host_surface):
    ctx = {
        'cell_id': '9',
        'data': {'contacts': [[2.0, 2.0, 2.0], [0.0, 3.0, 3.0]], 'vertices': [[0.0, 3.0, 3.0], [2.0, 2.0, 2.0]]},
        'args': SearchConfig(contacts_dir='.', rows=4, columns=4),
        'surface': host_surface,
        'logger': logging.getLogger(__name__)
    }
    with host_surface.run_scope():
        grids = step_grids(ctx)
        assert isinstance(ctx['finder'], NearestVertexFinder)
        assert grids['contacts'].length == 2
        assert grids['vertices'].length == 2

        target = step_target(ctx, grids)
        assert target['num_contacts'] == 2
        assert len(host_surface._live) == 4

        searched = step_search(ctx, target)
        assert searched is target
        result = step_extract(ctx, searched)

    # Length termination keeps contacts and vertices whose x is 0.0
    np.testing.assert_array_equal(result.indices, [2, 1])
    assert host_surface._live == []

def test_program_cannot_run_after_done():
    surface = ComputeSurface(rows=2, columns=2)
    program = NearestVertexProgram(surface)
    program.done()
    with pytest.raises(RuntimeError):
        program.run(None, None, None)

def test_unknown_termination_mode():
    with pytest.raises(ValueError):
        NearestVertexFinder([], [], ComputeSurface(rows=2, columns=2), termination='nan')

@pytest.mark.skipif(not cuda.is_available(), reason='Requires CUDA')
def test_find_nearest_vertices_on_device():
    surface = ComputeSurface(rows=4, columns=4, threads_per_block=4)
    indices = find_nearest_vertices(
        [[1.0, 0.0, 0.0], [0.5, 0.1, 0.0]],
        [[5.0, 5.0, 5.0], [1.0, 1.0, 0.0], [10.0, 10.0, 10.0]],
        surface=surface
    )
    np.testing.assert_array_equal(indices, [2, 2])

@pytest.mark.skipif(not cuda.is_available(), reason='Requires CUDA')
def test_sentinel_mode_on_device():
    surface = ComputeSurface(rows=4, columns=4, threads_per_block=4)
    finder = NearestVertexFinder(
        [[2.0, 2.0, 2.0], [3.0, 3.0, 3.0]],
        [[3.0, 3.0, 3.0], [2.0, 2.0, 2.0]],
        surface,
        termination='sentinel'
    )
    result = finder.find_nearest()
    np.testing.assert_array_equal(result.indices, [2, 1])
    np.testing.assert_array_equal(result.attempts, [3, 3])
