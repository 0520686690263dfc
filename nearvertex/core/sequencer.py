from nearvertex.core.errors import NearestVertexError, PipelineTimeoutError
from nearvertex.core.results import CellResult
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
import logging
import time

logger = logging.getLogger(__name__)

# Failures that belong to one cell; anything else is a bug and propagates
CELL_ERRORS = (NearestVertexError, OSError, ValueError)

class CellSequencer:
    '''
    Single-worker executor that keeps at most one cell pipeline in flight.

    submit() returns a Future resolving to a CellResult; cell level failures
    are carried in CellResult.error instead of being raised from the worker.
    '''
    def __init__(self, handler, timeout=None):
        self.handler = handler
        self.timeout = timeout
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='nearvertex-cell')
        self._in_flight = None

    def _run(self, cell_id):
        start = time.perf_counter()
        try:
            result = self.handler(cell_id)
        except CELL_ERRORS as e:
            return CellResult.failed(cell_id, e, time.perf_counter() - start)
        return CellResult(
            cell_id=cell_id,
            indices=result.indices,
            distances=result.distances,
            elapsed=time.perf_counter() - start
        )

    def submit(self, cell_id):
        if self._in_flight is not None and not self._in_flight.done():
            raise RuntimeError('A cell pipeline is already in flight')
        self._in_flight = self.executor.submit(self._run, cell_id)
        return self._in_flight

    def wait(self, future, cell_id):
        '''
        Block for a submitted cell. A timeout abandons the run and is reported
        as a failed CellResult carrying PipelineTimeoutError.
        '''
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            error = PipelineTimeoutError(f'Cell {cell_id} did not finish within {self.timeout}s')
            return CellResult.failed(cell_id, error, self.timeout)

    def run(self, cell_id):
        return self.wait(self.submit(cell_id), cell_id)

    def shutdown(self, wait=True):
        self.executor.shutdown(wait=wait, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        # Do not wait on an abandoned, still running device submission
        abandoned = self._in_flight is not None and not self._in_flight.done()
        self.shutdown(wait=not abandoned)
