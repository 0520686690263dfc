from nearvertex.parser import ContactsParser, VertexLoader
from nearvertex.export import ContactExporter
from nearvertex.core.search_config import SearchConfig
from nearvertex.core.process_cell import process_cell
from nearvertex.core.sequencer import CellSequencer
from nearvertex.core.errors import PipelineTimeoutError
from nearvertex.surface.compute_surface import ComputeSurface
from nearvertex.utils.logging import setup_logging
from typing import List, Optional

import logging

logger = logging.getLogger(__name__)

class NearestVertexAnalysis:
    '''
    Resolves the nearest mesh vertex of every contact, one cell at a time.

    For each cell the contacts file and the decoded vertices are loaded, the
    GPU pipeline runs once, and the augmented contacts are written out before
    the next cell is started.
    '''
    def __init__(self, config: SearchConfig, surface: Optional[ComputeSurface] = None) -> None:
        '''
        Args:
            config (SearchConfig): Directories, grid size and failure policy.
            surface (ComputeSurface | None): Device context to run on. A new one
                                             sized rows x columns is created when
                                             omitted.
        '''
        self.config = config
        setup_logging(self.config.verbose)
        self.surface = surface or ComputeSurface(
            rows=config.rows,
            columns=config.columns,
            threads_per_block=config.threads_per_block
        )
        self.parser = ContactsParser(config.contacts_dir, config.position_field)
        self.vertex_loader = VertexLoader(config.vertices_dir)
        self.exporter = ContactExporter(config.output_dir, config.output_field)
        self._conns = {}

    def cell_ids(self) -> List[str]:
        if self.config.cells:
            return [str(cell) for cell in self.config.cells]
        return self.parser.load_cell_list(self.config.cell_list)

    def resolve_cell(self, cell_id):
        '''
        Load one cell and run its pipeline. The raw records are kept so
        run() can persist them once the result is known.
        '''
        conns = self.parser.load(cell_id)
        data = {
            'cell_id': cell_id,
            'contacts': self.parser.positions(conns, cell_id),
            'vertices': self.vertex_loader.load(cell_id)
        }
        self._conns[cell_id] = conns
        return process_cell(data, self.config, self.surface)

    def run(self):
        '''
        Process every cell sequentially.

        Returns:
            list[CellResult]: One entry per attempted cell, in order.

        Raises:
            CapabilityError: Before any cell if the device has no float grids.
            NearestVertexError | OSError | ValueError: The first failed cell's
                error when on_error is 'abort'. A timeout always stops the run
                since the device is still busy with the abandoned cell.
        '''
        self.surface.require_floating_point_grids()
        cells = self.cell_ids()
        logger.info(f'Resolving nearest vertices for {len(cells)} cells')

        results = []
        with CellSequencer(self.resolve_cell, timeout=self.config.timeout) as sequencer:
            for cell_id in cells:
                result = sequencer.run(cell_id)
                conns = self._conns.pop(cell_id, None)
                results.append(result)

                if result.ok:
                    self.exporter.write(cell_id, conns, result.indices)
                    continue

                logger.error(f'Cell {cell_id} failed: {result.error}')
                if self.config.on_error == 'abort' or isinstance(result.error, PipelineTimeoutError):
                    raise result.error
                logger.warning(f'Skipping cell {cell_id}')

        failed = sum(1 for result in results if not result.ok)
        logger.info(f'Finished {len(results)} cells ({failed} failed)')
        return results
