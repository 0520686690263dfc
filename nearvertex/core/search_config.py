from nearvertex.codec.dense_grid import MAX_CAPACITY
from dataclasses import dataclass
from typing import Optional, List

TERMINATION_MODES = ('length', 'sentinel')
ERROR_POLICIES = ('abort', 'skip')

@dataclass
class SearchConfig:
    '''
    Configuration parameters for a nearest vertex run over a list of cells.
    '''
    # Directory holding conns-<id>.json contact files (and the cell list)
    contacts_dir: str

    # Directory holding decoded vertex arrays (<id>.npy or <id>.json)
    vertices_dir: Optional[str] = None

    # Where augmented contact files are written
    output_dir: str = 'connsData2'

    # Explicit cell ids; when None they are read from cell_list
    cells: Optional[List[str]] = None
    cell_list: str = 'conns-list.json'

    # Grid size, capacity = rows * columns
    rows: int = 1024
    columns: int = 1024

    # 'length' bounds data with an explicit count, 'sentinel' stops at the
    # first texel whose x is exactly 0.0
    termination: str = 'length'

    # Contact record fields
    position_field: str = 'position'
    output_field: str = 'nearestVertexIndex'

    # CUDA block edge (threads_per_block x threads_per_block)
    threads_per_block: int = 16

    # Seconds to wait for a single cell, None waits forever
    timeout: Optional[float] = None

    # 'abort' stops at the first failed cell, 'skip' logs it and moves on
    on_error: str = 'abort'

    # Verbose logging
    verbose: bool = False

    def __post_init__(self):
        if self.vertices_dir is None:
            self.vertices_dir = self.contacts_dir
        if self.rows < 1 or self.columns < 1:
            raise ValueError('rows and columns must be positive')
        if self.rows * self.columns > MAX_CAPACITY:
            raise ValueError(f'rows x columns must not exceed {MAX_CAPACITY} texels')
        if self.termination not in TERMINATION_MODES:
            raise ValueError(f'termination must be one of {TERMINATION_MODES}')
        if self.on_error not in ERROR_POLICIES:
            raise ValueError(f'on_error must be one of {ERROR_POLICIES}')
        if self.threads_per_block < 1:
            raise ValueError('threads_per_block must be positive')
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError('timeout must be > 0')

    @property
    def capacity(self) -> int:
        return self.rows * self.columns

    @property
    def use_sentinel(self) -> bool:
        return self.termination == 'sentinel'
