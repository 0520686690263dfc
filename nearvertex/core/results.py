from dataclasses import dataclass
from typing import Optional
import numpy as np

@dataclass
class CellResult:
    '''
    Outcome of one cell's pipeline run. Exactly one of `indices` and `error`
    is set.
    '''
    cell_id: str
    indices: Optional[np.ndarray] = None
    distances: Optional[np.ndarray] = None
    error: Optional[BaseException] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, cell_id, error, elapsed=0.0):
        return cls(cell_id=cell_id, error=error, elapsed=elapsed)
