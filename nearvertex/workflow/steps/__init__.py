from .grids import step_grids, step_target
from .search import step_search, step_extract
