from nearvertex.codec import Grid, encode, decode
from nearvertex.core.search_config import SearchConfig
from nearvertex.neighbors import NearestVertexFinder, find_nearest_vertices
from nearvertex.surface import ComputeSurface

__version__ = '1.0.0'
