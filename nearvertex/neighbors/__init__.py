from .nearest_vertex import NearestVertexFinder, NearestVertexProgram, find_nearest_vertices
from .extractor import ResultExtractor, ExtractionResult
