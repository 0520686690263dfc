from nearvertex.codec.dense_grid import as_points
from nearvertex.core.errors import RecordFormatError
import numpy as np
import json
import os

class VertexLoader:
    '''
    Loads a cell's already decoded mesh vertices, either <id>.npy or <id>.json
    holding a flat [x0, y0, z0, x1, ...] or nested [[x, y, z], ...] array.
    '''
    def __init__(self, vertices_dir):
        self.vertices_dir = vertices_dir

    def load(self, cell_id):
        npy_path = os.path.join(self.vertices_dir, f'{cell_id}.npy')
        json_path = os.path.join(self.vertices_dir, f'{cell_id}.json')

        if os.path.exists(npy_path):
            path = npy_path
            data = np.load(npy_path, allow_pickle=False)
        elif os.path.exists(json_path):
            path = json_path
            with open(json_path, 'r') as file:
                data = json.load(file)
        else:
            raise FileNotFoundError(f'No vertices for cell {cell_id} in {self.vertices_dir}')

        try:
            return as_points(data)
        except (ValueError, TypeError) as e:
            raise RecordFormatError(f'{path}: {e}') from e
