from nearvertex.core.errors import RecordFormatError
from pydantic import BaseModel, ValidationError
from typing import Any, Dict, Iterator, List
import numpy as np
import json
import os

class Position(BaseModel):
    x: float
    y: float
    z: float

class ContactsParser:
    '''
    Reader for per-cell contact files (conns-<id>.json).

    A contact file maps sub-cell names to lists of contact records; each
    record carries its coordinates as {x, y, z} under `position_field`.
    A bare list of records is accepted as well. Record order is kept.
    '''
    def __init__(self, contacts_dir, position_field='position'):
        self.contacts_dir = contacts_dir
        self.position_field = position_field

    def path_for(self, cell_id):
        return os.path.join(self.contacts_dir, f'conns-{cell_id}.json')

    def load_cell_list(self, filename='conns-list.json') -> List[str]:
        path = os.path.join(self.contacts_dir, filename)
        with open(path, 'r') as file:
            cells = json.load(file)
        if not isinstance(cells, list):
            raise RecordFormatError(f'{path}: expected a JSON array of cell ids')
        return [str(cell) for cell in cells]

    def load(self, cell_id):
        path = self.path_for(cell_id)
        with open(path, 'r') as file:
            conns = json.load(file)
        if not isinstance(conns, (dict, list)):
            raise RecordFormatError(f'{path}: expected an object or array of contacts')
        return conns

    @staticmethod
    def iter_records(conns) -> Iterator[Dict[str, Any]]:
        groups = conns.items() if isinstance(conns, dict) else [('contacts', conns)]
        for name, group in groups:
            if not isinstance(group, list):
                raise RecordFormatError(f'"{name}" is not a list of contact records')
            for record in group:
                yield record

    def positions(self, conns, cell_id='?'):
        '''
        Collect record coordinates into an (n, 3) float32 array.

        Raises:
            RecordFormatError: A record lacks a valid {x, y, z} position.
        '''
        points = []
        for index, record in enumerate(self.iter_records(conns)):
            try:
                position = Position.model_validate(record[self.position_field])
            except (KeyError, TypeError, ValidationError) as e:
                raise RecordFormatError(
                    f'Cell {cell_id}: contact {index} has no valid "{self.position_field}": {e}'
                ) from e
            points.append((position.x, position.y, position.z))
        return np.asarray(points, dtype=np.float32).reshape(-1, 3)
