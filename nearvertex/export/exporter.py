from nearvertex.parser.contacts import ContactsParser
import logging
import json
import os

logger = logging.getLogger(__name__)

class ContactExporter:
    '''
    Writes a cell's contact records back out with the nearest vertex index
    of every record stored under `output_field`.
    '''
    def __init__(self, output_dir='connsData2', output_field='nearestVertexIndex'):
        self.output_dir = output_dir
        self.output_field = output_field

    def annotate(self, conns, indices):
        '''
        Set output_field on each record, in record order. Records past the
        end of `indices` (sentinel-terminated runs) get None.
        '''
        missing = 0
        for position, record in enumerate(ContactsParser.iter_records(conns)):
            if position < len(indices):
                record[self.output_field] = int(indices[position])
            else:
                record[self.output_field] = None
                missing += 1
        if missing:
            logger.warning(f'{missing} contacts have no nearest vertex result')
        return conns

    def write(self, cell_id, conns, indices):
        os.makedirs(self.output_dir, exist_ok=True)
        output_filename = os.path.join(self.output_dir, f'conns-{cell_id}.json')
        partial_filename = output_filename + '.part'

        self.annotate(conns, indices)
        with open(partial_filename, 'w') as file:
            json.dump(conns, file)
            file.flush()
            os.fsync(file.fileno())
        os.replace(partial_filename, output_filename)

        logger.info(f'Cell {cell_id} written to "{output_filename}"')
        return output_filename
