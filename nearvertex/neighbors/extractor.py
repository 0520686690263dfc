from nearvertex.codec.dense_grid import sentinel_length, CHANNELS
from dataclasses import dataclass
import numpy as np

@dataclass
class ExtractionResult:
    # 1-based vertex index per contact, 0 when no vertex was found
    indices: np.ndarray
    # Squared distance to that vertex
    distances: np.ndarray
    # Vertex texels scanned per contact (terminating attempt included)
    attempts: np.ndarray

    def __len__(self):
        return int(self.indices.shape[0])

class ResultExtractor:
    '''
    Reads the kernel's output grid back to the host and compacts it into
    one entry per processed contact.
    '''
    def read(self, target):
        # copy_to_host blocks until the device has finished writing
        texels = target.attachment.copy_to_host()
        return texels.reshape(-1, CHANNELS)

    def compact(self, flat, length=None):
        '''
        Args:
            flat (np.ndarray): (capacity, 3) readback buffer.
            length (int | None): Valid contact count. When None the length is
                                 taken from the first texel whose index channel
                                 is exactly 0.0.

        Returns:
            ExtractionResult
        '''
        if length is None:
            length = sentinel_length(flat[:, 0])
        length = min(int(length), flat.shape[0])
        return ExtractionResult(
            indices=flat[:length, 0].astype(np.int64),
            distances=flat[:length, 1].copy(),
            attempts=flat[:length, 2].astype(np.int64)
        )

    def extract(self, target, length=None):
        '''
        Read the output grid back and compact it.

        With an explicit `length` (length termination) every processed
        contact gets an entry, and 0 marks a contact with no vertex found.
        Without one (sentinel termination) the first 0 index ends the data.
        An empty vertex set therefore yields an empty result in sentinel
        mode, and the exporter writes null for every record.
        '''
        return self.compact(self.read(target), length)
