class NearestVertexError(Exception):
    '''
    Base class for every failure raised by the nearest vertex pipeline.
    '''

class CapabilityError(NearestVertexError, RuntimeError):
    '''
    The compute surface cannot hold floating point grids (no usable CUDA device).
    '''
    def __init__(self, message='Floating point grids are not supported on this device.'):
        super().__init__(message)

class TargetValidationError(NearestVertexError, RuntimeError):
    '''
    The output render target failed validation. The failing status is kept
    on the exception so callers can tell the reasons apart.
    '''
    def __init__(self, status):
        super().__init__(f'Render target is not usable ({status.reason.name}): {status.message}')
        self.status = status

class CapacityOverflowError(NearestVertexError, ValueError):
    def __init__(self, length, capacity):
        super().__init__(
            f'Point set of length {length} does not fit a grid of capacity {capacity}'
        )
        self.length = length
        self.capacity = capacity

class PipelineTimeoutError(NearestVertexError, TimeoutError):
    pass

class RecordFormatError(NearestVertexError, ValueError):
    pass
