from numba import cuda
import math

def get_cuda_launch_config(rows, columns, threads_per_block=16):
    '''
    2D launch configuration with one thread per texel of a rows x columns grid.
    '''
    threads = (threads_per_block, threads_per_block)
    blocks = (
        math.ceil(rows / threads_per_block),
        math.ceil(columns / threads_per_block)
    )
    return blocks, threads

def describe_current_device():
    '''
    Name, compute capability and SM count of the active device. The numba
    simulator has no device query, so it is reported as such.
    '''
    get_device = getattr(cuda, 'get_current_device', None)
    if get_device is None:
        return {'name': 'simulator', 'compute_capability': (), 'multiprocessors': None}
    device = get_device()
    name = device.name.decode() if isinstance(device.name, bytes) else device.name
    return {
        'name': name,
        'compute_capability': tuple(getattr(device, 'compute_capability', ())),
        'multiprocessors': getattr(device, 'MULTIPROCESSOR_COUNT', None)
    }
