from numba import cuda
import math

@cuda.jit
def nearest_vertex_kernel(
    contacts,
    vertices,
    num_contacts,
    num_vertices,
    use_sentinel,
    out
):
    '''
    Brute-force nearest vertex search, one thread per output texel.

    For texel (row, col):
        - Skip it if it lies past the contact data (by count, or by a zero
          x coordinate in sentinel mode). The output texel keeps its cleared 0.0.
        - Scan every vertex texel row-major, counting positions from 1.
          The scan stops at the first texel past the vertex data, so k
          vertices take k + 1 attempts.
        - Keep the first position with the strictly smallest squared distance.

    Args:
        contacts (float32[rows, columns, 3]): Query grid.
        vertices (float32[rows, columns, 3]): Reference grid.
        num_contacts (int): Valid contact texels (ignored in sentinel mode).
        num_vertices (int): Valid vertex texels (ignored in sentinel mode).
        use_sentinel (bool): Terminate on x == 0.0 instead of on counts.
        out (float32[rows, columns, 3]): Channel 0 gets the 1-based index of the
                                          nearest vertex (0 = none found), channel 1
                                          the squared distance to it and
                                          channel 2 the number of scan attempts.
    '''
    row, col = cuda.grid(2)
    rows = contacts.shape[0]
    columns = contacts.shape[1]
    if row >= rows or col >= columns:
        return

    cx = contacts[row, col, 0]
    if use_sentinel:
        if cx == 0.0:
            return
    elif row * columns + col >= num_contacts:
        return

    cy = contacts[row, col, 1]
    cz = contacts[row, col, 2]

    min_d2 = math.inf
    position = 0
    best = 0
    v_columns = vertices.shape[1]
    capacity = vertices.shape[0] * v_columns

    for flat in range(capacity):
        position += 1
        vr = flat // v_columns
        vc = flat - vr * v_columns
        vx = vertices[vr, vc, 0]
        if use_sentinel:
            if vx == 0.0:
                break
        elif flat >= num_vertices:
            break

        dx = cx - vx
        dy = cy - vertices[vr, vc, 1]
        dz = cz - vertices[vr, vc, 2]
        d2 = dx * dx + dy * dy + dz * dz
        if d2 < min_d2:
            min_d2 = d2
            best = position

    out[row, col, 0] = best
    if best > 0:
        out[row, col, 1] = min_d2
    out[row, col, 2] = position
