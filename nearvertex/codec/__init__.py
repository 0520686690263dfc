from .dense_grid import Grid, encode, decode, decode_points, sentinel_length
