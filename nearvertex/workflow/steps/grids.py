from nearvertex.neighbors.nearest_vertex import NearestVertexFinder

def step_grids(ctx):
    args = ctx['args']
    finder = NearestVertexFinder(
        contacts=ctx['data']['contacts'],
        vertices=ctx['data']['vertices'],
        surface=ctx['surface'],
        termination=args.termination
    )
    ctx['finder'] = finder
    contacts_grid, vertices_grid = finder.encode_grids()
    ctx['logger'].debug(
        f'Encoded {contacts_grid.length} contacts and {vertices_grid.length} vertices '
        f'into {contacts_grid.rows}x{contacts_grid.columns} grids'
    )
    return {'contacts': contacts_grid, 'vertices': vertices_grid}

def step_target(ctx, grids):
    d_contacts, d_vertices, target = ctx['finder'].allocate(grids['contacts'], grids['vertices'])
    return {
        'contacts': d_contacts,
        'vertices': d_vertices,
        'target': target,
        'num_contacts': grids['contacts'].length
    }
