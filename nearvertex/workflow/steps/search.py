def step_search(ctx, target):
    ctx['finder'].search(target['contacts'], target['vertices'], target['target'])
    return target

def step_extract(ctx, search):
    result = ctx['finder'].extract(search['target'], search['num_contacts'])
    found = int((result.indices > 0).sum())
    ctx['logger'].info(f'Cell {ctx["cell_id"]}: {found}/{len(result)} contacts matched to a vertex')
    return result
