from nearvertex.workflow import create_and_configure_workflow
import psutil
import logging
import time

logger = logging.getLogger(__name__)

def process_cell(data, args, surface):
    '''
    Run the full nearest vertex pipeline for one cell.

    Args:
        data (dict): {'cell_id', 'contacts' (n, 3), 'vertices' (m, 3)}.
        args (SearchConfig): Run configuration.
        surface (ComputeSurface): Device context the grids are created on.

    Returns:
        ExtractionResult: Output of the 'extract' step.
    '''
    process = psutil.Process()
    cell_id = data['cell_id']

    time_start = time.perf_counter()
    memory_start = process.memory_info().rss / 1024 ** 2

    logger.info(
        f'Cell {cell_id}: {len(data["contacts"])} contacts, {len(data["vertices"])} vertices '
        f'(memory {memory_start:.1f} MiB)'
    )

    try:
        ctx = {
            'cell_id': cell_id,
            'data': data,
            'args': args,
            'surface': surface,
            'logger': logger
        }

        # Grids live exactly as long as this run
        with surface.run_scope():
            workflow = create_and_configure_workflow(ctx=ctx)
            outputs = workflow.run()

        total_time = time.perf_counter() - time_start
        memory_end = process.memory_info().rss / 1024 ** 2
        logger.info(
            f'Cell {cell_id} completed in {total_time:.3f}s '
            f'(Memory {memory_end:.1f} MiB, total: {memory_end - memory_start:+.1f} MiB)'
        )
        return outputs['extract']
    except Exception as e:
        logger.error(f'Error in cell {cell_id}: {e}', exc_info=args.verbose)
        raise
