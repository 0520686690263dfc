from nearvertex.core.search_config import SearchConfig
from nearvertex.core.engine import NearestVertexAnalysis
from nearvertex.core.errors import NearestVertexError
import argparse
import logging
import sys

def parse_call_args(argv=None) -> SearchConfig:
    parser = argparse.ArgumentParser(
        description='GPU brute-force nearest mesh vertex assignment for contact points'
    )
    parser.add_argument('contacts_dir', help='Directory with conns-<id>.json files and the cell list')
    parser.add_argument('--vertices-dir', default=None, help='Directory with decoded <id>.npy/<id>.json vertices (default: contacts_dir)')
    parser.add_argument('--output-dir', '-o', default='connsData2', help='Directory for augmented contact files')
    parser.add_argument('--cells', nargs='+', default=None, help='Cell ids to process (default: read the cell list)')
    parser.add_argument('--cell-list', default='conns-list.json', help='Cell list file inside contacts_dir')
    parser.add_argument('--rows', type=int, default=1024, help='Grid rows')
    parser.add_argument('--columns', type=int, default=1024, help='Grid columns')
    parser.add_argument(
        '--termination',
        choices=['length', 'sentinel'],
        default='length',
        help='End of data by explicit length, or by the first point with x == 0.0'
    )
    parser.add_argument('--position-field', default='position', help='Contact record field holding {x, y, z}')
    parser.add_argument('--output-field', default='nearestVertexIndex', help='Field written onto each contact')
    parser.add_argument('--threads-per-block', type=int, default=16, help='CUDA block edge length')
    parser.add_argument('--timeout', type=float, default=None, help='Seconds allowed per cell')
    parser.add_argument('--on-error', choices=['abort', 'skip'], default='abort', help='What to do when a cell fails')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    args = parser.parse_args(argv)

    return SearchConfig(
        contacts_dir=args.contacts_dir,
        vertices_dir=args.vertices_dir,
        output_dir=args.output_dir,
        cells=args.cells,
        cell_list=args.cell_list,
        rows=args.rows,
        columns=args.columns,
        termination=args.termination,
        position_field=args.position_field,
        output_field=args.output_field,
        threads_per_block=args.threads_per_block,
        timeout=args.timeout,
        on_error=args.on_error,
        verbose=args.verbose,
    )

def main(argv=None):
    config = parse_call_args(argv)

    analysis = NearestVertexAnalysis(config)
    try:
        results = analysis.run()
    except (NearestVertexError, OSError, ValueError) as e:
        logging.getLogger(__name__).error(f'Nearest vertex run aborted: {e}')
        return 1
    return 0 if all(result.ok for result in results) else 2

if __name__ == '__main__':
    sys.exit(main())
