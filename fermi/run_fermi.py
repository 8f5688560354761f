"""
Top-Level Driver for the fermi diffusion element library
=========================================================

Runs the bare reactor benchmarks end to end:
    1. Build a structured mesh (segment2 / quad4 / hex8)
    2. Assemble A and F from the elemental matrices
    3. Solve the k-eigenvalue problem by power iteration
    4. Compare keff with the analytical value

Usage:
    # From project root:
    python -m fermi.run_fermi --benchmark all

    # Or programmatically:
    from fermi.run_fermi import run_benchmarks
    results = run_benchmarks(['--benchmark', 'slab', '--elements', '40'])
"""

import argparse
import logging
import os
import time


def run_benchmarks(argv=None):
    """Parse arguments, run the benchmarks and return their result dicts."""
    parser = argparse.ArgumentParser(
        description='fermi one-group diffusion benchmarks',
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        '--benchmark', type=str, default='all',
        choices=['slab', 'square', 'cube', 'all'],
        help='Benchmark geometry:\n'
             '  slab   = 1D bare slab, segment2 elements\n'
             '  square = 2D bare square, quad4 elements\n'
             '  cube   = 3D bare cube, hex8 elements\n'
             '  all    = all of the above (default)'
    )
    parser.add_argument(
        '--elements', type=int, default=None,
        help='Divisions per direction (default depends on geometry)'
    )
    parser.add_argument(
        '--plot', type=str, default=None, metavar='DIR',
        help='Write flux plots of the 1D/2D benchmarks to DIR'
    )
    parser.add_argument(
        '--verbose', '-v', action='store_true',
        help='Log solver progress'
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s: %(message)s',
    )

    from fermi.validation.analytical_benchmarks import run_all_benchmarks

    if args.benchmark == 'all':
        geometries = ('slab', 'square', 'cube')
    else:
        geometries = (args.benchmark,)

    t_start = time.time()
    results = run_all_benchmarks(geometries=geometries, n_elements=args.elements)
    print(f"Elapsed: {time.time() - t_start:.2f} s")

    if args.plot:
        from fermi.postprocessing.visualization import save_flux_plot
        for res in results:
            if res['geometry'] == 'cube':
                continue
            filename = os.path.join(args.plot, f"flux_{res['geometry']}.png")
            save_flux_plot(res['mesh'], res['flux'], filename,
                           title=f"{res['geometry']}: keff = {res['keff_fe']:.6f}")
            print(f"Saved {filename}")

    return results


def main(argv=None):
    """CLI entry point."""
    run_benchmarks(argv)


if __name__ == '__main__':
    main()
