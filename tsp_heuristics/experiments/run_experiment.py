"""CLI experiment runner with organized directory structure."""

import argparse
import glob
import shutil
import time
from pathlib import Path
from typing import Optional, Tuple

from ..model.instance_generator import generate_instance_set
from .run_all import run_all_experiments, MATRIX_SUFFIXES


def setup_experiment(
    instances_source: str,
    experiment_name: Optional[str] = None,
    copy_instances: bool = True,
    base_dir: str = 'experiments',
) -> Tuple[Path, Path]:
    """
    Set up experiment directories.

    Args:
        instances_source: Path to source matrices (directory, glob pattern, or single file)
        experiment_name: Name for experiment (default: based on source)
        copy_instances: If True, copy matrices to the experiment directory
        base_dir: Parent directory of all experiments

    Returns:
        Tuple of (instances_dir, output_dir)
    """
    source_path = Path(instances_source)

    if source_path.is_file() and source_path.suffix.lower() in MATRIX_SUFFIXES:
        instance_files = [str(source_path)]
        base_name = source_path.stem
    elif source_path.is_dir():
        instance_files = sorted(
            str(p) for p in source_path.iterdir() if p.suffix.lower() in MATRIX_SUFFIXES
        )
        base_name = source_path.name
    elif '*' in instances_source:
        instance_files = sorted(glob.glob(instances_source))
        base_name = instances_source.replace('*', '').replace('/', '_').replace('\\', '_').strip('_')
        if not base_name or base_name == '_':
            base_name = 'filtered'
    else:
        raise ValueError(f"Invalid instances source: {instances_source}")

    if not instance_files:
        raise ValueError(f"No matrix files found matching: {instances_source}")

    if experiment_name is None:
        experiment_name = base_name

    experiment_dir = Path(base_dir) / experiment_name
    instances_dir = experiment_dir / 'instances'
    output_dir = experiment_dir / 'results'

    output_dir.mkdir(parents=True, exist_ok=True)

    if not copy_instances and source_path.is_dir():
        instances_dir = source_path
    else:
        instances_dir.mkdir(parents=True, exist_ok=True)
        for src_file in instance_files:
            shutil.copy2(src_file, instances_dir / Path(src_file).name)
        print(f"Copied {len(instance_files)} matrices to {instances_dir}")

    return instances_dir, output_dir


def main():
    """CLI entry point for running experiments."""
    parser = argparse.ArgumentParser(
        description='Compare TSP algorithms on a set of distance matrices',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate 3 random matrices of 6, 8 and 10 cities and run everything on them
  python -m tsp_heuristics.experiments.run_experiment instances/ --generate --per-size 3 --name small

  # Run on existing TSPLIB files only
  python -m tsp_heuristics.experiments.run_experiment "tsplib/*.tsp" --name tsplib --exact-max 0

  # Run with custom GRASP parameters
  python -m tsp_heuristics.experiments.run_experiment instances/ --name test \\
    --k 5 --time 10 --local-time 1 --seed 7
        """
    )

    parser.add_argument(
        'instances',
        type=str,
        help='Path to matrices: directory, glob pattern (e.g., "instances/n08_*.txt"), or single file'
    )
    parser.add_argument('--name', type=str, default=None,
                        help='Experiment name (default: based on source)')
    parser.add_argument('--no-copy', action='store_true',
                        help='Do not copy matrices (use source directory directly)')

    # Instance generation
    parser.add_argument('--generate', action='store_true',
                        help='Generate random matrices into the instances directory first')
    parser.add_argument('--sizes', type=int, nargs='+', default=[6, 8, 10],
                        help='City counts of generated matrices (default: 6 8 10)')
    parser.add_argument('--per-size', type=int, default=2,
                        help='Generated matrices per size (default: 2)')
    parser.add_argument('--no-link-prob', type=float, default=0.1,
                        help='Probability of a missing edge in generated matrices (default: 0.1)')

    # GRASP parameters
    parser.add_argument('--k', type=int, default=3,
                        help='GRASP restricted candidate list size (default: 3)')
    parser.add_argument('--time', type=float, default=5.0,
                        help='GRASP time budget per instance in seconds (default: 5)')
    parser.add_argument('--local-time', type=float, default=1.0,
                        help='Time budget of each 2-opt run in seconds (default: 1)')

    parser.add_argument('--exact-max', type=int, default=10,
                        help='Largest instance solved by brute force (default: 10)')
    parser.add_argument('--no-link', type=str, default='auto',
                        help="Missing-edge convention: 'auto', 'zero' or a threshold (default: auto)")
    parser.add_argument('--seed', type=int, default=42,
                        help='Random seed (default: 42)')

    args = parser.parse_args()

    if args.generate:
        generate_instance_set(
            output_dir=args.instances,
            sizes=args.sizes,
            per_size=args.per_size,
            no_link_prob=args.no_link_prob,
            base_seed=args.seed,
        )

    print(f"\n{'='*70}")
    print(f"Setting up experiment: {args.name or 'unnamed'}")
    print(f"{'='*70}")

    instances_dir, output_dir = setup_experiment(
        args.instances,
        experiment_name=args.name,
        copy_instances=not args.no_copy
    )

    print(f"Instances directory: {instances_dir}")
    print(f"Results directory: {output_dir}")

    grasp_params = {
        'k': args.k,
        'time_budget': args.time,
        'local_search_time_budget': args.local_time,
    }

    print("\nAlgorithm parameters:")
    print(f"  GRASP: k={args.k}, time={args.time}s, local_time={args.local_time}s")
    print(f"  Exact: n <= {args.exact_max}")
    print(f"  No-link: {args.no_link}, seed={args.seed}")

    print(f"\n{'='*70}")
    print("Running experiments...")
    print(f"{'='*70}\n")

    start_time = time.time()

    run_all_experiments(
        instances_dir=str(instances_dir),
        output_dir=str(output_dir),
        grasp_params=grasp_params,
        exact_max_cities=args.exact_max,
        no_link=args.no_link,
        seed=args.seed,
    )

    elapsed = time.time() - start_time

    print(f"\n{'='*70}")
    print("Experiment complete!")
    print(f"Total time: {elapsed:.1f} seconds ({elapsed/60:.1f} minutes)")
    print(f"Results saved to: {output_dir}")
    print(f"{'='*70}")


if __name__ == '__main__':
    main()
