import argparse
import logging
import sys
from time import perf_counter
from typing import Optional, Sequence

from pydantic import ValidationError

from kmeans_validity import (
    ClusteringConfig,
    ClusteringError,
    ClusteringResults,
    ConfigurationError,
    DatasetLoadError,
    load_dataset,
    perform,
)
from kmeans_validity.enums import DiameterMethod, KMeansInitMethod, LinkageMethod, NormalizationType
from kmeans_validity.logging_utils import setup_logging
from kmeans_validity.validators import ValidatorKind

logger = logging.getLogger("run_kmeans")

EXIT_LOAD_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_CLUSTERING_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run K-means and score the result with a cluster validity index.")
    parser.add_argument("dataset", type=str)
    parser.add_argument("--k", type=int, required=True)
    parser.add_argument("--max-iter", type=int, default=100)
    parser.add_argument("--convergence", type=float, default=0.001)
    parser.add_argument("--runs", type=int, default=1)
    parser.add_argument("--init", type=str, choices=[m.value for m in KMeansInitMethod], default="random-selection")
    parser.add_argument("--normalize", type=str, choices=[m.value for m in NormalizationType], default="none")
    parser.add_argument("--validator", type=str, default="calinski-harabasz")
    parser.add_argument("--linkage", type=str, choices=[m.value for m in LinkageMethod], default=None)
    parser.add_argument("--diameter", type=str, choices=[m.value for m in DiameterMethod], default="complete")
    parser.add_argument("--true-clusters", action="store_true")
    parser.add_argument("--random-on-tie", action="store_true")
    parser.add_argument("--maximin-index", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--profile", action="store_true")
    parser.add_argument("--log-level", type=str, default="WARNING")
    return parser


def _config_from_args(args: argparse.Namespace) -> ClusteringConfig:
    return ClusteringConfig(
        num_clusters=args.k,
        max_iterations=args.max_iter,
        convergence_threshold=args.convergence,
        num_runs=args.runs,
        init_method=args.init,
        normalization=args.normalize,
        validator=args.validator,
        linkage=args.linkage,
        diameter=args.diameter,
        random_on_multiple_nearest=args.random_on_tie,
        random_state=args.seed,
        maximin_initial_index=args.maximin_index,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = _config_from_args(args)
        validator = config.make_validator()
    except (ValidationError, ConfigurationError) as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        dataset = load_dataset(args.dataset, args.true_clusters, random_state=config.random_state)
    except DatasetLoadError as e:
        print(f"failed to load {args.dataset}: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    if validator.kind is ValidatorKind.EXTERNAL and not dataset.are_true_clusters_known:
        print(f"invalid configuration: {validator.name} needs --true-clusters", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        dataset.normalize(config.normalization)
        t0 = perf_counter()
        runs = perform(dataset, config, profile=args.profile)
        elapsed = perf_counter() - t0
        results = ClusteringResults(
            dataset,
            runs,
            validator,
            normalization=config.normalization,
            init_method=config.init_method,
        )
        print(results.format_text(), end="")
    except ClusteringError as e:
        logger.error("Clustering aborted: %s", e)
        print(f"clustering aborted: {e}", file=sys.stderr)
        return EXIT_CLUSTERING_ERROR

    if args.profile:
        print(f"kmeans elapsed: {elapsed:.6f} s")
        for run in runs:
            if run.timing is None:
                continue
            print(f"run {run.run_num + 1} timing breakdown (s):")
            for k in ("init_s", "assign_s", "repair_s", "update_s", "total_s"):
                if k in run.timing:
                    print(f"  {k}: {run.timing[k]:.6f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
