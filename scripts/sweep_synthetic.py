#!/usr/bin/env python3
"""Sweep delta on a synthetic dataset and print the resulting state.

Usage:
    python scripts/sweep_synthetic.py --classes 3 --attributes 16 \
        --realizations 24 --spread 40 --workers 4
"""
import argparse
import logging

import numpy as np

from satpr import ExamReport, optimize_delta, run_pipeline
from satpr.synthetic import make_dataset


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--classes", type=int, default=2)
    parser.add_argument("--attributes", type=int, default=16)
    parser.add_argument("--realizations", type=int, default=24)
    parser.add_argument("--spread", type=int, default=30)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--criterion", choices=("shannon", "kullback"),
                        default="shannon")
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    rng = np.random.default_rng(args.seed)
    means = [rng.integers(20, 236, size=args.attributes).tolist()
             for _ in range(args.classes)]
    training = make_dataset(means, args.realizations,
                            spread=args.spread, seed=args.seed)
    exam_set = make_dataset(means, args.realizations,
                            spread=args.spread, seed=args.seed + 1000)

    result = optimize_delta(training, args.criterion,
                            max_workers=args.workers)
    print(result.summary())
    print()

    state = run_pipeline(training, result.best_delta, exam_classes=exam_set)
    print(state.summary())
    print()

    rows, expected = [], []
    for k, binary in enumerate(state.exam_binaries):
        rows.extend(state.classify(binary))
        expected.extend([k] * binary.n_realizations)
    print(ExamReport(rows, expected, n_classes=args.classes).summary())


if __name__ == "__main__":
    main()
