import argparse
import logging
import sys
import time
from pathlib import Path

import numpy as np

# Allow running as: python experiments/quick_adaboost_eval.py
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adaboost_trainer import AdaBoostM1, AdaBoostParams
from records import Record
from tree_builder import DecisionStump, stump_generator, train


def _train_test_split(records, test_size, rng):
    idx = np.arange(len(records))
    rng.shuffle(idx)
    n_test = max(1, int(round(len(records) * test_size)))
    test = [records[i] for i in idx[:n_test]]
    train_ = [records[i] for i in idx[n_test:]]
    return train_, test


def load_dataset(name: str, n_samples: int, random_state: int):
    rng = np.random.default_rng(random_state)
    key = name.lower()
    records = []

    if key == "ring":
        # Class 1 inside a ring, class 0 elsewhere; no single threshold separates it.
        for _ in range(n_samples):
            x, y = rng.uniform(-2.0, 2.0, size=2)
            r = float(np.hypot(x, y))
            target = int(0.7 <= r <= 1.5)
            records.append(
                Record.from_values({"x": float(x), "y": float(y)}, target=target, continuous=["x", "y"])
            )
    elif key == "mixed":
        colors = ["red", "green", "blue", "grey"]
        for _ in range(n_samples):
            size = float(rng.normal())
            color = str(rng.choice(colors))
            shape = str(rng.choice(["round", "square"]))
            score = size + (0.8 if color in {"red", "green"} else -0.6) + (0.3 if shape == "round" else 0.0)
            target = "yes" if score + 0.4 * rng.normal() > 0.2 else "no"
            records.append(
                Record.from_values(
                    {"size": size, "color": color, "shape": shape},
                    target=target,
                    continuous=["size"],
                )
            )
    else:
        raise ValueError(f"Unknown dataset '{name}'. Choose from: ring, mixed")

    return records


def evaluate_one(train_records, test_records, max_models, max_depth, sampling, random_state):
    out = {}

    t0 = time.perf_counter()
    stump = DecisionStump(train_records)
    out["stump"] = (stump.success_rate(test_records), time.perf_counter() - t0)

    t0 = time.perf_counter()
    tree = train(train_records, max_depth=max_depth)
    out[f"tree(depth={max_depth})"] = (tree.success_rate(test_records), time.perf_counter() - t0)

    params = AdaBoostParams(max_models=max_models, sampling=sampling, random_state=random_state)
    t0 = time.perf_counter()
    model = AdaBoostM1(stump_generator(), params).fit(train_records)
    out[f"adaboost({sampling})"] = (model.success_rate(test_records), time.perf_counter() - t0)
    return out, model.metrics


def main():
    parser = argparse.ArgumentParser(description="Quick AdaBoost.M1 checks on synthetic records")
    parser.add_argument(
        "--datasets",
        type=str,
        default="ring,mixed",
        help="Comma-separated: ring, mixed",
    )
    parser.add_argument("--n-samples", type=int, default=600)
    parser.add_argument("--max-models", type=int, default=30)
    parser.add_argument("--max-depth", type=int, default=4)
    parser.add_argument(
        "--sampling",
        type=str,
        default="reweight,resample",
        help="Comma-separated: reweight, resample",
    )
    parser.add_argument("--random-state", type=int, default=42)
    parser.add_argument("-v", "--verbose", action="store_true", help="Log boosting rounds.")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    datasets = [d.strip() for d in args.datasets.split(",") if d.strip()]
    if not datasets:
        raise ValueError("No datasets provided")
    modes = [m.strip() for m in args.sampling.split(",") if m.strip()]

    for ds_name in datasets:
        records = load_dataset(ds_name, args.n_samples, args.random_state)
        rng = np.random.default_rng(args.random_state)
        train_records, test_records = _train_test_split(records, test_size=0.25, rng=rng)
        print(f"\nDataset={ds_name} n_train={len(train_records)} n_test={len(test_records)}")

        for mode in modes:
            results, boost_metrics = evaluate_one(
                train_records,
                test_records,
                max_models=args.max_models,
                max_depth=args.max_depth,
                sampling=mode,
                random_state=args.random_state,
            )
            for name, (rate, fit_time) in results.items():
                print(f"{name:<22} success_rate={rate:.3f} time={fit_time:.3f}s")
            print(
                "  diagnostics"
                f" models={boost_metrics['n_models']}"
                f" retries={boost_metrics['retries_used']}"
                f" stop={boost_metrics['stop_reason']}"
            )


if __name__ == "__main__":
    main()
