"""
Experiment: acceptance threshold sweep

Evaluates identification of labeled probe images against the configured
gallery across a range of acceptance thresholds, and reports the
threshold with the best true-accept / false-accept trade-off.

Probe directory layout: either one subdirectory per identity
(probes/nd/1.jpg) or flat files named <identity>_<n>.jpg. Identities
not in the gallery are treated as impostors.
"""

import sys
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from facehash.errors import InvalidImage
from facehash.evaluation import IdentificationEvaluator
from facehash.registry import build_gallery
from facehash.utils.config import DEFAULT_CONFIG, get_extra_config, load_config
from facehash.utils.io import discover_images, group_images_by_identity, load_image, save_json
from facehash.utils.logger import RunLogger


def load_probes(probe_dir, logger):
    """
    Load labeled probe images.

    Returns:
        List of (identity, image) tuples
    """
    images = discover_images(probe_dir)
    groups = group_images_by_identity(images, probe_dir)

    probes = []
    for name, paths in sorted(groups.items()):
        for path in paths:
            try:
                probes.append((name, load_image(path)))
            except InvalidImage as e:
                logger.warning(f"Skipping unreadable probe {path}: {e}")
    return probes


def run_experiment(probe_dir, output_dir, config_path=None):
    """
    Run the threshold sweep.

    Args:
        probe_dir: Directory of labeled probe images
        output_dir: Directory for results
        config_path: Optional path to config file

    Returns:
        IdentificationResult
    """
    config = load_config(config_path) if config_path else DEFAULT_CONFIG
    logger = RunLogger(
        "threshold_sweep",
        log_dir=config.logging.log_dir,
        level=config.logging.level,
        file_output=config.logging.save_results,
    )

    sweep = get_extra_config(config, "experiment.thresholds", {}) or {}
    bits = config.fingerprint.grid_size ** 2
    thresholds = list(range(
        int(sweep.get("start", 0)),
        int(sweep.get("stop", bits)) + 1,
        int(sweep.get("step", 8)),
    ))

    logger.log_params({
        "probe_dir": str(probe_dir),
        "grid_size": config.fingerprint.grid_size,
        "resample": config.fingerprint.resample,
        "thresholds": [thresholds[0], thresholds[-1]] if thresholds else [],
    })

    registry, loader = build_gallery(config)
    report = loader.load_all()
    if report.failed:
        logger.warning(f"{len(report.failed)} reference images failed to load")

    probes = load_probes(probe_dir, logger)
    logger.info(f"Loaded {len(probes)} probe images")

    evaluator = IdentificationEvaluator(registry)
    result = evaluator.evaluate(probes, thresholds=thresholds)

    for m in result.metrics:
        logger.log_metric("true_accept_rate", m.true_accept_rate, step=m.threshold)
        logger.log_metric("false_accept_rate", m.false_accept_rate, step=m.threshold)

    summary = result.to_dict()
    logger.log_results({
        "num_genuine": result.num_genuine,
        "num_impostor": result.num_impostor,
        "best_threshold": summary["best_threshold"],
    })

    output_path = Path(output_dir)
    save_json(summary, output_path / "threshold_sweep.json")
    if config.logging.save_results:
        logger.save_metrics()

    print(result)
    return result


def main():
    parser = argparse.ArgumentParser(
        description="Acceptance threshold sweep over labeled probe images"
    )
    parser.add_argument(
        "--probe_dir",
        type=str,
        default="data/probes",
        help="Directory of labeled probe images"
    )
    parser.add_argument(
        "--output_dir",
        type=str,
        default="results/threshold_sweep",
        help="Output directory for results"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/default.yaml",
        help="Path to configuration file"
    )

    args = parser.parse_args()

    run_experiment(
        probe_dir=args.probe_dir,
        output_dir=args.output_dir,
        config_path=args.config
    )


if __name__ == "__main__":
    main()
