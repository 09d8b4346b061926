"""
Identify probe images against the configured gallery.

Loads the reference images listed in the configuration, fingerprints
them, then reports the accepted identity (or no match) for every probe.
"""

import sys
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from facehash.errors import InvalidImage
from facehash.matching import Identifier, rank_candidates
from facehash.registry import build_gallery
from facehash.utils.config import DEFAULT_CONFIG, load_config
from facehash.utils.io import load_image
from facehash.utils.logger import setup_logger


def run(probes, config_path=None, threshold=None, top_k=0):
    """
    Identify each probe file.

    Args:
        probes: Paths of probe images
        config_path: Optional path to config file
        threshold: Override for matching.threshold
        top_k: Also print the k closest identities

    Returns:
        Dictionary mapping probe path to matched name (None for no match)
    """
    config = load_config(config_path) if config_path else DEFAULT_CONFIG
    logger = setup_logger("facehash", level=config.logging.level)

    registry, loader = build_gallery(config)
    report = loader.load_all()
    for name, error in report.failed.items():
        logger.warning(f"Reference image for {name!r} unavailable: {error}")

    identifier = Identifier(
        registry,
        threshold=config.matching.threshold if threshold is None else threshold,
    )

    results = {}
    for probe in probes:
        try:
            fingerprint = identifier.extractor.extract(load_image(probe))
        except (FileNotFoundError, InvalidImage) as e:
            print(f"{probe}: error: {e}")
            results[probe] = None
            continue

        match = identifier.match(fingerprint)
        if match is None:
            print(f"{probe}: no match")
            results[probe] = None
        else:
            print(f"{probe}: {match.name} (distance {match.distance})")
            results[probe] = match.name

        if top_k:
            ranked = rank_candidates(fingerprint, registry.snapshot(), top_k=top_k)
            for identity, distance in ranked:
                print(f"    {identity.name}: {distance}")

    return results


def main():
    parser = argparse.ArgumentParser(
        description="Identify probe images against the reference gallery"
    )
    parser.add_argument(
        "probes",
        nargs="+",
        help="Probe image files"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/default.yaml",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Override the acceptance threshold"
    )
    parser.add_argument(
        "--top_k",
        type=int,
        default=0,
        help="Print the k closest identities for each probe"
    )

    args = parser.parse_args()

    results = run(
        args.probes,
        config_path=args.config,
        threshold=args.threshold,
        top_k=args.top_k
    )
    sys.exit(0 if any(v is not None for v in results.values()) else 1)


if __name__ == "__main__":
    main()
