"""
Command-line scripts for running and tuning identification.

1. identify.py - identify probe images against the configured gallery
2. exp_threshold_sweep.py - evaluate acceptance thresholds on labeled probes

Running:
--------
From the project root:

    python experiments/identify.py photo.jpg --config configs/default.yaml
    python experiments/exp_threshold_sweep.py --probe_dir data/probes
"""
