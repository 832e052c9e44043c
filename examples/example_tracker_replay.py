"""
Example: Replaying a walk through the indoor position tracker

Feeds a recorded (or inline simulated) phone-in-hand walk through
SensorBridge -> IndoorPositionTracker, once per step detection strategy, and
compares detected steps and the dead-reckoned path against ground truth.

Can run with:
    - Pre-generated dataset:
        python -m examples.example_tracker_replay --data data/sim/pdr_corridor_walk
    - Inline data (default):
        python -m examples.example_tracker_replay

Shows:
    - Adaptive threshold vs fixed threshold step detection
    - Heading calibration against the first compass reading
    - Offline cross-check with scipy.signal.find_peaks
"""

import argparse
import time
from pathlib import Path
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np

from indoor_pdr.eval import (
    compute_error_stats,
    compute_position_errors,
    detection_latency,
    final_position_error,
    reference_step_indices,
    step_count_error,
)
from indoor_pdr.sensors import DetectionAlgorithm, LowPassFilter, accel_magnitude_series
from indoor_pdr.sim import WalkSession, corridor_heading_profile, generate_walk, load_session
from indoor_pdr.tracker import (
    IndoorPositionTracker,
    SensorBridge,
    SensorStream,
    TrackerConfig,
    load_config,
    replay_session,
)
from indoor_pdr.utils import configure_logging


def run_tracker(session: WalkSession, config: TrackerConfig) -> Dict:
    """Replay `session` through a fresh tracker built from `config`.

    Returns:
        Dictionary with detected step times, post-step positions [x, z],
        the final TrackerStats and the processing time.
    """
    tracker = IndoorPositionTracker(config)
    bridge = SensorBridge(tracker)
    if len(session.t_orientation) == 0:
        bridge.report_unavailable(SensorStream.ORIENTATION, "no orientation in dataset")

    start = time.time()
    steps = replay_session(bridge, session)
    elapsed = time.time() - start

    t0 = session.t_motion[0] if len(session.t_motion) else 0.0
    step_times = np.array([t0 + u.event.timestamp_ms / 1000.0 for u in steps])
    positions = np.array([u.position.horizontal() for u in steps]).reshape(-1, 2)

    return {
        'step_times': step_times,
        'positions': positions,
        'stats': tracker.get_stats(),
        'elapsed': elapsed,
    }


def print_results(name: str, session: WalkSession, results: Dict) -> None:
    stats = results['stats']
    counts = step_count_error(stats.step_count, session.num_steps)
    final_err = final_position_error(session.positions, results['positions'])
    latency = detection_latency(session.step_times, results['step_times'])

    print(f"\n{name}:")
    print(f"  Processing time: {results['elapsed']:.3f} s")
    print(f"  Steps detected:  {stats.step_count}/{session.num_steps} "
          f"(missed {counts['missed']:.0f}, extra {counts['extra']:.0f})")
    print(f"  Final threshold: {stats.threshold:.2f} m/s^2 (std {stats.std_dev:.2f})")
    print(f"  Final error:     {final_err:.2f} m")
    if np.any(np.isfinite(latency)):
        print(f"  Mean latency:    {np.nanmean(latency) * 1000:.0f} ms")

    if len(results['positions']) == session.num_steps and session.num_steps > 0:
        errors = compute_position_errors(session.positions, results['positions'])
        err_stats = compute_error_stats(errors)
        print(f"  Per-step error:  mean {err_stats['mean']:.2f} m, "
              f"p90 {err_stats['p90']:.2f} m, max {err_stats['max']:.2f} m")


def plot_results(
    session: WalkSession,
    results: Dict[str, Dict],
    magnitude: np.ndarray,
    filtered: np.ndarray,
    reference_idx: np.ndarray,
    show: bool = True,
) -> None:
    figs_dir = Path(__file__).parent / 'figs'
    figs_dir.mkdir(exist_ok=True)

    print("\nGenerating plots...")

    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    fig.suptitle('Indoor Tracker: Walk Replay', fontsize=14, fontweight='bold')
    colors = {'adaptive': 'b', 'threshold': 'r'}

    # Trajectory
    ax = axes[0, 0]
    ax.plot(session.positions[:, 0], session.positions[:, 1], 'k-', linewidth=3, label='True Path')
    for name, res in results.items():
        ax.plot(res['positions'][:, 0], res['positions'][:, 1], colors[name] + '--',
                linewidth=2, alpha=0.8, label=f'Tracker ({name})')
    ax.scatter(0, 0, c='g', s=150, marker='o', label='Start', zorder=5)
    ax.set_xlabel('x [m]')
    ax.set_ylabel('z [m]')
    ax.set_title('Dead-Reckoned Path')
    ax.legend()
    ax.grid(True, alpha=0.3)
    ax.axis('equal')

    # Magnitude with detections
    ax = axes[0, 1]
    t = session.t_motion
    ax.plot(t, magnitude, color='0.6', linewidth=1, label='Raw magnitude')
    ax.plot(t, filtered, 'k-', linewidth=1.5, label='Filtered')
    for name, res in results.items():
        ax.vlines(res['step_times'], 9.0, 9.4, colors=colors[name], label=f'Steps ({name})')
    ax.plot(t[reference_idx], magnitude[reference_idx], 'gx', label='find_peaks')
    ax.set_xlabel('Time [s]')
    ax.set_ylabel('|a| [m/s^2]')
    ax.set_title('Acceleration Magnitude')
    ax.legend(loc='upper right')
    ax.grid(True, alpha=0.3)

    # Per-step position error
    ax = axes[1, 0]
    for name, res in results.items():
        n = min(len(res['positions']), session.num_steps)
        if n == 0:
            continue
        err = np.linalg.norm(res['positions'][:n] - session.positions[:n], axis=1)
        ax.plot(np.arange(1, n + 1), err, colors[name] + '-', linewidth=2, label=name)
    ax.set_xlabel('Step')
    ax.set_ylabel('Position Error [m]')
    ax.set_title('Position Error per Step')
    ax.legend()
    ax.grid(True, alpha=0.3)

    # Detection latency
    ax = axes[1, 1]
    for name, res in results.items():
        latency = detection_latency(session.step_times, res['step_times'])
        ax.plot(res['step_times'], latency * 1000, colors[name] + 'o', label=name)
    ax.set_xlabel('Time [s]')
    ax.set_ylabel('Latency [ms]')
    ax.set_title('Detection Latency')
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    output_file = figs_dir / 'tracker_replay_results.svg'
    fig.savefig(output_file, dpi=300, bbox_inches='tight')
    print(f"  [OK] Saved: {output_file}")

    if show:
        plt.show()
    plt.close(fig)


def run_example(
    data_dir: Optional[str] = None,
    plot: bool = True,
    show: bool = True,
) -> Dict[str, Dict]:
    """Run both detection strategies on a dataset (or inline walk)."""
    print("\n" + "=" * 70)
    if data_dir is not None:
        print(f"Using dataset: {data_dir}")
        session = load_session(data_dir)
        tracker_json = Path(data_dir) / 'tracker.json'
        base_config = load_config(tracker_json) if tracker_json.exists() else TrackerConfig()
    else:
        print("Using inline corridor walk")
        session = generate_walk(corridor_heading_profile(num_legs=4, steps_per_leg=10))
        base_config = TrackerConfig(step_length=session.meta['step_length'])
    print("=" * 70)

    magnitude = accel_magnitude_series(session.accel)
    dt = float(np.median(np.diff(session.t_motion))) if len(session.t_motion) > 1 else 0.02
    total_dist = float(np.sum(np.linalg.norm(np.diff(session.positions, axis=0), axis=1)))

    print("\nDataset Info:")
    print(f"  Duration: {session.duration:.1f} s")
    print(f"  Path length: {total_dist:.1f} m")
    print(f"  True steps: {session.num_steps}")
    print(f"  Orientation samples: {len(session.t_orientation)}")

    results: Dict[str, Dict] = {}
    for algorithm in DetectionAlgorithm:
        config = base_config.with_updates({'algorithm': algorithm})
        results[algorithm.value] = run_tracker(session, config)

    print("\n" + "=" * 70)
    print("RESULTS")
    print("=" * 70)
    for name, res in results.items():
        print_results(f"Tracker ({name})", session, res)

    reference_idx = reference_step_indices(
        magnitude, dt,
        min_peak_height=base_config.base_threshold,
        min_peak_distance=base_config.min_peak_interval_ms / 1000.0,
    )
    print(f"\nOffline find_peaks cross-check: {len(reference_idx)} peaks")

    if plot:
        lpf = LowPassFilter(alpha=base_config.filter_alpha, enabled=base_config.filter_enabled)
        filtered = np.array([lpf.filter(m) for m in magnitude])
        plot_results(session, results, magnitude, filtered, reference_idx, show=show)

    print("\n" + "=" * 70)
    return results


def main():
    parser = argparse.ArgumentParser(
        description="Replay a walking dataset through the indoor position tracker"
    )
    parser.add_argument(
        "--data", type=str, default=None,
        help="Dataset directory (default: inline simulated corridor walk)",
    )
    parser.add_argument("--no-plot", action="store_true", help="Skip the figure")
    parser.add_argument(
        "--log-level", type=str, default="WARNING",
        help="Logging level for tracker events (default: WARNING)",
    )
    args = parser.parse_args()

    configure_logging(level=args.log_level)
    run_example(data_dir=args.data, plot=not args.no_plot)


if __name__ == "__main__":
    main()
