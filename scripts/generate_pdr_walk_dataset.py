"""
Generate a synthetic phone-in-hand walking dataset.

Simulates the motion stream (acceleration including gravity, one footfall
bump per step) and the orientation stream (compass alpha following the
walked heading) of a corridor walk, and saves them with ground truth so the
tracker can be replayed offline (see examples/example_tracker_replay.py).

Output files (whitespace-separated text):
    time_motion.txt            Motion sample times [s]
    accel.txt                  Acceleration incl. gravity [ax ay az]
    time_orientation.txt       Orientation sample times [s]
    orientation.txt            [alpha beta gamma] in degrees
    step_times.txt             True footfall times [s]
    ground_truth_heading.txt   True per-step heading [rad]
    ground_truth_position.txt  True post-step position [x z]
    config.json                Generation parameters
    tracker.json               Tracker settings matching the walk
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from indoor_pdr.sensors import accel_magnitude_series
from indoor_pdr.sim import corridor_heading_profile, generate_walk, save_session
from indoor_pdr.tracker import TrackerConfig, save_config

PRESETS = {
    'baseline': {'accel_noise': 0.05, 'heading_noise_deg': 0.0, 'bump_amplitude': 4.0},
    'noisy': {'accel_noise': 0.3, 'heading_noise_deg': 3.0, 'bump_amplitude': 4.0},
    'gentle': {'accel_noise': 0.05, 'heading_noise_deg': 1.0, 'bump_amplitude': 2.0},
}


def generate_dataset(
    output_dir: str,
    preset: Optional[str] = None,
    num_legs: int = 4,
    steps_per_leg: int = 10,
    turn_deg: float = 90.0,
    step_period: float = 0.6,
    step_length: float = 0.65,
    motion_rate_hz: float = 50.0,
    orientation_rate_hz: float = 20.0,
    bump_amplitude: float = 4.0,
    accel_noise: float = 0.05,
    heading_noise_deg: float = 0.0,
    no_orientation: bool = False,
    seed: int = 42,
) -> Path:
    """Generate and save one walking dataset."""
    if preset is not None:
        params = PRESETS[preset]
        bump_amplitude = params['bump_amplitude']
        accel_noise = params['accel_noise']
        heading_noise_deg = params['heading_noise_deg']

    print("\n" + "=" * 70)
    print(f"Generating PDR Walk Dataset: {Path(output_dir).name}")
    print("=" * 70)

    print("\nStep 1: Building heading profile...")
    headings = corridor_heading_profile(num_legs, steps_per_leg, turn_deg)
    print(f"  Legs: {num_legs} x {steps_per_leg} steps, turn {turn_deg:.0f} deg")

    print("\nStep 2: Simulating sensor streams...")
    session = generate_walk(
        headings,
        step_period=step_period,
        step_length=step_length,
        motion_rate_hz=motion_rate_hz,
        orientation_rate_hz=orientation_rate_hz,
        bump_amplitude=bump_amplitude,
        accel_noise=accel_noise,
        heading_noise_deg=heading_noise_deg,
        seed=seed,
    )
    if no_orientation:
        session = session.without_orientation()

    magnitude = accel_magnitude_series(session.accel)
    print(f"  Duration: {session.duration:.1f} s")
    print(f"  Motion samples: {len(session.t_motion)} @ {motion_rate_hz:.0f} Hz")
    print(f"  Orientation samples: {len(session.t_orientation)}")
    print(f"  True steps: {session.num_steps}")
    print(f"  Magnitude range: {magnitude.min():.2f} .. {magnitude.max():.2f} m/s^2")

    print("\nStep 3: Saving...")
    path = save_session(session, output_dir)
    save_config(TrackerConfig(step_length=step_length), path / 'tracker.json')
    print(f"  Saved dataset to: {path}")

    print("\n" + "=" * 70)
    print("Dataset generation complete!")
    print("=" * 70)
    return path


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Generate a synthetic PDR walking dataset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Presets:
  baseline     Clean footfalls, exact compass
  noisy        Noisy accelerometer and compass
  gentle       Weak footfalls (tests the adaptive threshold floor)

Examples:
  python scripts/generate_pdr_walk_dataset.py --preset baseline
  python scripts/generate_pdr_walk_dataset.py \\
      --output data/sim/pdr_long_walk --num-legs 6 --steps-per-leg 20
        """,
    )
    parser.add_argument(
        "--preset", type=str, choices=sorted(PRESETS), help="Use preset noise configuration"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="data/sim/pdr_corridor_walk",
        help="Output directory (default: data/sim/pdr_corridor_walk)",
    )

    walk_group = parser.add_argument_group("Walk Parameters")
    walk_group.add_argument("--num-legs", type=int, default=4, help="Corridor legs (default: 4)")
    walk_group.add_argument(
        "--steps-per-leg", type=int, default=10, help="Steps per leg (default: 10)"
    )
    walk_group.add_argument(
        "--turn-deg", type=float, default=90.0, help="Turn between legs in degrees (default: 90)"
    )
    walk_group.add_argument(
        "--step-period", type=float, default=0.6, help="Seconds between footfalls (default: 0.6)"
    )
    walk_group.add_argument(
        "--step-length", type=float, default=0.65, help="Stride in meters (default: 0.65)"
    )

    sensor_group = parser.add_argument_group("Sensor Parameters")
    sensor_group.add_argument(
        "--motion-rate", type=float, default=50.0, help="Accelerometer rate in Hz (default: 50)"
    )
    sensor_group.add_argument(
        "--orientation-rate", type=float, default=20.0, help="Orientation rate in Hz (default: 20)"
    )
    sensor_group.add_argument(
        "--bump-amplitude", type=float, default=4.0, help="Footfall peak in m/s^2 (default: 4.0)"
    )
    sensor_group.add_argument(
        "--accel-noise", type=float, default=0.05, help="Accel noise std dev (default: 0.05)"
    )
    sensor_group.add_argument(
        "--heading-noise", type=float, default=0.0, help="Compass noise std dev in deg (default: 0)"
    )
    sensor_group.add_argument(
        "--no-orientation", action="store_true", help="Simulate a device without orientation"
    )

    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")

    args = parser.parse_args()

    generate_dataset(
        output_dir=args.output,
        preset=args.preset,
        num_legs=args.num_legs,
        steps_per_leg=args.steps_per_leg,
        turn_deg=args.turn_deg,
        step_period=args.step_period,
        step_length=args.step_length,
        motion_rate_hz=args.motion_rate,
        orientation_rate_hz=args.orientation_rate,
        bump_amplitude=args.bump_amplitude,
        accel_noise=args.accel_noise,
        heading_noise_deg=args.heading_noise,
        no_orientation=args.no_orientation,
        seed=args.seed,
    )


if __name__ == "__main__":
    main()
