import argparse

from utils.config import DetectorConfig
from utils.detector import SwingDetector
from utils.signals import pendulum_samples

def build_parser():
    p = argparse.ArgumentParser(description="Run the swing detector on a synthetic pendulum.")
    p.add_argument("--duration", type=float, default=20000.0, help="ms of signal")
    p.add_argument("--amplitude", type=float, default=0.6)
    p.add_argument("--period", type=float, default=2000.0, help="swing period in ms")
    p.add_argument("--damping", type=float, default=0.05, help="1/s")
    p.add_argument("--noise", type=float, default=0.01)
    p.add_argument("--interval", type=float, default=33.0, help="mean ms between samples")
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--threshold", type=float, default=0.001, help="apogee speed threshold (units/ms)")
    p.add_argument("--inert-range", type=float, default=0.15)
    p.add_argument("--reset-range", type=float, default=0.1)
    p.add_argument("--verbose", action="store_true", help="print every reading")
    return p

def simulate(args):
    cfg = DetectorConfig(
        swap=False,
        apogee_speed_threshold=args.threshold,
        inert_range=args.inert_range,
        reset_range=args.reset_range,
    )
    detector = SwingDetector(cfg)
    t, values = pendulum_samples(
        duration_ms=args.duration,
        amplitude=args.amplitude,
        period_ms=args.period,
        damping=args.damping,
        noise=args.noise,
        mean_interval_ms=args.interval,
        seed=args.seed,
    )

    apogees = []
    for now, raw in zip(t, values):
        reading = detector.process_sample(float(raw), now=float(now))
        if reading is None:
            continue
        if args.verbose:
            print(f"{now:9.1f} ms  {reading.side:5s} v={reading.smoothed_value:+.3f} "
                  f"s={reading.smoothed_speed:+.5f}")
        if reading.apogee:
            apogees.append((float(now), reading.apogee, reading.value))
    return apogees

def main():
    args = build_parser().parse_args()
    apogees = simulate(args)
    for now, side, value in apogees:
        print(f"{now:9.1f} ms  apogee {side:5s} at {value:+.3f}")
    print(f"{len(apogees)} apogees in {args.duration / 1000:.1f} s")

if __name__ == "__main__":
    main()
