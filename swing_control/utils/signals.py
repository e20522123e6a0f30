import numpy as np

def pendulum_samples(
    duration_ms=20000.0,
    amplitude=0.6,
    period_ms=2000.0,
    damping=0.0,
    noise=0.01,
    mean_interval_ms=33.0,
    jitter_ms=8.0,
    seed=0,
):
    """
    Synthetic swing: damped sine with gaussian noise, sampled at irregular
    intervals like the camera based detector does.
    Returns (timestamps_ms, values) as float arrays.
    Positive values are the back side, negative the front side.
    """
    rng = np.random.default_rng(seed)
    n = int(duration_ms / mean_interval_ms) + 1
    steps = np.clip(rng.normal(mean_interval_ms, jitter_ms, size=n), 1.0, None)
    t = np.cumsum(steps) - steps[0]
    t = t[t <= duration_ms]

    envelope = amplitude * np.exp(-damping * t / 1000.0)
    values = envelope * np.sin(2 * np.pi * t / period_ms)
    if noise > 0:
        values = values + rng.normal(0.0, noise, size=t.size)
    return t.astype(np.float64), values.astype(np.float64)
