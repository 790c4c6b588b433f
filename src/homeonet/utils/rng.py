"""Counter-based random number generation.

Philox-style hashing of integer counters gives random draws that depend only
on (seed, step, unit). Re-running an input source with the same arguments
therefore reproduces the same spikes, independent of thread scheduling.
"""

import torch

_MASK32 = 0xFFFFFFFF
# Odd multiplier below 2**31 so a 32-bit operand times it fits in int64
_PHILOX_M = 0x5851F42D
_PHILOX_W = 0x9E3779B9
_PHILOX_KEY = 0x1BD11BDA


def philox_uniform(counters: torch.Tensor, rounds: int = 10) -> torch.Tensor:
    """Philox 2x32-style bijection of int64 counters -> uniform (0,1) float64."""
    x = counters.to(torch.int64)
    c0 = x & _MASK32
    c1 = (x >> 32) & _MASK32
    key = _PHILOX_KEY
    for _ in range(rounds):
        prod = c0 * _PHILOX_M
        c0, c1 = ((prod >> 32) ^ key ^ c1) & _MASK32, prod & _MASK32
        key = (key + _PHILOX_W) & _MASK32

    # normalize, avoiding exact 0 or 1
    return ((c0 ^ c1) + 1).to(torch.float64) / (2**32 + 2)


def step_counters(seed: int, step: int, n_units: int, device: torch.device = torch.device("cpu")) -> torch.Tensor:
    """Distinct int64 counters for every unit of a given step."""
    base = (int(seed) & 0x7fff) << 48 | (int(step) & 0xffffff) << 24
    return base + torch.arange(n_units, dtype=torch.int64, device=device)
