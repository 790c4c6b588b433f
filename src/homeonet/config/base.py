"""
Base Configuration Classes.

All specific configs inherit from BaseConfig, which carries the device,
dtype and seed shared by every component.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import torch

from homeonet.errors import ConfigurationError


@dataclass
class BaseConfig:
    """Base configuration with common fields for all components.

    - device: Hardware device (cpu/cuda)
    - dtype: Tensor data type
    - seed: Random seed for reproducibility
    """

    device: str = "cpu"
    """Device to run on: 'cpu', 'cuda', 'cuda:0', etc."""

    dtype: str = "float64"
    """Data type for state tensors: 'float32', 'float64'."""

    seed: Optional[int] = None
    """Random seed for reproducibility. None = no seeding."""

    def get_torch_device(self) -> torch.device:
        """Get PyTorch device object."""
        return torch.device(self.device)

    def get_torch_dtype(self) -> torch.dtype:
        """Get PyTorch dtype object."""
        dtype_map = {
            "float32": torch.float32,
            "float64": torch.float64,
        }
        if self.dtype not in dtype_map:
            raise ConfigurationError(
                f"Unknown dtype '{self.dtype}'. "
                f"Choose from: {list(dtype_map.keys())}"
            )
        return dtype_map[self.dtype]

    def make_generator(self, offset: int = 0) -> torch.Generator:
        """Create a torch RNG seeded from ``seed`` (+ offset), or nondeterministic if unset."""
        # Host-side generator; draws are moved to the target device afterwards
        generator = torch.Generator()
        if self.seed is None:
            generator.seed()
        else:
            generator.manual_seed(self.seed + offset)
        return generator
