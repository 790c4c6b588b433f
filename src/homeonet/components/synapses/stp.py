"""
Short-Term Plasticity (STP) - UDF (Use, Depression, Facilitation) model.

Each connection carries a utilization ``u`` and an available-resource
fraction ``r``. On every presynaptic spike the efficacy of the event is
computed from the interval since that connection's previous spike:

.. code-block:: none

    u' = U + u · (1 - U) · exp(-isi / F)
    r' = 1 + (r - u · r - 1) · exp(-isi / D)
    response = u' · r'

Depressing synapses (high U, long D) weaken under sustained firing;
facilitating synapses (low U, long F) strengthen. Defaults depend on the
(source, target) polarity pair (Markram et al., 1998).

The response multiplies the weight when the event is delivered, so it is
computed at spike time and carried on the event itself.
"""

from __future__ import annotations

from typing import Optional

import torch
import torch.nn as nn

from homeonet.config.learning_config import STPConfig
from homeonet.constants.neuron import NEVER_SPIKED


class UDFPlasticity(nn.Module):
    """Per-connection UDF short-term plasticity state.

    Args:
        n_connections: Number of connections tracked
        config: U, D, F parameters (``enabled=False`` makes every response 1)
    """

    def __init__(
        self,
        n_connections: int,
        config: Optional[STPConfig] = None,
        dtype: torch.dtype = torch.float64,
        device: Optional[torch.device] = None,
    ):
        super().__init__()
        self.config = config or STPConfig()
        device = device or torch.device("cpu")

        self.register_buffer("u", torch.full((n_connections,), self.config.U, dtype=dtype, device=device))
        self.register_buffer("r", torch.ones(n_connections, dtype=dtype, device=device))
        self.register_buffer(
            "last_spike", torch.full((n_connections,), NEVER_SPIKED, dtype=dtype, device=device)
        )
        self.u: torch.Tensor
        self.r: torch.Tensor
        self.last_spike: torch.Tensor

    def forward(self, connections: torch.Tensor, time: float) -> torch.Tensor:
        """Advance the state of the given connections to a spike at ``time``.

        Returns:
            Response (u' · r') of each connection, in the order given
        """
        if not self.config.enabled:
            return torch.ones(connections.numel(), dtype=self.u.dtype, device=self.u.device)

        cfg = self.config
        u = self.u[connections]
        r = self.r[connections]
        isi = time - self.last_spike[connections]

        u_new = cfg.U + u * (1.0 - cfg.U) * torch.exp(-isi / cfg.F)
        r_new = 1.0 + (r - u * r - 1.0) * torch.exp(-isi / cfg.D)

        self.u[connections] = u_new
        self.r[connections] = r_new
        self.last_spike[connections] = time
        return u_new * r_new
