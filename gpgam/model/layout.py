# gpgam/model/layout.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
ParameterLayout: named blocks of a flat unconstrained parameter vector.

Samplers work on a vector q in R^d. The model works on named quantities,
some of which are positive (noise standard deviation, estimated
hyperparameters). A layout records, for each named block, its position in
q and its normalization:

- ``Normalization.NONE``: the block is stored as is;
- ``Normalization.LOG``: the block is stored as log(x), so that x = exp(u)
  and the change of variables adds ``sum(u)`` to the log-density.

Scalar blocks are unpacked as 0-d values, vector blocks as 1-D arrays.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Union

import numpy as np

import gpgam.num as gnp


class Normalization(Enum):
    LOG = "log"
    NONE = "none"


@dataclass(frozen=True)
class Block:
    name: str
    start: int
    size: int
    normalization: Normalization
    scalar: bool

    @property
    def stop(self) -> int:
        return self.start + self.size


class ParameterLayout:
    def __init__(self):
        self._blocks: Dict[str, Block] = {}
        self.dim: int = 0

    def __repr__(self):
        parts = ", ".join(
            f"{b.name}[{b.start}:{b.stop}]" for b in self._blocks.values()
        )
        return f"ParameterLayout(dim={self.dim}: {parts})"

    def __contains__(self, name):
        return name in self._blocks

    def add(
        self,
        name: str,
        size: int = 1,
        normalization: Union[str, Normalization] = Normalization.NONE,
        scalar: bool = False,
    ) -> Block:
        if name in self._blocks:
            raise ValueError(f"Block {name!r} already defined.")
        if size < 1:
            raise ValueError("Block size must be at least 1.")
        if scalar and size != 1:
            raise ValueError("A scalar block must have size 1.")
        block = Block(name, self.dim, int(size), Normalization(normalization), scalar)
        self._blocks[name] = block
        self.dim += block.size
        return block

    @property
    def names(self) -> List[str]:
        return list(self._blocks)

    def block(self, name: str) -> Block:
        return self._blocks[name]

    def slice(self, name: str) -> slice:
        b = self._blocks[name]
        return slice(b.start, b.stop)

    def flat_names(self) -> List[str]:
        """One label per coordinate of q, e.g. ``f_k_std[3]`` (1-based)."""
        out = []
        for b in self._blocks.values():
            label = f"log({b.name})" if b.normalization is Normalization.LOG else b.name
            if b.scalar:
                out.append(label)
            else:
                out.extend(f"{label}[{i + 1}]" for i in range(b.size))
        return out

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------
    def unpack(self, q) -> Dict[str, object]:
        """Natural-scale values of every block (differentiable)."""
        out = {}
        for b in self._blocks.values():
            u = q[b.start] if b.scalar else q[b.start : b.stop]
            out[b.name] = gnp.exp(u) if b.normalization is Normalization.LOG else u
        return out

    def pack(self, values: Mapping[str, object]) -> np.ndarray:
        """Inverse of unpack, returned as a NumPy vector."""
        missing = [n for n in self._blocks if n not in values]
        if missing:
            raise KeyError(f"Missing blocks: {missing}")
        q = np.empty(self.dim)
        for b in self._blocks.values():
            v = np.asarray(gnp.to_np(values[b.name]), dtype=float).reshape(-1)
            if v.shape[0] != b.size:
                raise ValueError(
                    f"Block {b.name!r} expects {b.size} values, got {v.shape[0]}."
                )
            if b.normalization is Normalization.LOG:
                if np.any(v <= 0.0):
                    raise ValueError(f"Block {b.name!r} must be positive.")
                v = np.log(v)
            q[b.start : b.stop] = v
        return q

    def log_abs_det_jacobian(self, q):
        """log |d x / d q| for the LOG blocks: the sum of their coordinates."""
        total = 0.0
        for b in self._blocks.values():
            if b.normalization is Normalization.LOG:
                total = total + gnp.sum(q[b.start : b.stop])
        return total

    def unpack_draws(self, raw: np.ndarray) -> Dict[str, np.ndarray]:
        """Natural-scale blocks of NumPy draws shaped (..., dim)."""
        raw = np.asarray(raw)
        if raw.shape[-1] != self.dim:
            raise ValueError(f"Last axis must have size {self.dim}.")
        out = {}
        for b in self._blocks.values():
            v = raw[..., b.start : b.stop]
            if b.normalization is Normalization.LOG:
                v = np.exp(v)
            out[b.name] = v[..., 0] if b.scalar else v
        return out
