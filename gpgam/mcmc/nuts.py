# gpgam/mcmc/nuts.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
NUTS (No-U-Turn Sampler) on a gpgam.num backend.

Euclidean-metric NUTS for targets on R^d: leapfrog integrator, slice
variable, binary tree doubling with the U-turn stopping rule. Warmup adapts
the step size by dual averaging and a diagonal mass matrix over Stan-like
windows.

Target and Hamiltonian
----------------------
User provides ``log_prob(q) -> scalar`` with q of shape (dim,). With
:math:`U(q) = -\\mathrm{log\\_prob}(q)` and a diagonal mass matrix
:math:`M = \\mathrm{diag}(m)`,

.. math::
    H(q, p) = U(q) + \\tfrac12 p^\\top M^{-1} p, \\qquad p \\sim \\mathcal{N}(0, M).

Leapfrog
--------
::

    p_{n+1/2} = p_n - (eps/2) * gradU(q_n)
    q_{n+1}   = q_n + eps * (M^{-1} p_{n+1/2})
    p_{n+1}   = p_{n+1/2} - (eps/2) * gradU(q_{n+1})

Slice, divergences, U-turn
--------------------------
At the start of a transition, ``log_u = -H0 + log(rand())``. A state is valid
if ``log_u <= -H``. A divergence is flagged when ``H - H0 > delta_max`` or H
is not finite. The tree stops when ``dq . (M^{-1} p_minus) < 0`` or
``dq . (M^{-1} p_plus) < 0`` with ``dq = q_plus - q_minus``.

Warmup
------
Dual averaging on the mean acceptance statistic of all chains, at every
warmup iteration. Mass adaptation uses an initial buffer, doubling middle
windows, and a terminal buffer; the mass is updated at the end of each
middle window and dual averaging is restarted.

References
----------
[1] R. M. Neal (2011). "MCMC Using Hamiltonian Dynamics." In: Handbook of
    Markov Chain Monte Carlo.
[2] M. D. Hoffman and A. Gelman (2014). "The No-U-Turn Sampler: Adaptively
    Setting Path Lengths in Hamiltonian Monte Carlo." JMLR 15:1593-1623.
[3] Stan Development Team. Stan Reference Manual, HMC/NUTS adaptation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

import logging
import math
import time

import numpy as np

import gpgam.num as gnp
from gpgam.config import get_logger

ArrayLike = Any

_logger = get_logger()

_DEFAULT_NUM_WARMUP = 1000
_DEFAULT_TARGET_ACCEPT = 0.80
_DEFAULT_MAX_DEPTH = 10
_DEFAULT_DELTA_MAX = 1000.0
_DEFAULT_JITTER = 1e-4
_DEFAULT_PROGRESS = False
_DEFAULT_VERBOSE = 1
_DEFAULT_LOG_EVERY = 50


@dataclass
class NUTSOptions:
    """Configuration object for NUTS sampling and warmup adaptation."""

    # Main sampler settings
    num_warmup: int = _DEFAULT_NUM_WARMUP
    target_accept: float = _DEFAULT_TARGET_ACCEPT
    max_depth: int = _DEFAULT_MAX_DEPTH
    delta_max: float = _DEFAULT_DELTA_MAX
    jitter: float = _DEFAULT_JITTER
    init_step_size: Optional[float] = None
    init_mass_diag: Optional[ArrayLike] = None
    seed: Optional[int] = None
    progress: bool = _DEFAULT_PROGRESS
    verbose: int = _DEFAULT_VERBOSE
    log_every: int = _DEFAULT_LOG_EVERY

    # Dual-averaging hyperparameters
    dual_averaging_gamma: float = 0.05
    dual_averaging_t0: float = 10.0
    dual_averaging_kappa: float = 0.75
    dual_averaging_mu_factor: float = 10.0

    # Warmup window policy
    warmup_min_no_window: int = 20
    warmup_large_threshold: int = 150
    warmup_large_init_buffer: int = 75
    warmup_large_term_buffer: int = 50
    warmup_large_base_window: int = 25
    warmup_init_buffer_ratio: float = 0.15
    warmup_term_buffer_ratio: float = 0.10
    warmup_base_window_divisor: float = 3.0

    # Initial step-size search policy
    find_eps_init: float = 1.0
    find_eps_target_accept: float = 0.5
    find_eps_scale_base: float = 2.0
    find_eps_min: float = 1e-6
    find_eps_max: float = 1e2

    def __post_init__(self):
        if not 0.0 < self.target_accept < 1.0:
            raise ValueError("target_accept must lie in (0, 1).")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1.")
        if self.num_warmup < 0:
            raise ValueError("num_warmup must be nonnegative.")


def _resolve_nuts_options(options: Optional[NUTSOptions], **kwargs) -> NUTSOptions:
    """Merge keyword arguments of nuts_sample with an optional NUTSOptions.

    If ``options`` is None, the keyword arguments are used as they are.
    Otherwise, only keyword arguments that differ from their defaults
    override ``options``.
    """
    defaults = {
        "num_warmup": _DEFAULT_NUM_WARMUP,
        "target_accept": _DEFAULT_TARGET_ACCEPT,
        "max_depth": _DEFAULT_MAX_DEPTH,
        "delta_max": _DEFAULT_DELTA_MAX,
        "jitter": _DEFAULT_JITTER,
        "init_step_size": None,
        "init_mass_diag": None,
        "seed": None,
        "progress": _DEFAULT_PROGRESS,
        "verbose": _DEFAULT_VERBOSE,
        "log_every": _DEFAULT_LOG_EVERY,
    }
    if options is None:
        return NUTSOptions(**kwargs)
    overrides = {}
    for key, value in kwargs.items():
        default = defaults[key]
        if default is None:
            if value is not None:
                overrides[key] = value
        elif value != default:
            overrides[key] = value
    return replace(options, **overrides)


# ---------------------------
# Adaptation utilities
# ---------------------------


@dataclass
class DualAveragingState:
    mu: float
    log_eps: float
    log_eps_bar: float
    h_bar: float = 0.0
    t: int = 0

    @classmethod
    def start(cls, eps: float, mu_factor: float, eps_min: float) -> "DualAveragingState":
        mu = math.log(max(eps_min, mu_factor * eps))
        return cls(mu=mu, log_eps=math.log(eps), log_eps_bar=math.log(eps))

    def update(
        self,
        accept_stat: float,
        target: float = 0.80,
        gamma: float = 0.05,
        t0: float = 10.0,
        kappa: float = 0.75,
    ) -> float:
        self.t += 1
        eta = 1.0 / (self.t + t0)
        self.h_bar = (1.0 - eta) * self.h_bar + eta * (target - accept_stat)
        self.log_eps = self.mu - (math.sqrt(self.t) / gamma) * self.h_bar
        w = self.t ** (-kappa)
        self.log_eps_bar = w * self.log_eps + (1.0 - w) * self.log_eps_bar
        return math.exp(self.log_eps)

    def final(self) -> float:
        return math.exp(self.log_eps_bar)


class RunningDiagVar:
    """Welford running variance, coordinate-wise."""

    def __init__(self, dim: int):
        self.n = 0
        self.mean = np.zeros(dim)
        self.m2 = np.zeros(dim)

    def update_one(self, x) -> None:
        self.n += 1
        delta = x - self.mean
        self.mean = self.mean + delta / self.n
        self.m2 = self.m2 + delta * (x - self.mean)

    def update_batch(self, x) -> None:
        for row in np.asarray(x):
            self.update_one(row)

    def var(self) -> np.ndarray:
        if self.n < 2:
            return np.ones_like(self.mean)
        return self.m2 / (self.n - 1)


def make_warmup_windows(
    num_warmup: int,
    *,
    min_no_window: int = 20,
    large_threshold: int = 150,
    large_init_buffer: int = 75,
    large_term_buffer: int = 50,
    large_base_window: int = 25,
    init_buffer_ratio: float = 0.15,
    term_buffer_ratio: float = 0.10,
    base_window_divisor: float = 3.0,
) -> List[Tuple[int, int]]:
    """Stan-like warmup windows [start, end) for diagonal mass adaptation."""
    if num_warmup <= min_no_window:
        return []

    if num_warmup >= large_threshold:
        init_buffer = large_init_buffer
        term_buffer = large_term_buffer
        base_window = large_base_window
    else:
        init_buffer = max(1, int(init_buffer_ratio * num_warmup))
        term_buffer = max(1, int(term_buffer_ratio * num_warmup))
        base_window = max(
            1, int((num_warmup - init_buffer - term_buffer) / base_window_divisor)
        )

    start = init_buffer
    end_middle = num_warmup - term_buffer
    if end_middle <= start:
        return []

    win = min(base_window, end_middle - start)
    windows = []
    while start + win < end_middle:
        windows.append((start, start + win))
        start += win
        win = min(2 * win, end_middle - start)
        if win <= 0:
            break
    if start < end_middle:
        windows.append((start, end_middle))
    return windows


def describe_windows(windows: List[Tuple[int, int]]) -> str:
    if not windows:
        return "no mass adaptation windows"
    return "mass windows: " + " ".join(f"[{a},{b})" for a, b in windows)


# ---------------------------
# Hamiltonian helpers
# ---------------------------


def potential_and_grad(log_prob: Callable, q) -> Tuple[float, ArrayLike]:
    U, gradU = gnp.value_and_grad(lambda x: -log_prob(x), q)
    return float(gnp.to_scalar(U)), gradU


def kinetic(p, inv_mass_diag) -> float:
    return 0.5 * float(gnp.to_scalar(gnp.sum(p * p * inv_mass_diag)))


def leapfrog(log_prob, q, p, gradU, eps, inv_mass_diag):
    p_half = p - 0.5 * eps * gradU
    q_new = q + eps * (p_half * inv_mass_diag)
    U_new, g_new = potential_and_grad(log_prob, q_new)
    p_new = p_half - 0.5 * eps * g_new
    return q_new, p_new, U_new, g_new


def is_uturn(q_minus, q_plus, p_minus, p_plus, inv_mass_diag) -> bool:
    dq = q_plus - q_minus
    return bool(gnp.sum(dq * (inv_mass_diag * p_minus)) < 0.0) or bool(
        gnp.sum(dq * (inv_mass_diag * p_plus)) < 0.0
    )


def _accept_prob(log_alpha: float) -> float:
    if math.isnan(log_alpha):
        return 0.0
    return math.exp(min(0.0, log_alpha))


def _uniform() -> float:
    return float(gnp.to_scalar(gnp.rand()))


def _draw_momentum(q, mass_diag):
    return gnp.randn(*q.shape) * gnp.sqrt(mass_diag)


def find_reasonable_step_size(
    log_prob: Callable,
    q,
    inv_mass_diag,
    init_eps: float = 1.0,
    target_accept: float = 0.5,
    scale_base: float = 2.0,
    min_eps: float = 1e-6,
    max_eps: float = 1e2,
) -> float:
    """Double or halve eps until the one-step acceptance crosses target_accept."""
    eps = float(init_eps)
    p0 = _draw_momentum(q, 1.0 / inv_mass_diag)
    U0, g0 = potential_and_grad(log_prob, q)
    H0 = U0 + kinetic(p0, inv_mass_diag)

    def one_step_accept(e):
        _, p1, U1, _ = leapfrog(log_prob, q, p0, g0, e, inv_mass_diag)
        return _accept_prob(-(U1 + kinetic(p1, inv_mass_diag) - H0))

    direction = 1.0 if one_step_accept(eps) > target_accept else -1.0
    while True:
        eps *= scale_base**direction
        alpha = one_step_accept(eps)
        if (direction < 0 and alpha > target_accept) or (
            direction > 0 and alpha < target_accept
        ):
            break
        if eps < min_eps or eps > max_eps:
            break
    return float(eps)


# ---------------------------
# NUTS transition
# ---------------------------


@dataclass
class Subtree:
    """Result of building a subtree of 2^depth leapfrog steps."""

    q_minus: ArrayLike
    p_minus: ArrayLike
    g_minus: ArrayLike
    q_plus: ArrayLike
    p_plus: ArrayLike
    g_plus: ArrayLike
    q_prop: ArrayLike
    n_valid: int
    s_continue: bool
    alpha_sum: float
    n_alpha: int
    n_leapfrog: int
    divergent: bool

    def edge(self, v: int):
        if v == -1:
            return self.q_minus, self.p_minus, self.g_minus
        return self.q_plus, self.p_plus, self.g_plus

    def set_edge(self, v: int, other: "Subtree") -> None:
        if v == -1:
            self.q_minus, self.p_minus, self.g_minus = other.edge(-1)
        else:
            self.q_plus, self.p_plus, self.g_plus = other.edge(1)


def build_tree(
    log_prob: Callable,
    q,
    p,
    gradU,
    log_u: float,
    v: int,
    depth: int,
    eps: float,
    inv_mass_diag,
    H0: float,
    delta_max: float,
) -> Subtree:
    if depth == 0:
        q1, p1, U1, g1 = leapfrog(log_prob, q, p, gradU, eps * v, inv_mass_diag)
        H1 = U1 + kinetic(p1, inv_mass_diag)
        if not math.isfinite(H1):
            return Subtree(q, p, gradU, q, p, gradU, q, 0, False, 0.0, 1, 1, True)
        divergent = (H1 - H0) > delta_max
        return Subtree(
            q1,
            p1,
            g1,
            q1,
            p1,
            g1,
            q1,
            n_valid=1 if log_u <= -H1 else 0,
            s_continue=(log_u < delta_max - H1) and not divergent,
            alpha_sum=_accept_prob(-(H1 - H0)),
            n_alpha=1,
            n_leapfrog=1,
            divergent=divergent,
        )

    tree = build_tree(
        log_prob, q, p, gradU, log_u, v, depth - 1, eps, inv_mass_diag, H0, delta_max
    )
    if not tree.s_continue or tree.divergent:
        return tree

    q_e, p_e, g_e = tree.edge(v)
    other = build_tree(
        log_prob, q_e, p_e, g_e, log_u, v, depth - 1, eps, inv_mass_diag, H0, delta_max
    )
    tree.set_edge(v, other)

    n_total = tree.n_valid + other.n_valid
    if n_total > 0 and _uniform() < other.n_valid / n_total:
        tree.q_prop = other.q_prop

    tree.n_valid = n_total
    tree.s_continue = other.s_continue and not is_uturn(
        tree.q_minus, tree.q_plus, tree.p_minus, tree.p_plus, inv_mass_diag
    )
    tree.alpha_sum += other.alpha_sum
    tree.n_alpha += other.n_alpha
    tree.n_leapfrog += other.n_leapfrog
    tree.divergent = tree.divergent or other.divergent
    return tree


def nuts_transition(
    log_prob: Callable,
    q0,
    step_size: float,
    inv_mass_diag,
    max_depth: int,
    delta_max: float,
) -> Tuple[ArrayLike, float, int, int, bool]:
    """One NUTS transition from q0.

    Returns (q_new, accept_stat, n_leapfrog, depth, divergent).
    """
    p0 = _draw_momentum(q0, 1.0 / inv_mass_diag)
    U0, g0 = potential_and_grad(log_prob, q0)
    H0 = U0 + kinetic(p0, inv_mass_diag)
    if not math.isfinite(H0):
        return q0, 0.0, 0, 0, True

    log_u = -H0 + math.log(_uniform())

    tree = Subtree(q0, p0, g0, q0, p0, g0, gnp.copy(q0), 1, True, 0.0, 0, 0, False)
    depth = 0
    while tree.s_continue and depth < max_depth:
        v = -1 if _uniform() < 0.5 else 1
        q_e, p_e, g_e = tree.edge(v)
        other = build_tree(
            log_prob, q_e, p_e, g_e, log_u, v, depth, step_size, inv_mass_diag, H0, delta_max
        )
        tree.set_edge(v, other)

        n_total = tree.n_valid + other.n_valid
        if other.s_continue and not other.divergent and n_total > 0:
            if _uniform() < other.n_valid / n_total:
                tree.q_prop = other.q_prop

        tree.n_valid = n_total
        tree.s_continue = other.s_continue and not is_uturn(
            tree.q_minus, tree.q_plus, tree.p_minus, tree.p_plus, inv_mass_diag
        )
        tree.alpha_sum += other.alpha_sum
        tree.n_alpha += other.n_alpha
        tree.n_leapfrog += other.n_leapfrog
        tree.divergent = tree.divergent or other.divergent
        depth += 1

    accept_stat = tree.alpha_sum / max(1, tree.n_alpha)
    return tree.q_prop, float(accept_stat), int(tree.n_leapfrog), depth, bool(tree.divergent)


# ---------------------------
# Sampling driver
# ---------------------------


def _progress_bar(n: int, desc: str, enabled: bool):
    if not enabled:
        return None
    try:
        from tqdm.auto import tqdm
    except ImportError:
        _logger.debug("tqdm is not installed; progress bars disabled")
        return None
    return tqdm(total=n, desc=desc, leave=True)


def nuts_sample(
    log_prob: Callable,
    q_init,
    num_samples: int,
    num_warmup: int = _DEFAULT_NUM_WARMUP,
    target_accept: float = _DEFAULT_TARGET_ACCEPT,
    max_depth: int = _DEFAULT_MAX_DEPTH,
    delta_max: float = _DEFAULT_DELTA_MAX,
    jitter: float = _DEFAULT_JITTER,
    init_step_size: Optional[float] = None,
    init_mass_diag: Optional[ArrayLike] = None,
    seed: Optional[int] = None,
    progress: bool = _DEFAULT_PROGRESS,
    verbose: int = _DEFAULT_VERBOSE,
    log_every: int = _DEFAULT_LOG_EVERY,
    options: Optional[NUTSOptions] = None,
) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
    """Run NUTS chains sequentially.

    Parameters
    ----------
    log_prob : callable
        Takes q of shape (dim,), returns a scalar log-density.
    q_init : array_like, shape (chains, dim)
        Initial states.
    num_samples : int
        Number of retained draws per chain.
    options : NUTSOptions, optional
        Keyword arguments that differ from their defaults override it.
    verbose : int
        0: silent. 1: phases, windows and periodic summaries at INFO.
        2: more frequent summaries at DEBUG.

    Returns
    -------
    samples : ndarray, shape (num_samples, chains, dim)
    info : dict
        Per-iteration traces (accept_stat, divergent, tree_depth,
        n_leapfrog, with their warmup counterparts), step_size_final and
        mass_diag_final.
    """
    opts = _resolve_nuts_options(
        options,
        num_warmup=num_warmup,
        target_accept=target_accept,
        max_depth=max_depth,
        delta_max=delta_max,
        jitter=jitter,
        init_step_size=init_step_size,
        init_mass_diag=init_mass_diag,
        seed=seed,
        progress=progress,
        verbose=verbose,
        log_every=log_every,
    )
    num_warmup = int(opts.num_warmup)
    target_accept = float(opts.target_accept)
    max_depth = int(opts.max_depth)
    delta_max = float(opts.delta_max)
    jitter = float(opts.jitter)
    verbose = int(opts.verbose)
    log_every = max(1, int(opts.log_every))

    def log(msg, *args, level=1):
        if verbose >= level:
            _logger.log(logging.INFO if level == 1 else logging.DEBUG, msg, *args)

    q = gnp.copy(gnp.asarray(q_init))
    if q.ndim != 2:
        raise ValueError("q_init must have shape (chains, dim)")
    if num_samples < 1:
        raise ValueError("num_samples must be at least 1.")
    chains, dim = q.shape

    eps_min = float(opts.find_eps_min)
    eps_max = float(opts.find_eps_max)
    if not math.isfinite(eps_min) or eps_min <= 0.0:
        eps_min = 1e-12
    if not math.isfinite(eps_max) or eps_max <= eps_min:
        eps_max = max(1.0, 10.0 * eps_min)

    def clamp(eps):
        eps = float(eps)
        if not math.isfinite(eps) or eps <= 0.0:
            return eps_min
        return min(max(eps, eps_min), eps_max)

    log("NUTS: chains=%d, dim=%d, num_warmup=%d, num_samples=%d", chains, dim, num_warmup, num_samples)
    log("NUTS: target_accept=%g, max_depth=%d, delta_max=%g", target_accept, max_depth, delta_max)

    if opts.seed is not None:
        gnp.set_seed(opts.seed)

    if opts.init_mass_diag is None:
        mass_diag = np.ones(dim)
    else:
        mass_diag = np.asarray(gnp.to_np(opts.init_mass_diag), dtype=float)
        if mass_diag.shape != (dim,):
            raise ValueError("init_mass_diag must have shape (dim,)")
        mass_diag = np.maximum(mass_diag, jitter)
    inv_mass_diag = gnp.asarray(1.0 / mass_diag)

    if opts.init_step_size is None:
        t0 = time.time()
        eps0 = find_reasonable_step_size(
            log_prob,
            q[0],
            inv_mass_diag,
            init_eps=opts.find_eps_init,
            target_accept=opts.find_eps_target_accept,
            scale_base=opts.find_eps_scale_base,
            min_eps=opts.find_eps_min,
            max_eps=opts.find_eps_max,
        )
        log("initial step size heuristic: eps0=%.6g (took %.2fs)", eps0, time.time() - t0)
    else:
        eps0 = float(opts.init_step_size)
    step_size = clamp(eps0)
    da = DualAveragingState.start(step_size, opts.dual_averaging_mu_factor, eps_min)

    windows = make_warmup_windows(
        num_warmup,
        min_no_window=opts.warmup_min_no_window,
        large_threshold=opts.warmup_large_threshold,
        large_init_buffer=opts.warmup_large_init_buffer,
        large_term_buffer=opts.warmup_large_term_buffer,
        large_base_window=opts.warmup_large_base_window,
        init_buffer_ratio=opts.warmup_init_buffer_ratio,
        term_buffer_ratio=opts.warmup_term_buffer_ratio,
        base_window_divisor=opts.warmup_base_window_divisor,
    )
    window_ends = {end for _, end in windows}
    log(describe_windows(windows))
    rv = RunningDiagVar(dim)

    def run_phase(n_iter, phase, samples=None):
        nonlocal step_size, inv_mass_diag, mass_diag, da, rv
        traces = {
            "accept_stat": np.empty((n_iter, chains)),
            "divergent": np.zeros((n_iter, chains), dtype=bool),
            "tree_depth": np.zeros((n_iter, chains), dtype=int),
            "n_leapfrog": np.zeros((n_iter, chains), dtype=int),
        }
        step_sizes = np.empty(n_iter)
        pbar = _progress_bar(n_iter, phase, bool(opts.progress))
        t_start = time.time()

        for t in range(n_iter):
            for c in range(chains):
                q_new, a, nlf, depth, div = nuts_transition(
                    log_prob, q[c], step_size, inv_mass_diag, max_depth, delta_max
                )
                q[c] = q_new
                traces["accept_stat"][t, c] = a
                traces["divergent"][t, c] = div
                traces["tree_depth"][t, c] = depth
                traces["n_leapfrog"][t, c] = nlf
                if samples is not None:
                    samples[t, c] = gnp.to_np(q_new)
            step_sizes[t] = step_size
            mean_accept = float(np.mean(traces["accept_stat"][t]))
            div_rate = float(np.mean(traces["divergent"][t]))

            if samples is None:
                step_size = clamp(
                    da.update(
                        mean_accept,
                        target=target_accept,
                        gamma=opts.dual_averaging_gamma,
                        t0=opts.dual_averaging_t0,
                        kappa=opts.dual_averaging_kappa,
                    )
                )
                if any(start <= t < end for start, end in windows):
                    rv.update_batch(gnp.to_np(q))
                if (t + 1) in window_ends:
                    old_mean = float(np.mean(mass_diag))
                    mass_diag = np.maximum(rv.var(), jitter)
                    inv_mass_diag = gnp.asarray(1.0 / mass_diag)
                    rv = RunningDiagVar(dim)
                    da = DualAveragingState.start(
                        step_size, opts.dual_averaging_mu_factor, eps_min
                    )
                    log(
                        "warmup iter %d: mass update, mean(mass_diag) %.6g -> %.6g; "
                        "dual averaging restart at eps=%.6g",
                        t + 1,
                        old_mean,
                        float(np.mean(mass_diag)),
                        step_size,
                    )

            if (t + 1) % log_every == 0 or t == 0 or t + 1 == n_iter:
                log(
                    "%s iter %d/%d: eps=%.4g, mean_accept=%.3f, div_rate=%.3f",
                    phase, t + 1, n_iter, step_size, mean_accept, div_rate,
                )
            elif verbose >= 2 and (t + 1) % max(1, log_every // 5) == 0:
                log(
                    "%s iter %d/%d: eps=%.4g, mean_accept=%.3f, div_rate=%.3f",
                    phase, t + 1, n_iter, step_size, mean_accept, div_rate,
                    level=2,
                )
            if pbar is not None:
                pbar.update(1)
                pbar.set_postfix(eps=f"{step_size:.3g}", acc=f"{mean_accept:.3f}")

        if pbar is not None:
            pbar.close()
        log("%s: done in %.2fs", phase, time.time() - t_start)
        return traces, step_sizes

    warm_traces, warm_eps = run_phase(num_warmup, "warmup")
    if num_warmup > 0:
        step_size = clamp(da.final())
    log("step_size_final=%.6g, mean(mass_diag)=%.6g", step_size, float(np.mean(mass_diag)))

    samples = np.empty((num_samples, chains, dim))
    traces, _ = run_phase(num_samples, "sample", samples=samples)

    info = {"warmup_step_size": warm_eps}
    for key, value in warm_traces.items():
        info["warmup_" + key] = value
    info.update(traces)
    info["step_size_final"] = np.asarray(step_size)
    info["mass_diag_final"] = np.array(mass_diag)
    return samples, info
