"""
Quasi-elastic Q2 Distribution - Simple Example

Generates nu_mu CC quasi-elastic events on carbon with a toy dipole rate
and plots the Q2 distribution for the three hit-nucleon binding modes.

Binding energy shifts the distribution to lower Q2; the corrected on-shell
mode should sit close to the full nuclear-model treatment.
"""

import logging
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from kinesampler import (FermiGasExclusion, FermiGasSampler, PhysicalConfiguration,
                         RejectionSampler, SamplerConfig, generate_events)
from kinesampler.sampling.driver import summarize
from kinesampler.logging_config import setup_logging
from kinesampler.physics.binding import BindingMode, bind_hit_nucleon
from kinesampler.physics import phase_space
from kinesampler.core.event import KinematicPoint

MA = 1.0  # axial mass [GeV]


def dipole_rate(config, sample, cos_theta, phi):
    """Toy rate: dipole form factor squared in Q2."""
    hit_p4, _ = bind_hit_nucleon(config, sample, BindingMode.ON_SHELL)
    fs = phase_space.final_state(config, hit_p4, KinematicPoint(cos_theta, phi))
    if fs is None:
        return 0.0
    return 1.0 / (1.0 + fs.Q2 / MA**2) ** 4


def simulate(mode: BindingMode, energy: float, n_events: int, seed: int = 1):
    """
    Generate events for one binding mode.

    Returns:
        Q2 array [GeV^2] of accepted events
    """
    qel = RejectionSampler(dipole_rate,
                           SamplerConfig(binding_mode=mode, max_xsec_nucleon_throws=200),
                           sampler=FermiGasSampler(),
                           exclusion=FermiGasExclusion())
    configs = [PhysicalConfiguration(14, energy, 1000060120, 2112, 'CC')] * n_events
    results = generate_events(qel, configs, seed=seed, n_workers=4, progress=True)

    summary = summarize(results)
    print(f"  {mode.value:>22}: {summary['n_accepted']} accepted, "
          f"{summary['mean_iterations']:.1f} iterations/event, "
          f"{summary['corrector_rejections']} corrector rejections")
    return np.array([r.kinematics.Q2 for r in results if r.ok])


if __name__ == "__main__":
    setup_logging(logging.WARNING)

    energy = 1.0
    n_events = 5000
    print(f"\n{'='*70}")
    print(f"nu_mu CC QE on C-12 @ {energy} GeV, {n_events:,} events per mode")
    print(f"{'='*70}\n")

    fig, ax = plt.subplots(figsize=(8, 5))
    bins = np.linspace(0.0, 1.5, 61)
    for mode in BindingMode:
        q2 = simulate(mode, energy, n_events)
        ax.hist(q2, bins=bins, histtype='step', density=True, label=mode.value)

    ax.set_xlabel('$Q^2$ [GeV$^2$]')
    ax.set_ylabel('Normalized events')
    ax.set_title(f'QE $\\nu_\\mu$ C-12, $E_\\nu$ = {energy} GeV')
    ax.legend()
    ax.grid(alpha=0.3)

    out = Path(__file__).parent / 'qel_q2_distribution.png'
    fig.tight_layout()
    fig.savefig(out, dpi=150)
    print(f"\nSaved: {out}")
