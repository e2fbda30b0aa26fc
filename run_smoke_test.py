#!/usr/bin/env python3
"""
Smoke test for the simulation and playback engine.

Runs, headlessly:
(a) Each continuous system through the offline simulator, checked
    against closed forms or a scipy reference
(b) Each step generator, checked by the trace validators
(c) One discrete and one continuous playback session driven by a
    synthetic clock

Generates plots under report/figures.

Integration is semi-implicit Euler:
    v(t+dt) = v(t) + a(x(t), t) dt
    x(t+dt) = x(t) + v(t+dt) dt
"""

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import os
import sys

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from systems import RCCircuit, DampedDrivenOscillator, InclinePlane, ChargedParticle
from sim.simulator import Simulator
from sim.clock import Scheduler
from sim.playback import PlaybackController, PlaybackConfig
from sim.animation import export_playback
from sim.plotting import (plot_states, plot_phase_portrait, plot_history,
                          plot_search_step, plot_tree_step, plot_matrix_step,
                          save_figure)
from algorithms.search import binary_search_steps, linear_search_steps, max_search_steps
from algorithms import bst
from algorithms.matrix import matrix_multiply_steps, product_from_steps
from analysis.reference import rc_analytic, compare_to_reference, energy_drift
from analysis.validation import (validate_search_trace, validate_tree_trace,
                                 validate_matrix_trace)

SEARCH_ARRAY = [2, 5, 8, 12, 16, 23, 38, 45, 56, 72, 91]


def ensure_dirs():
    """Create output directories."""
    os.makedirs('report/figures', exist_ok=True)


def banner(title):
    print("\n" + "="*60)
    print(title)
    print("="*60)


def run_rc_test():
    """RC charging against the closed form."""
    banner("(a1) RC CIRCUIT")

    rc = RCCircuit(resistance=100.0, capacitance=200.0, source_voltage=10.0)
    tau = rc.time_constant
    result = Simulator(rc, dt=1.0 / 60.0).run(T=5 * tau + 0.5)

    v_tau = result.value_at(tau)
    v_5tau = result.value_at(5 * tau)
    print(f"\n  tau = {tau:.3f} s")
    print(f"  Vc(tau)  = {v_tau:.4f} V (closed form {rc_analytic(rc, tau):.4f})")
    print(f"  Vc(5tau) = {v_5tau:.4f} V ({100 * v_5tau / 10.0:.2f}% of source)")

    comparison = compare_to_reference(result, rc)
    print(f"  Max error vs reference: {comparison.max_abs_error:.5f} V")

    return result


def run_oscillator_test():
    """Undamped energy conservation and driven response."""
    banner("(a2) DAMPED DRIVEN OSCILLATOR")

    free = DampedDrivenOscillator(mass=1.0, stiffness=10.0, damping=0.0,
                                  drive_amplitude=0.0, x0=1.0)
    free_result = Simulator(free).run(T=10.0)
    print(f"\n  w0 = {free.natural_frequency:.4f} rad/s")
    print(f"  Energy drift (b=0, F0=0): {100 * energy_drift(free_result.series('energy')):.2f}%")

    driven = DampedDrivenOscillator()
    driven_result = Simulator(driven).run(T=20.0)
    comparison = compare_to_reference(driven_result, driven)
    print(f"  Driven max error vs reference: {comparison.max_abs_error:.4f}")

    return free_result, driven_result


def run_incline_test():
    """Static and kinetic phases."""
    banner("(a3) INCLINE PLANE")

    results = {}
    for angle in (15.0, 35.0):
        incline = InclinePlane(angle=angle, mu_static=0.5, mu_kinetic=0.3)
        result = Simulator(incline).run(T=3.0, stop_on_terminal=True)
        final = result.readouts[-1]
        print(f"\n  angle = {angle:.0f} deg (critical {incline.critical_angle:.2f} deg)")
        print(f"    phase: {final['phase']}, s = {final['s']:.3f} m, v = {final['v']:.3f} m/s")
        results[angle] = result

    return results


def run_particle_test():
    """Cyclotron radius and straight-line motion."""
    banner("(a4) CHARGED PARTICLE")

    particle = ChargedParticle(charge=1.0, mass=1.0, field=1.0, speed=5.0)
    result = Simulator(particle, dt=0.001).run(T=particle.period())
    r = particle.orbit_radius()
    radii = np.hypot(result.states[:, 0], result.states[:, 1] + r)
    print(f"\n  r = mv/|qB| = {r:.3f}, simulated {radii.min():.3f}..{radii.max():.3f}")

    straight = ChargedParticle(field=0.0)
    print(f"  B = 0: radius {straight.orbit_radius()}, period {straight.period()}")

    return result


def run_algorithm_tests():
    """Generate and validate each trace."""
    banner("(b) STEP GENERATORS")

    search = binary_search_steps(SEARCH_ARRAY, 91)
    valid = validate_search_trace(SEARCH_ARRAY, 91, search)
    print(f"\n  Binary search for 91: {len(search)} steps "
          f"(bound {max_search_steps(len(SEARCH_ARRAY))}), valid={valid.is_valid}")
    print(f"  Linear search for 91: {len(linear_search_steps(SEARCH_ARRAY, 91))} steps")

    root = bst.from_values()
    tree_steps = bst.delete_steps(root, 30)
    print(f"  BST delete 30: {[s.action for s in tree_steps]}")
    print(f"    in-order after: {bst.traverse(bst.result_tree(tree_steps))}")
    print(f"    valid={validate_tree_trace(tree_steps).is_valid}")

    a = [[1, 2], [3, 4]]
    b = [[5, 6], [7, 8]]
    matrix = matrix_multiply_steps(a, b)
    print(f"  Matrix 2x2: {len(matrix)} steps, product {product_from_steps(matrix)}, "
          f"valid={validate_matrix_trace(a, b, matrix).is_valid}")

    return search, tree_steps, matrix


def run_playback_demo():
    """Drive playback sessions with a synthetic clock."""
    banner("(c) PLAYBACK")

    scheduler = Scheduler()
    controller = PlaybackController(scheduler, PlaybackConfig(step_interval=0.25))
    transitions = []
    controller.add_listener(lambda snap: transitions.append(snap.run_state))

    controller.load_steps(binary_search_steps(SEARCH_ARRAY, 91))
    controller.start()
    scheduler.run_for(0.6)
    controller.pause()
    paused_at = controller.cursor
    scheduler.run_for(1.0)
    print(f"\n  Discrete: paused at cursor {paused_at}, still {controller.cursor} after 1 s")
    controller.resume()
    scheduler.run_for(2.0)
    print(f"  Discrete: {controller.run_state} at cursor {controller.cursor}")

    controller.load_system(DampedDrivenOscillator())
    controller.set_speed(2.0)
    controller.start()
    scheduler.run_for(3.0)
    # stop() clears the replay window
    history = list(controller.track.history)
    print(f"  Continuous: t = {controller.cursor:.3f} s after 3 s at 2x, "
          f"{len(history)} states in history")
    controller.stop()
    print(f"  After stop: {controller.run_state}, t = {controller.cursor}")
    print(f"  Transitions seen: {len(transitions)}")

    return history


def generate_plots(rc_result, osc_results, incline_results, particle_result,
                   traces, history):
    """Generate comparison plots."""
    banner("GENERATING PLOTS")

    fig, axes = plot_states(rc_result, readouts=['I'], title='RC Circuit: Charging')
    t = rc_result.time
    axes[0].plot(t, rc_analytic(RCCircuit(resistance=100.0, capacitance=200.0), t),
                 'r--', linewidth=1, label='closed form')
    axes[0].legend()
    save_figure(fig, 'rc_charging')
    plt.close(fig)
    print("  Saved: rc_charging.png")

    free_result, driven_result = osc_results
    fig, ax = plt.subplots(1, 2, figsize=(14, 6))
    plot_phase_portrait(free_result, ax=ax[0], title='Undamped (b=0)')
    plot_phase_portrait(driven_result, ax=ax[1], title='Damped, driven')
    save_figure(fig, 'oscillator_phase')
    plt.close(fig)
    print("  Saved: oscillator_phase.png")

    fig, ax = plt.subplots(figsize=(10, 5))
    for angle, result in incline_results.items():
        ax.plot(result.time, result.states[:, 0], linewidth=1.5, label=f'{angle:.0f} deg')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('s (m)')
    ax.set_title('Incline: Distance Travelled')
    ax.grid(True, alpha=0.3)
    ax.legend()
    save_figure(fig, 'incline_distance')
    plt.close(fig)
    print("  Saved: incline_distance.png")

    fig, ax = plt.subplots(figsize=(8, 8))
    plot_phase_portrait(particle_result, ax=ax, indices=(0, 1), title='Cyclotron orbit')
    ax.set_aspect('equal')
    save_figure(fig, 'particle_orbit')
    plt.close(fig)
    print("  Saved: particle_orbit.png")

    search, tree_steps, matrix = traces
    fig, axes = plt.subplots(3, 1, figsize=(10, 10))
    plot_search_step(SEARCH_ARRAY, search[-1], ax=axes[0], completed=True)
    plot_tree_step(tree_steps[-1], ax=axes[1])
    plot_matrix_step([[1, 2], [3, 4]], [[5, 6], [7, 8]], matrix[-1],
                     product_from_steps(matrix), ax=axes[2])
    save_figure(fig, 'algorithm_steps')
    plt.close(fig)
    print("  Saved: algorithm_steps.png")

    a, b = [[1, 2], [3, 4]], [[5, 6], [7, 8]]
    controller = PlaybackController(Scheduler(), PlaybackConfig(step_interval=0.2))
    controller.load_steps(matrix)
    path = export_playback(controller, 'report/figures/matrix_playback',
                           duration=len(matrix) * 0.2 + 0.5, fps=10, format='html',
                           context={'a': a, 'b': b, 'steps': matrix})
    print(f"  Saved: {os.path.basename(path)}")

    fig, ax = plt.subplots(figsize=(10, 4))
    plot_history(history, index=0, ax=ax, label='x')
    ax.set_title('Replay window (continuous playback)')
    save_figure(fig, 'playback_history')
    plt.close(fig)
    print("  Saved: playback_history.png")


def main():
    """Run smoke test."""
    print("="*60)
    print("SMOKE TEST: SIMULATION & PLAYBACK ENGINE")
    print("="*60)

    ensure_dirs()

    rc_result = run_rc_test()
    osc_results = run_oscillator_test()
    incline_results = run_incline_test()
    particle_result = run_particle_test()
    traces = run_algorithm_tests()
    history = run_playback_demo()

    generate_plots(rc_result, osc_results, incline_results, particle_result,
                   traces, history)

    print("\n" + "="*60)
    print("SMOKE TEST COMPLETE")
    print("="*60)
    print("\nGenerated files:")
    print("  - report/figures/*.png")
    print("  - report/figures/matrix_playback.html")


if __name__ == "__main__":
    main()
