"""
Reference node and arc dynamics.

Coupled oscillators read the states of their in-neighbours through
``system.state_id``; an arc's coupling strength is its own state when arcs
carry state and its weight otherwise.
"""

from __future__ import annotations
import math

from ..core.dynamics import ArcDynamic, NodeDynamic

TWO_PI_APPROX = 6.283


def _coupling(system, arc, x) -> float:
    if system.arc_states() > 0:
        return x[system.state_id(arc)]
    return system.arc_data(arc).weight


class KuramotoNodeMap(NodeDynamic):
    """
    Discrete-time Kuramoto phase oscillator.

    Params: [natural frequency, coupling]. The phase is wrapped modulo 6.283.
    """

    name = "KuramotoNodeMap"
    state_count = 1

    def set_default_parameters(self, node, system):
        system.node_data(node).params.extend([0.2, 0.1])

    def derivative(self, node, system, x, dx, t):
        i = system.state_id(node)
        omega, k = system.node_data(node).params[:2]
        coupling = sum(math.sin(x[system.state_id(e.source)] - x[i])
                       for e in system.in_arcs(node))
        dx[i] = math.fmod(x[i] + omega + k * coupling, TWO_PI_APPROX)


class LorenzOscillator(NodeDynamic):
    """
    Lorenz chaotic oscillator with diffusive coupling on all three states.

    Params: [sigma, rho, beta] defaulting to [28, 10, 8/3]; the first
    multiplies (y - x) and the second enters as x * (rho - z).
    """

    name = "LorenzOscillator"
    state_count = 3

    def set_default_parameters(self, node, system):
        system.node_data(node).params.extend([28.0, 10.0, 8.0 / 3.0])

    def derivative(self, node, system, x, dx, t):
        i = system.state_id(node)
        sigma, rho, beta = system.node_data(node).params[:3]
        c = [0.0, 0.0, 0.0]
        for e in system.in_arcs(node):
            w = _coupling(system, e, x)
            j = system.state_id(e.source)
            for k in range(3):
                c[k] += w * (x[j + k] - x[i + k])

        dx[i] = sigma * (x[i + 1] - x[i]) + c[0]
        dx[i + 1] = x[i] * (rho - x[i + 2]) - x[i + 1] + c[1]
        dx[i + 2] = x[i] * x[i + 1] - beta * x[i + 2] + c[2]


class RosslerOscillator(NodeDynamic):
    """Rössler chaotic oscillator (a=0.165, b=0.2, c=10) coupled on x and z."""

    name = "RosslerOscillator"
    state_count = 3
    coupling = 0.5

    def derivative(self, node, system, x, dx, t):
        i = system.state_id(node)
        c1 = c3 = 0.0
        for e in system.in_arcs(node):
            j = system.state_id(e.source)
            c1 += x[j] - x[i]
            c3 += x[j + 2] - x[i + 2]

        dx[i] = -x[i + 1] - x[i + 2] + self.coupling * c1
        dx[i + 1] = x[i] + 0.165 * x[i + 1]
        dx[i + 2] = 0.2 + (x[i] - 10.0) * x[i + 2] + self.coupling * c3


class AdaptiveCouplingLaw(ArcDynamic):
    """
    Coupling strength growing with the mismatch of the endpoints' first state.

    Params: [alpha] defaulting to 0.1.
    """

    name = "AdaptiveCouplingLaw"
    state_count = 1

    def set_default_parameters(self, arc, system):
        system.arc_data(arc).params.append(0.1)

    def derivative(self, arc, system, x, dx, t):
        alpha = system.arc_data(arc).params[0]
        diff = x[system.state_id(arc.source)] - x[system.state_id(arc.target)]
        dx[system.state_id(arc)] = alpha * abs(diff)
