# qstate/gates.py
"""Named gates.

Each function takes the qubit indices first and the state last, and applies
the gate in place. Rotations are exp(-i * angle/2 * P) for the Pauli P.
"""
from typing import Sequence, Union

import numpy as np

from . import kernels
from .gate import Controlled, ControlValue, MultiControlledSingleTarget, Rotation, Single, apply
from .state import StateMut, check_pauli_string

CCNOT_MATRIX = ((0, 1), (1, 0))
CCZ_MATRIX = ((1, 0), (0, -1))

# ---------- single qubit ----------

def x_gate(target: int, state: StateMut):
    """Pauli X."""
    apply(state, Single(target, kernels.x_gate))

def y_gate(target: int, state: StateMut):
    """Pauli Y."""
    apply(state, Single(target, kernels.y_gate))

def z_gate(target: int, state: StateMut):
    """Pauli Z."""
    apply(state, Single(target, kernels.z_gate))

def h_gate(target: int, state: StateMut):
    """Hadamard."""
    apply(state, Single(target, kernels.h_gate))

def s_gate(target: int, state: StateMut):
    """S = diag(1, i)."""
    apply(state, Single(target, kernels.s_gate))

def sdag_gate(target: int, state: StateMut):
    apply(state, Single(target, kernels.sdag_gate))

def t_gate(target: int, state: StateMut):
    """T = diag(1, exp(i*pi/4))."""
    apply(state, Single(target, kernels.t_gate))

def tdag_gate(target: int, state: StateMut):
    apply(state, Single(target, kernels.tdag_gate))

def sqrtx_gate(target: int, state: StateMut):
    """Square root of X."""
    apply(state, Single(target, kernels.sqrtx_gate))

def sqrtxdag_gate(target: int, state: StateMut):
    apply(state, Single(target, kernels.sqrtxdag_gate))

def sqrty_gate(target: int, state: StateMut):
    """Square root of Y."""
    apply(state, Single(target, kernels.sqrty_gate))

def sqrtydag_gate(target: int, state: StateMut):
    apply(state, Single(target, kernels.sqrtydag_gate))

def p0_gate(target: int, state: StateMut):
    """Project `target` onto |0> (no renormalization)."""
    apply(state, Single(target, kernels.p0_gate))

def p1_gate(target: int, state: StateMut):
    """Project `target` onto |1> (no renormalization)."""
    apply(state, Single(target, kernels.p1_gate))

# ---------- rotations ----------

def rx_gate(target: int, angle: float, state: StateMut):
    """exp(-i * angle/2 * X)."""
    apply(state, Rotation(target, angle, kernels.rx_gate))

def ry_gate(target: int, angle: float, state: StateMut):
    """exp(-i * angle/2 * Y)."""
    apply(state, Rotation(target, angle, kernels.ry_gate))

def rz_gate(target: int, angle: float, state: StateMut):
    """exp(-i * angle/2 * Z)."""
    apply(state, Rotation(target, angle, kernels.rz_gate))

# ---------- two qubit ----------

def cnot_gate(control: int, target: int, state: StateMut):
    apply(state, Controlled(control, target, kernels.cnot_gate))

def cz_gate(control: int, target: int, state: StateMut):
    apply(state, Controlled(control, target, kernels.cz_gate))

def swap_gate(target0: int, target1: int, state: StateMut):
    apply(state, Controlled(target0, target1, kernels.swap_gate))

# ---------- multi-controlled ----------

def multi_control_u_gate(controls: Sequence[Union[int, tuple]], target: int, matrix, state: StateMut):
    """Apply the 2x2 `matrix` to `target` conditioned on `controls`.

    `controls` holds bare indices (control on |1>) or (index, ControlValue)
    pairs.
    """
    apply(state, MultiControlledSingleTarget(
        tuple(controls), target, matrix,
        kernels.multi_qubit_control_single_qubit_dense_matrix_gate))

def ccnot_gate(control0: int, control1: int, target: int, state: StateMut):
    """Toffoli."""
    multi_control_u_gate(
        [(control0, ControlValue.ONE), (control1, ControlValue.ONE)], target, CCNOT_MATRIX, state)

def ccz_gate(control0: int, control1: int, target: int, state: StateMut):
    multi_control_u_gate(
        [(control0, ControlValue.ONE), (control1, ControlValue.ONE)], target, CCZ_MATRIX, state)

# ---------- Pauli strings ----------

def pauli_rotation_gate(targets: Sequence[int], paulis: Sequence[int], angle: float, state: StateMut):
    """exp(-i * angle/2 * P) for the Pauli string P = prod_k paulis[k] on targets[k]."""
    check_pauli_string(targets, paulis, state.qubit_count())
    t = np.asarray(targets, dtype=np.int64)
    p = np.asarray([int(x) for x in paulis], dtype=np.int64)
    with state.borrow_mut() as (buf, dim):
        kernels.multi_qubit_pauli_rotation_gate(t, p, len(t), float(angle), buf, dim)
