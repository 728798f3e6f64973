# qstate/kernels.py
"""Numerical kernels that mutate or reduce amplitude buffers.

Every kernel takes its operands first and then ``(state, dim)``, where
``state`` is a C-contiguous complex128 array and ``dim == len(state) == 2**n``.
Nothing here validates arguments: indices, list lengths and ``dim`` are the
caller's responsibility (see ``qstate.gate`` and ``qstate.state``).

Rotations follow exp(-i * angle/2 * P).
"""
import math
import numpy as np
from numba import njit, prange, set_num_threads, get_num_threads
from .bits import insert_zero_bit, insert_fixed_bits

# ---------- matrices for the named gates ----------

_S2 = 1.0 / np.sqrt(2.0)

def _mat(*rows):
    return np.ascontiguousarray(np.array(rows, dtype=np.complex128).reshape(4))

X_MATRIX = _mat([0, 1], [1, 0])
Y_MATRIX = _mat([0, -1j], [1j, 0])
Z_MATRIX = _mat([1, 0], [0, -1])
H_MATRIX = _mat([_S2, _S2], [_S2, -_S2])
S_MATRIX = _mat([1, 0], [0, 1j])
SDAG_MATRIX = _mat([1, 0], [0, -1j])
T_MATRIX = _mat([1, 0], [0, np.exp(0.25j * np.pi)])
TDAG_MATRIX = _mat([1, 0], [0, np.exp(-0.25j * np.pi)])
SQRTX_MATRIX = _mat([0.5 + 0.5j, 0.5 - 0.5j], [0.5 - 0.5j, 0.5 + 0.5j])
SQRTXDAG_MATRIX = _mat([0.5 - 0.5j, 0.5 + 0.5j], [0.5 + 0.5j, 0.5 - 0.5j])
SQRTY_MATRIX = _mat([0.5 + 0.5j, -0.5 - 0.5j], [0.5 + 0.5j, 0.5 + 0.5j])
SQRTYDAG_MATRIX = _mat([0.5 - 0.5j, 0.5 - 0.5j], [-0.5 + 0.5j, 0.5 - 0.5j])
P0_MATRIX = _mat([1, 0], [0, 0])
P1_MATRIX = _mat([0, 0], [0, 1])

# ---------- low-level kernels (Numba JIT) ----------

@njit(parallel=True, fastmath=True)
def _single_qubit_dense_kernel(target, m, state, dim):
    mask = 1 << target
    for r in prange(dim >> 1):
        i0 = insert_zero_bit(np.int64(r), target)
        i1 = i0 | mask
        a0 = state[i0]
        a1 = state[i1]
        state[i0] = m[0]*a0 + m[1]*a1
        state[i1] = m[2]*a0 + m[3]*a1

@njit(parallel=True, fastmath=True)
def _multi_control_single_target_kernel(sorted_positions, control_mask, target, m, state, dim):
    # sorted_positions holds the controls and the target; control_mask has
    # the required control values already in place
    tmask = 1 << target
    loop_dim = dim >> sorted_positions.shape[0]
    for r in prange(loop_dim):
        i0 = insert_fixed_bits(np.int64(r), sorted_positions, control_mask)
        i1 = i0 | tmask
        a0 = state[i0]
        a1 = state[i1]
        state[i0] = m[0]*a0 + m[1]*a1
        state[i1] = m[2]*a0 + m[3]*a1

@njit(parallel=True, fastmath=True)
def _swap_kernel(q0, q1, state, dim):
    lo = min(q0, q1)
    hi = max(q0, q1)
    m0 = 1 << q0
    m1 = 1 << q1
    for r in prange(dim >> 2):
        base = insert_zero_bit(insert_zero_bit(np.int64(r), lo), hi)
        i01 = base | m0
        i10 = base | m1
        tmp = state[i01]
        state[i01] = state[i10]
        state[i10] = tmp

@njit
def _parity(x):
    p = 0
    while x:
        x &= x - 1
        p ^= 1
    return p

@njit(parallel=True, fastmath=True)
def _pauli_rotation_diagonal_kernel(phase_mask, c, s, state, dim):
    for r in prange(dim):
        i = np.int64(r)
        sign = 1.0 - 2.0 * _parity(i & phase_mask)
        state[i] = state[i] * complex(c, -s * sign)

@njit(parallel=True, fastmath=True)
def _pauli_rotation_kernel(flip_mask, phase_mask, pivot, global_phase, c, s, state, dim):
    # pairs (j, j ^ flip_mask) with the pivot bit of j cleared are disjoint
    for r in prange(dim >> 1):
        j = insert_zero_bit(np.int64(r), pivot)
        k = j ^ flip_mask
        phase_j = global_phase * (1.0 - 2.0 * _parity(j & phase_mask))
        phase_k = global_phase * (1.0 - 2.0 * _parity(k & phase_mask))
        aj = state[j]
        ak = state[k]
        state[j] = c * aj - 1j * s * phase_k * ak
        state[k] = c * ak - 1j * s * phase_j * aj

@njit(parallel=True, fastmath=True)
def _pauli_expectation_kernel(flip_mask, phase_mask, global_phase, state, dim):
    total = 0.0
    for r in prange(dim):
        j = np.int64(r)
        k = j ^ flip_mask
        phase_j = global_phase * (1.0 - 2.0 * _parity(j & phase_mask))
        total += (state[k].conjugate() * phase_j * state[j]).real
    return total

@njit(parallel=True, fastmath=True)
def _norm_squared_kernel(state, dim):
    total = 0.0
    for i in prange(dim):
        total += state[i].real * state[i].real + state[i].imag * state[i].imag
    return total

@njit(parallel=True, fastmath=True)
def _entropy_kernel(state, dim, floor):
    ent = 0.0
    for i in prange(dim):
        p = state[i].real * state[i].real + state[i].imag * state[i].imag
        ent += p * math.log(max(p, floor))
    return -ent

@njit(parallel=True, fastmath=True)
def _zero_probability_kernel(target, state, dim):
    total = 0.0
    for r in prange(dim >> 1):
        i = insert_zero_bit(np.int64(r), target)
        total += state[i].real * state[i].real + state[i].imag * state[i].imag
    return total

@njit(parallel=True, fastmath=True)
def _marginal_probability_kernel(sorted_positions, value_mask, state, dim):
    total = 0.0
    for r in prange(dim >> sorted_positions.shape[0]):
        i = insert_fixed_bits(np.int64(r), sorted_positions, value_mask)
        total += state[i].real * state[i].real + state[i].imag * state[i].imag
    return total

@njit(parallel=True, fastmath=True)
def _add_kernel(other, state, dim):
    for i in prange(dim):
        state[i] += other[i]

@njit(parallel=True, fastmath=True)
def _scale_kernel(coef, state, dim):
    for i in prange(dim):
        state[i] *= coef

@njit(parallel=True, fastmath=True)
def _inner_product_kernel(bra, ket, dim):
    re = 0.0
    im = 0.0
    for i in prange(dim):
        v = bra[i].conjugate() * ket[i]
        re += v.real
        im += v.imag
    return complex(re, im)

@njit(parallel=True, fastmath=True)
def _tensor_product_kernel(left, left_dim, right, right_dim, out):
    for i in prange(left_dim):
        a = left[i]
        base = np.int64(i) * right_dim
        for j in range(right_dim):
            out[base + j] = a * right[j]

@njit(parallel=True, fastmath=True)
def _permutate_kernel(new_order, state, out, qubit_count, dim):
    for r in prange(dim):
        i = np.int64(r)
        src = 0
        for k in range(qubit_count):
            if (i >> k) & 1:
                src |= 1 << new_order[k]
        out[i] = state[src]

@njit(parallel=True, fastmath=True)
def _drop_kernel(sorted_positions, value_mask, state, out, dim):
    for r in prange(dim >> sorted_positions.shape[0]):
        i = np.int64(r)
        out[i] = state[insert_fixed_bits(i, sorted_positions, value_mask)]

# ---------- thread pool ----------

def set_threads(n: int):
    set_num_threads(n)

def get_threads() -> int:
    return get_num_threads()

# ---------- gate kernels: (operands..., state, dim) ----------

def x_gate(target, state, dim):
    _single_qubit_dense_kernel(target, X_MATRIX, state, dim)

def y_gate(target, state, dim):
    _single_qubit_dense_kernel(target, Y_MATRIX, state, dim)

def z_gate(target, state, dim):
    _single_qubit_dense_kernel(target, Z_MATRIX, state, dim)

def h_gate(target, state, dim):
    _single_qubit_dense_kernel(target, H_MATRIX, state, dim)

def s_gate(target, state, dim):
    _single_qubit_dense_kernel(target, S_MATRIX, state, dim)

def sdag_gate(target, state, dim):
    _single_qubit_dense_kernel(target, SDAG_MATRIX, state, dim)

def t_gate(target, state, dim):
    _single_qubit_dense_kernel(target, T_MATRIX, state, dim)

def tdag_gate(target, state, dim):
    _single_qubit_dense_kernel(target, TDAG_MATRIX, state, dim)

def sqrtx_gate(target, state, dim):
    _single_qubit_dense_kernel(target, SQRTX_MATRIX, state, dim)

def sqrtxdag_gate(target, state, dim):
    _single_qubit_dense_kernel(target, SQRTXDAG_MATRIX, state, dim)

def sqrty_gate(target, state, dim):
    _single_qubit_dense_kernel(target, SQRTY_MATRIX, state, dim)

def sqrtydag_gate(target, state, dim):
    _single_qubit_dense_kernel(target, SQRTYDAG_MATRIX, state, dim)

def p0_gate(target, state, dim):
    _single_qubit_dense_kernel(target, P0_MATRIX, state, dim)

def p1_gate(target, state, dim):
    _single_qubit_dense_kernel(target, P1_MATRIX, state, dim)

def _rotation_matrix(pauli, angle):
    c = math.cos(angle / 2.0)
    s = math.sin(angle / 2.0)
    if pauli == "X":
        return _mat([c, -1j*s], [-1j*s, c])
    if pauli == "Y":
        return _mat([c, -s], [s, c])
    return _mat([complex(c, -s), 0], [0, complex(c, s)])

def rx_gate(target, angle, state, dim):
    _single_qubit_dense_kernel(target, _rotation_matrix("X", angle), state, dim)

def ry_gate(target, angle, state, dim):
    _single_qubit_dense_kernel(target, _rotation_matrix("Y", angle), state, dim)

def rz_gate(target, angle, state, dim):
    _single_qubit_dense_kernel(target, _rotation_matrix("Z", angle), state, dim)

def multi_qubit_control_single_qubit_dense_matrix_gate(
        control_indices, control_values, control_count, target, matrix, state, dim):
    positions = np.empty(control_count + 1, dtype=np.int64)
    positions[:control_count] = control_indices[:control_count]
    positions[control_count] = target
    positions.sort()
    control_mask = 0
    for k in range(control_count):
        if control_values[k]:
            control_mask |= 1 << int(control_indices[k])
    _multi_control_single_target_kernel(positions, control_mask, target, matrix, state, dim)

def _controlled(control, target, matrix, state, dim):
    multi_qubit_control_single_qubit_dense_matrix_gate(
        np.array([control], dtype=np.int64), np.ones(1, dtype=np.int64), 1,
        target, matrix, state, dim)

def cnot_gate(control, target, state, dim):
    _controlled(control, target, X_MATRIX, state, dim)

def cz_gate(control, target, state, dim):
    _controlled(control, target, Z_MATRIX, state, dim)

def swap_gate(target0, target1, state, dim):
    _swap_kernel(target0, target1, state, dim)

def _pauli_masks(targets, paulis, count):
    # Pauli ids: 0=I, 1=X, 2=Y, 3=Z; P|j> = i^nY (-1)^popcount(j & phase) |j ^ flip>
    flip_mask = 0
    phase_mask = 0
    pivot = 0
    n_y = 0
    for k in range(count):
        t = int(targets[k])
        p = int(paulis[k])
        if p in (1, 2):
            flip_mask |= 1 << t
            pivot = max(pivot, t)
        if p in (2, 3):
            phase_mask |= 1 << t
        if p == 2:
            n_y += 1
    global_phase = (1, 1j, -1, -1j)[n_y % 4]
    return flip_mask, phase_mask, pivot, complex(global_phase)

def multi_qubit_pauli_rotation_gate(targets, paulis, count, angle, state, dim):
    flip_mask, phase_mask, pivot, global_phase = _pauli_masks(targets, paulis, count)
    c = math.cos(angle / 2.0)
    s = math.sin(angle / 2.0)
    if flip_mask == 0:
        _pauli_rotation_diagonal_kernel(phase_mask, c, s, state, dim)
    else:
        _pauli_rotation_kernel(flip_mask, phase_mask, pivot, global_phase, c, s, state, dim)

# ---------- auxiliary kernels ----------

def expectation_value_multi_qubit_pauli_operator(targets, paulis, count, state, dim):
    flip_mask, phase_mask, _, global_phase = _pauli_masks(targets, paulis, count)
    return float(_pauli_expectation_kernel(flip_mask, phase_mask, global_phase, state, dim))

def state_norm_squared(state, dim):
    return float(_norm_squared_kernel(state, dim))

def measurement_distribution_entropy(state, dim, floor=1e-15):
    return float(_entropy_kernel(state, dim, floor))

def zero_probability(target, state, dim):
    return float(_zero_probability_kernel(target, state, dim))

def marginal_probability(sorted_positions, value_mask, state, dim):
    return float(_marginal_probability_kernel(sorted_positions, value_mask, state, dim))

def state_add(other, state, dim):
    _add_kernel(other, state, dim)

def state_multiply(coef, state, dim):
    _scale_kernel(complex(coef), state, dim)

def normalize(squared_norm, state, dim):
    _scale_kernel(complex(1.0 / math.sqrt(squared_norm)), state, dim)

def initialize_quantum_state(state, dim):
    state[:dim] = 0.0
    state[0] = 1.0

def initialize_haar_random_state_with_seed(state, dim, seed):
    rng = np.random.default_rng(seed)
    state[:dim] = rng.standard_normal(dim) + 1j * rng.standard_normal(dim)
    normalize(state_norm_squared(state, dim), state, dim)

def initialize_haar_random_state(state, dim):
    initialize_haar_random_state_with_seed(state, dim, None)

def state_inner_product(bra, ket, dim):
    return complex(_inner_product_kernel(bra, ket, dim))

def state_tensor_product(left, left_dim, right, right_dim, out):
    _tensor_product_kernel(left, left_dim, right, right_dim, out)

def state_permutate_qubit(new_order, state, out, qubit_count, dim):
    _permutate_kernel(new_order, state, out, qubit_count, dim)

def state_drop_qubits(sorted_positions, value_mask, state, out, dim):
    _drop_kernel(sorted_positions, value_mask, state, out, dim)
