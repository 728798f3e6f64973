# qstate/tests/test_gates.py
import math
import numpy as np
import pytest

from qstate import gates as G
from qstate import kernels
from qstate.errors import InvalidTargetList, InvalidTargetQubitIndex
from qstate.gate import ControlValue, MultiControlledSingleTarget, Single, apply
from qstate.state import StateArray, StateVec

I2 = np.eye(2, dtype=np.complex128)
X = np.array([[0, 1], [1, 0]], dtype=np.complex128)
Y = np.array([[0, -1j], [1j, 0]], dtype=np.complex128)
Z = np.array([[1, 0], [0, -1]], dtype=np.complex128)
H = np.array([[1, 1], [1, -1]], dtype=np.complex128) / math.sqrt(2)
P0 = np.diag([1, 0]).astype(np.complex128)
P1 = np.diag([0, 1]).astype(np.complex128)

def embed(n, ops):
    """Dense 2^n operator with ops[q] on qubit q (qubit 0 is the rightmost factor)."""
    full = np.eye(1, dtype=np.complex128)
    for q in reversed(range(n)):
        full = np.kron(full, ops.get(q, I2))
    return full

def controlled(n, controls, target, U):
    # sum over control patterns; only the all-satisfied pattern gets U
    full = np.zeros((1 << n, 1 << n), dtype=np.complex128)
    for pattern in range(1 << len(controls)):
        ops = {}
        hit = True
        for k, (c, v) in enumerate(controls):
            bit = (pattern >> k) & 1
            ops[c] = P1 if bit else P0
            hit = hit and bit == v
        if hit:
            ops[target] = U
        full += embed(n, ops)
    return full

def rotation(P, theta):
    return math.cos(theta / 2) * np.eye(len(P)) - 1j * math.sin(theta / 2) * P

def haar(n, seed=0):
    st = StateVec(n)
    st.set_haar_random_state_with_seed(seed)
    return st

def almost(p, q, tol=1e-10):
    return np.allclose(p, q, atol=tol, rtol=0)

SINGLE = [
    (G.x_gate, X),
    (G.y_gate, Y),
    (G.z_gate, Z),
    (G.h_gate, H),
    (G.s_gate, np.diag([1, 1j])),
    (G.sdag_gate, np.diag([1, -1j])),
    (G.t_gate, np.diag([1, np.exp(0.25j * np.pi)])),
    (G.tdag_gate, np.diag([1, np.exp(-0.25j * np.pi)])),
    (G.sqrtx_gate, 0.5 * np.array([[1 + 1j, 1 - 1j], [1 - 1j, 1 + 1j]])),
    (G.sqrtxdag_gate, 0.5 * np.array([[1 - 1j, 1 + 1j], [1 + 1j, 1 - 1j]])),
    (G.sqrty_gate, 0.5 * np.array([[1 + 1j, -1 - 1j], [1 + 1j, 1 + 1j]])),
    (G.sqrtydag_gate, 0.5 * np.array([[1 - 1j, 1 - 1j], [-1 + 1j, 1 - 1j]])),
    (G.p0_gate, P0),
    (G.p1_gate, P1),
]

# ---------- single qubit ----------

def test_x_then_z_on_zero():
    st = StateVec(1)
    G.x_gate(0, st)
    G.z_gate(0, st)
    assert almost(st.as_array(), [0, -1])

@pytest.mark.parametrize("fn,U", SINGLE)
def test_single_qubit_gates_match_dense(fn, U):
    n = 3
    for q in range(n):
        st = haar(n, seed=q)
        expect = embed(n, {q: np.asarray(U, dtype=np.complex128)}) @ st.as_array()
        fn(q, st)
        assert almost(st.as_array(), expect)

def test_sqrt_gates_square_to_pauli():
    a, b = haar(2, seed=1), haar(2, seed=1)
    G.sqrtx_gate(1, a); G.sqrtx_gate(1, a)
    G.x_gate(1, b)
    assert almost(a.as_array(), b.as_array())
    G.sqrty_gate(0, a); G.sqrtydag_gate(0, a)
    assert almost(a.as_array(), b.as_array())

def test_projection_does_not_renormalize():
    st = StateVec(1)
    G.h_gate(0, st)
    G.p1_gate(0, st)
    assert abs(st.get_squared_norm() - 0.5) < 1e-12

# ---------- rotations ----------

@pytest.mark.parametrize("fn,P", [(G.rx_gate, X), (G.ry_gate, Y), (G.rz_gate, Z)])
def test_rotations_match_dense(fn, P):
    n, theta = 3, 0.731
    for q in range(n):
        st = haar(n, seed=10 + q)
        expect = embed(n, {q: rotation(P, theta)}) @ st.as_array()
        fn(q, theta, st)
        assert almost(st.as_array(), expect)

def test_rotation_sign_convention():
    st = StateVec(1)
    G.ry_gate(0, math.pi / 2, st)
    assert almost(st.as_array(), [1 / math.sqrt(2), 1 / math.sqrt(2)])
    st = StateVec(1)
    G.rx_gate(0, math.pi, st)
    assert almost(st.as_array(), [0, -1j])
    st = StateVec(1)
    G.rz_gate(0, math.pi, st)
    assert almost(st.as_array(), [-1j, 0])

def test_rotation_by_zero_is_identity():
    st = haar(2, seed=5)
    before = st.as_array().copy()
    G.rx_gate(1, 0.0, st)
    assert almost(st.as_array(), before)

# ---------- two qubit ----------

def test_cnot_control_off_noop():
    # |00> --(CNOT c=1,t=0)--> stays |00>
    st = StateVec(2)
    G.cnot_gate(1, 0, st)
    assert almost(st.as_array(), [1, 0, 0, 0])

def test_cnot_control_on_flips():
    # |10> --(CNOT c=1,t=0)--> |11>
    st = StateVec(2)
    G.x_gate(1, st)
    G.cnot_gate(1, 0, st)
    assert almost(st.as_array(), [0, 0, 0, 1])

@pytest.mark.parametrize("c,t", [(0, 2), (2, 0), (1, 2), (2, 1)])
def test_cnot_and_cz_match_dense(c, t):
    n = 3
    st = haar(n, seed=c * 3 + t)
    expect = controlled(n, [(c, 1)], t, X) @ st.as_array()
    G.cnot_gate(c, t, st)
    assert almost(st.as_array(), expect)

    expect = controlled(n, [(c, 1)], t, Z) @ st.as_array()
    G.cz_gate(c, t, st)
    assert almost(st.as_array(), expect)

def test_swap_matches_bit_swap():
    n = 3
    st = haar(n, seed=4)
    psi = st.as_array().copy()
    G.swap_gate(2, 0, st)
    for i in range(1 << n):
        b0, b2 = i & 1, (i >> 2) & 1
        j = (i & 0b010) | (b0 << 2) | b2
        assert abs(st.as_array()[j] - psi[i]) < 1e-12

def test_bell_state():
    st = StateVec(2)
    G.h_gate(0, st)
    G.cnot_gate(0, 1, st)
    assert almost(st.as_array(), np.array([1, 0, 0, 1]) / math.sqrt(2))

# ---------- multi-controlled ----------

def test_ccnot_probabilities():
    st = StateVec(3)
    st.set_computational_basis(0b010)
    G.h_gate(0, st)
    G.h_gate(1, st)
    G.ccnot_gate(0, 1, 2, st)
    for q, expected in enumerate([0.5, 0.5, 0.75]):
        assert abs(st.get_zero_probability(q) - expected) < 1e-5

@pytest.mark.parametrize("fn,U", [(G.ccnot_gate, X), (G.ccz_gate, Z)])
def test_ccnot_ccz_match_dense(fn, U):
    n = 4
    st = haar(n, seed=8)
    expect = controlled(n, [(3, 1), (0, 1)], 1, U) @ st.as_array()
    fn(3, 0, 1, st)
    assert almost(st.as_array(), expect)

def test_multi_control_with_zero_control_values():
    n = 4
    U = rotation(Y, 1.1)
    st = haar(n, seed=13)
    expect = controlled(n, [(2, 0), (0, 1)], 3, U) @ st.as_array()
    G.multi_control_u_gate([(2, ControlValue.ZERO), (0, ControlValue.ONE)], 3, U, st)
    assert almost(st.as_array(), expect)

def test_multi_control_bare_indices_control_on_one():
    gate = MultiControlledSingleTarget((1, 2), 0, [[0, 1], [1, 0]], kernels.multi_qubit_control_single_qubit_dense_matrix_gate)
    assert gate.controls == ((1, ControlValue.ONE), (2, ControlValue.ONE))
    assert gate.matrix == (0, 1, 1, 0)

def test_multi_control_rejects_bad_matrix():
    with pytest.raises(ValueError):
        G.multi_control_u_gate([0], 1, np.eye(3), StateVec(2))

# ---------- Pauli rotation ----------

@pytest.mark.parametrize("targets,paulis", [
    ([0, 2], [1, 3]),
    ([1, 0, 2], [2, 2, 1]),
    ([2, 1], [3, 3]),
    ([1], [0]),
])
def test_pauli_rotation_matches_dense(targets, paulis):
    n, theta = 3, -0.42
    mats = {0: I2, 1: X, 2: Y, 3: Z}
    P = embed(n, {t: mats[p] for t, p in zip(targets, paulis)})
    st = haar(n, seed=len(targets))
    expect = rotation(P, theta) @ st.as_array()
    G.pauli_rotation_gate(targets, paulis, theta, st)
    assert almost(st.as_array(), expect)

def test_pauli_rotation_single_z_equals_rz():
    a, b = haar(2, seed=2), haar(2, seed=2)
    G.pauli_rotation_gate([1], [3], 0.3, a)
    G.rz_gate(1, 0.3, b)
    assert almost(a.as_array(), b.as_array())

# ---------- validation ----------

def test_invalid_target_rejected_before_kernel():
    st = StateVec(2)
    before = st.as_array().copy()
    with pytest.raises(InvalidTargetQubitIndex):
        G.x_gate(2, st)
    with pytest.raises(InvalidTargetQubitIndex):
        G.rz_gate(-1, 0.1, st)
    with pytest.raises(InvalidTargetQubitIndex):
        G.cnot_gate(0, 5, st)
    assert almost(st.as_array(), before)

def test_control_equal_to_target_rejected():
    st = StateVec(3)
    with pytest.raises(InvalidTargetList):
        G.cnot_gate(1, 1, st)
    with pytest.raises(InvalidTargetList):
        G.swap_gate(2, 2, st)
    with pytest.raises(InvalidTargetList):
        G.ccnot_gate(0, 0, 1, st)
    with pytest.raises(InvalidTargetList):
        G.ccz_gate(0, 2, 2, st)

def test_invalid_control_value_rejected():
    with pytest.raises(InvalidTargetList):
        G.multi_control_u_gate([(0, 2)], 1, X, StateVec(2))

def test_invalid_pauli_string_rejected():
    st = StateVec(2)
    with pytest.raises(InvalidTargetList):
        G.pauli_rotation_gate([0, 1], [1], 0.1, st)
    with pytest.raises(InvalidTargetList):
        G.pauli_rotation_gate([0], [4], 0.1, st)
    with pytest.raises(InvalidTargetQubitIndex):
        G.pauli_rotation_gate([3], [1], 0.1, st)

def test_apply_rejects_unknown_descriptor():
    with pytest.raises(TypeError):
        apply(StateVec(1), ("X", 0))

# ---------- buffer variants ----------

def test_complex64_array_matches_statevec():
    ref = haar(3, seed=30)
    st = StateArray(ref.as_array().astype(np.complex64))
    for s in (ref, st):
        G.h_gate(0, s)
        G.cnot_gate(0, 2, s)
        G.ry_gate(1, 0.5, s)
        G.ccz_gate(0, 1, 2, s)
    assert np.allclose(st.as_array(), ref.as_array(), atol=1e-6)

def test_copy_back_happens_when_kernel_raises():
    arr = np.zeros(4, dtype=np.complex64)
    arr[0] = 1.0
    st = StateArray(arr)

    def failing_kernel(target, buf, dim):
        buf[:] = 0.0
        buf[3] = 1.0
        raise RuntimeError("kernel failed")

    with pytest.raises(RuntimeError):
        apply(st, Single(0, failing_kernel))
    assert arr[3] == 1.0 and arr[0] == 0.0
