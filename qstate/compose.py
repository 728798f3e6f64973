# qstate/compose.py
"""Operations that build a new state from existing ones.

Inputs are only read; every result is a freshly allocated `StateVec`.
"""
from __future__ import annotations

import enum
from typing import Sequence

import numpy as np

from . import kernels
from .bits import fixed_bits
from .errors import InconsistentStateLength, InvalidTargetList
from .logging import get_logger
from .state import KERNEL_DTYPE, StateRef, StateVec, check_fixed_bits, check_pauli_string

logger = get_logger(__name__)


class Pauli(enum.IntEnum):
    I = 0
    X = 1
    Y = 2
    Z = 3


def tensor_product(left: StateRef, right: StateRef) -> StateVec:
    """|left> (x) |right>; `left` occupies the high qubits.

    out[i * dim(right) + j] = left[i] * right[j]
    """
    n = left.qubit_count() + right.qubit_count()
    out = np.zeros(1 << n, dtype=KERNEL_DTYPE)
    with left.borrow() as (lbuf, ldim), right.borrow() as (rbuf, rdim):
        kernels.state_tensor_product(lbuf, ldim, rbuf, rdim, out)
    logger.debug("tensor product -> %d qubits", n)
    return StateVec._adopt(n, out)


def permutate_qubit(state: StateRef, new_order: Sequence[int]) -> StateVec:
    """Reorder qubits: the qubit at position new_order[k] becomes qubit k."""
    n = state.qubit_count()
    if len(new_order) != n or sorted(int(q) for q in new_order) != list(range(n)):
        raise InvalidTargetList(new_order)
    order = np.asarray(new_order, dtype=np.int64)
    out = np.zeros(state.dim, dtype=KERNEL_DTYPE)
    with state.borrow() as (buf, dim):
        kernels.state_permutate_qubit(order, buf, out, n, dim)
    return StateVec._adopt(n, out)


def drop_qubit(state: StateRef, targets: Sequence[int], projections: Sequence[int]) -> StateVec:
    """Project each target qubit onto its projection value and remove it.

    The result is not renormalized.
    """
    n = state.qubit_count()
    if len(targets) != len(projections) or n <= len(targets):
        raise InvalidTargetList(targets)
    check_fixed_bits(targets, projections, n)
    positions, mask = fixed_bits(targets, projections)
    m = n - len(targets)
    out = np.zeros(1 << m, dtype=KERNEL_DTYPE)
    with state.borrow() as (buf, dim):
        kernels.state_drop_qubits(positions, mask, buf, out, dim)
    logger.debug("dropped qubits %s -> %d qubits", list(targets), m)
    return StateVec._adopt(m, out)


def inner_product(bra: StateRef, ket: StateRef) -> complex:
    """<bra|ket> = sum(conj(bra[i]) * ket[i])."""
    if len(bra) != len(ket):
        raise InconsistentStateLength(len(bra), len(ket))
    with bra.borrow() as (bbuf, dim), ket.borrow() as (kbuf, _):
        return kernels.state_inner_product(bbuf, kbuf, dim)


def expectation_value(state: StateRef, targets: Sequence[int], paulis: Sequence[int]) -> float:
    """<state| P |state> for the Pauli string P = prod_k paulis[k] on targets[k]."""
    check_pauli_string(targets, paulis, state.qubit_count())
    t = np.asarray(targets, dtype=np.int64)
    p = np.asarray([int(x) for x in paulis], dtype=np.int64)
    with state.borrow() as (buf, dim):
        return kernels.expectation_value_multi_qubit_pauli_operator(t, p, len(t), buf, dim)
