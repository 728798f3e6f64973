# qstate/bits.py
import numpy as np
from numba import njit

# Little-endian throughout: bit k of a basis index is the value of qubit k.

@njit
def insert_zero_bit(index, position):
    """Open a 0 at `position` in an index of the reduced (n-1)-qubit space."""
    low = index & ((1 << position) - 1)
    high = (index >> position) << (position + 1)
    return high | low

@njit
def insert_zero_bits(index, sorted_positions):
    # positions are full-index coordinates, so they must be visited low -> high
    for k in range(sorted_positions.shape[0]):
        index = insert_zero_bit(index, sorted_positions[k])
    return index

@njit
def insert_fixed_bits(index, sorted_positions, value_mask):
    return insert_zero_bits(index, sorted_positions) | value_mask

def fixed_bits(targets, values):
    """Sort (target, value) pairs and fold the values into one OR-mask.

    Returns (sorted_positions, value_mask) ready for `insert_fixed_bits`.
    Inputs need not be sorted; validation is the caller's job.
    """
    order = np.argsort(np.asarray(targets, dtype=np.int64), kind="stable")
    positions = np.asarray(targets, dtype=np.int64)[order]
    mask = 0
    for t, v in zip(targets, values):
        if int(v):
            mask |= 1 << int(t)
    return np.ascontiguousarray(positions), mask
