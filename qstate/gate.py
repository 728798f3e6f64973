# qstate/gate.py
"""Gate descriptors and the single dispatch point into the kernels.

A descriptor names a kernel and the operands it needs; `apply` validates the
operands against the state, borrows the buffer and makes the call with the
kernel's positional convention:

    Single                       kernel(target, state, dim)
    Controlled                   kernel(control, target, state, dim)
    Rotation                     kernel(target, angle, state, dim)
    MultiControlledSingleTarget  kernel(control_indices, control_values, control_count,
                                        target, matrix, state, dim)
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidTargetList
from .logging import get_logger
from .state import StateMut, check_qubit_index

logger = get_logger(__name__)


class ControlValue(enum.IntEnum):
    ZERO = 0
    ONE = 1


@dataclass(frozen=True)
class Single:
    target: int
    kernel: Callable


@dataclass(frozen=True)
class Controlled:
    control: int
    target: int
    kernel: Callable


@dataclass(frozen=True)
class Rotation:
    target: int
    angle: float
    kernel: Callable


@dataclass(frozen=True)
class MultiControlledSingleTarget:
    """Apply a 2x2 `matrix` to `target` when every control holds its value.

    `controls` accepts bare indices (meaning ControlValue.ONE) or
    (index, value) pairs. `matrix` is row-major, either 2x2 or flat 4.
    """
    controls: Tuple[Tuple[int, ControlValue], ...]
    target: int
    matrix: Tuple[complex, complex, complex, complex]
    kernel: Callable

    def __post_init__(self):
        controls = []
        for c in self.controls:
            if isinstance(c, (tuple, list)):
                index, value = c
            else:
                index, value = c, ControlValue.ONE
            if int(value) not in (0, 1):
                raise InvalidTargetList([c])
            controls.append((int(index), ControlValue(int(value))))
        matrix = np.asarray(self.matrix, dtype=np.complex128)
        if matrix.size != 4 or matrix.ndim not in (1, 2) or (matrix.ndim == 2 and matrix.shape != (2, 2)):
            raise ValueError(f"expected a 2x2 matrix, got shape {matrix.shape}")
        object.__setattr__(self, "controls", tuple(controls))
        object.__setattr__(self, "matrix", tuple(complex(x) for x in matrix.reshape(4)))


Gate = Union[Single, Controlled, Rotation, MultiControlledSingleTarget]


def _check_distinct(indices: Sequence[int]):
    if len(set(indices)) != len(indices):
        raise InvalidTargetList(indices)


def validate(state: StateMut, gate: Gate):
    """Raise a StateError if `gate` does not fit `state`."""
    n = state.qubit_count()
    if isinstance(gate, (Single, Rotation)):
        check_qubit_index(gate.target, n)
    elif isinstance(gate, Controlled):
        check_qubit_index(gate.control, n)
        check_qubit_index(gate.target, n)
        _check_distinct([gate.control, gate.target])
    elif isinstance(gate, MultiControlledSingleTarget):
        for index, _ in gate.controls:
            check_qubit_index(index, n)
        check_qubit_index(gate.target, n)
        _check_distinct([index for index, _ in gate.controls] + [gate.target])
    else:
        raise TypeError(f"not a gate descriptor: {gate!r}")


def apply(state: StateMut, gate: Gate):
    """Apply `gate` to `state` in place."""
    validate(state, gate)
    logger.debug("apply %s", gate)
    with state.borrow_mut() as (buf, dim):
        if isinstance(gate, Single):
            gate.kernel(int(gate.target), buf, dim)
        elif isinstance(gate, Controlled):
            gate.kernel(int(gate.control), int(gate.target), buf, dim)
        elif isinstance(gate, Rotation):
            gate.kernel(int(gate.target), float(gate.angle), buf, dim)
        else:
            indices = np.array([i for i, _ in gate.controls], dtype=np.int64)
            values = np.array([int(v) for _, v in gate.controls], dtype=np.int64)
            matrix = np.array(gate.matrix, dtype=np.complex128)
            gate.kernel(indices, values, len(gate.controls), int(gate.target), matrix, buf, dim)
