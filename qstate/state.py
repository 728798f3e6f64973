# qstate/state.py
"""Read and write capabilities over an amplitude buffer.

`StateRef` covers analysis (norm, entropy, probabilities, sampling) and
`StateMut` adds in-place updates. Both are written once against three
primitives: `qubit_count()`, `as_array()` and `as_mut_array()`. `StateArray`
(fixed capacity, wraps a caller's array) and `StateVec` (owns and can grow its
buffer) provide them.

Index convention: bit k of a basis index is qubit k (qubit 0 is the LSB).
"""
from __future__ import annotations

import abc
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence, Tuple

import numpy as np

from . import kernels
from .bits import fixed_bits
from .config import get_config
from .errors import InconsistentStateLength, InvalidTargetList, InvalidTargetQubitIndex
from .logging import get_logger

logger = get_logger(__name__)

KERNEL_DTYPE = np.complex128


def _qubit_count_of(length: int) -> int:
    if length < 2 or length & (length - 1):
        raise ValueError(f"buffer length must be a power of two >= 2, got {length}")
    return length.bit_length() - 1


def check_qubit_index(index, qubit_count: int) -> int:
    index = int(index)
    if not 0 <= index < qubit_count:
        raise InvalidTargetQubitIndex(index)
    return index


def check_fixed_bits(targets: Sequence[int], values: Sequence[int], qubit_count: int):
    """Validate a (targets, values) pair list; used by marginals and drops."""
    if len(targets) != len(values):
        raise InvalidTargetList(targets)
    for t in targets:
        check_qubit_index(t, qubit_count)
    if len(set(int(t) for t in targets)) != len(targets):
        raise InvalidTargetList(targets)
    if any(int(v) not in (0, 1) for v in values):
        raise InvalidTargetList(values)


def check_pauli_string(targets: Sequence[int], paulis: Sequence[int], qubit_count: int):
    """Validate a Pauli string; ids are I=0, X=1, Y=2, Z=3."""
    if len(targets) != len(paulis):
        raise InvalidTargetList(targets)
    for t in targets:
        check_qubit_index(t, qubit_count)
    if len(set(int(t) for t in targets)) != len(targets):
        raise InvalidTargetList(targets)
    if any(int(p) not in (0, 1, 2, 3) for p in paulis):
        raise InvalidTargetList(paulis)


class StateRef(abc.ABC):
    """Read-only capability over a quantum state."""

    @abc.abstractmethod
    def qubit_count(self) -> int:
        ...

    @abc.abstractmethod
    def as_array(self) -> np.ndarray:
        """Read-only view of the amplitudes."""

    @property
    def dim(self) -> int:
        return 1 << self.qubit_count()

    @property
    def dtype(self):
        return self.as_array().dtype

    def __len__(self) -> int:
        return self.dim

    @contextmanager
    def borrow(self) -> Iterator[Tuple[np.ndarray, int]]:
        """Yield (buffer, dim) in the kernel layout for the duration of a call."""
        buf = self.as_array()
        if buf.dtype != KERNEL_DTYPE or not buf.flags.c_contiguous:
            logger.debug("converting %s buffer for a read-only kernel call", buf.dtype)
            buf = np.ascontiguousarray(buf, dtype=KERNEL_DTYPE)
        yield buf, self.dim

    def get_squared_norm(self) -> float:
        with self.borrow() as (buf, dim):
            return kernels.state_norm_squared(buf, dim)

    def get_entropy(self) -> float:
        """Shannon entropy (natural log) of the Z-basis measurement distribution.

        Each term is -p * ln(max(p, entropy_floor)): the floor only guards the
        logarithm, so zero-probability outcomes contribute exactly 0.
        """
        with self.borrow() as (buf, dim):
            return kernels.measurement_distribution_entropy(buf, dim, get_config().entropy_floor)

    def get_zero_probability(self, qubit: int) -> float:
        qubit = check_qubit_index(qubit, self.qubit_count())
        with self.borrow() as (buf, dim):
            return kernels.zero_probability(qubit, buf, dim)

    def get_one_probability(self, qubit: int) -> float:
        # relative to the current norm, so unnormalized states still work
        return self.get_squared_norm() - self.get_zero_probability(qubit)

    def get_marginal_probability(self, target_indices: Sequence[int], values: Sequence[int]) -> float:
        """Probability of measuring values[j] on target_indices[j] for every j.

        Targets may be given in any order.
        """
        check_fixed_bits(target_indices, values, self.qubit_count())
        positions, mask = fixed_bits(target_indices, values)
        with self.borrow() as (buf, dim):
            return kernels.marginal_probability(positions, mask, buf, dim)

    def sampling(self, count: int, seed: Optional[int] = None) -> list[int]:
        """Draw `count` basis-state indices from the |amplitude|^2 distribution.

        Raises ValueError on a zero-norm state.
        """
        probs = np.abs(self.as_array()) ** 2
        cdf = np.cumsum(probs)
        if not cdf[-1] > 0.0:
            raise ValueError("cannot sample from a zero-norm state")
        rng = np.random.default_rng(seed)
        draws = rng.random(count) * cdf[-1]
        idx = np.searchsorted(cdf, draws, side="left")
        return [int(i) for i in np.minimum(idx, self.dim - 1)]

    def check_normalized(self, tol=None):
        tol = get_config().norm_tolerance if tol is None else tol
        n2 = self.get_squared_norm()
        if not (abs(1.0 - n2) <= tol):
            raise AssertionError(f"Normalization failed: ||psi||^2={n2}")

    def copy(self) -> "StateVec":
        return StateVec.from_array(self.as_array())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(qubit_count={self.qubit_count()}, dtype={self.dtype})"


class StateMut(StateRef):
    """Read-write capability over a quantum state."""

    @abc.abstractmethod
    def as_mut_array(self) -> np.ndarray:
        """Writable view of the amplitudes."""

    @contextmanager
    def borrow_mut(self) -> Iterator[Tuple[np.ndarray, int]]:
        """Yield a writable (buffer, dim) in the kernel layout.

        If the buffer needs converting, results are copied back on exit, also
        when the kernel raises.
        """
        buf = self.as_mut_array()
        if buf.dtype == KERNEL_DTYPE and buf.flags.c_contiguous:
            yield buf, self.dim
            return
        logger.debug("using a complex128 scratch buffer for a %s state", buf.dtype)
        scratch = np.ascontiguousarray(buf, dtype=KERNEL_DTYPE)
        try:
            yield scratch, self.dim
        finally:
            buf[...] = scratch

    def set_zero_state(self):
        with self.borrow_mut() as (buf, dim):
            kernels.initialize_quantum_state(buf, dim)

    def set_computational_basis(self, index: int):
        """Set the state to |index>.

        `index` must satisfy 0 <= index < dim; anything else is a caller error
        and raises IndexError.
        """
        index = int(index)
        if not 0 <= index < self.dim:
            raise IndexError(f"basis index {index} out of range for dim {self.dim}")
        buf = self.as_mut_array()
        buf[...] = 0.0
        buf[index] = 1.0

    def set_haar_random_state(self):
        with self.borrow_mut() as (buf, dim):
            kernels.initialize_haar_random_state(buf, dim)

    def set_haar_random_state_with_seed(self, seed: int):
        with self.borrow_mut() as (buf, dim):
            kernels.initialize_haar_random_state_with_seed(buf, dim, seed)

    def normalize(self, squared_norm: float):
        """Divide every amplitude by sqrt(squared_norm).

        `squared_norm` must be positive; 0 raises ZeroDivisionError.
        """
        with self.borrow_mut() as (buf, dim):
            kernels.normalize(squared_norm, buf, dim)

    def add_state(self, other: StateRef):
        if len(other) != len(self):
            raise InconsistentStateLength(len(self), len(other))
        with other.borrow() as (src, _), self.borrow_mut() as (buf, dim):
            kernels.state_add(src, buf, dim)

    def multiply_coef(self, coef: complex):
        with self.borrow_mut() as (buf, dim):
            kernels.state_multiply(coef, buf, dim)

    def multiply_elementwise_function(self, func: Callable[[int], complex]):
        """Multiply amplitude i by func(i) for every basis index i."""
        factors = np.fromiter((func(i) for i in range(self.dim)), dtype=KERNEL_DTYPE, count=self.dim)
        buf = self.as_mut_array()
        buf *= factors.astype(buf.dtype, copy=False)


class StateArray(StateMut):
    """Fixed-capacity state over a caller-owned 1-D complex array.

    The array is used in place: gates applied here are visible through the
    caller's array. Its length fixes the qubit count for the life of the
    object.
    """

    def __init__(self, buffer: np.ndarray):
        if buffer.ndim != 1 or not np.iscomplexobj(buffer):
            raise ValueError(f"expected a 1-D complex array, got {buffer.dtype} with shape {buffer.shape}")
        self._n = _qubit_count_of(buffer.shape[0])
        self._buffer = buffer

    @staticmethod
    def zeros(n: int, dtype=KERNEL_DTYPE) -> "StateArray":
        """|0...0> in a freshly allocated array."""
        if n < 1:
            raise ValueError(f"qubit count must be >= 1, got {n}")
        buf = np.zeros(1 << n, dtype=dtype)
        buf[0] = 1.0
        return StateArray(buf)

    def qubit_count(self) -> int:
        return self._n

    def as_array(self) -> np.ndarray:
        view = self._buffer.view()
        view.flags.writeable = False
        return view

    def as_mut_array(self) -> np.ndarray:
        return self._buffer


class StateVec(StateMut):
    """Growable state that owns a complex128 buffer."""

    def __init__(self, n: int):
        if n < 1:
            raise ValueError(f"qubit count must be >= 1, got {n}")
        self._n = n
        self._psi = np.zeros(1 << n, dtype=KERNEL_DTYPE)
        self._psi[0] = 1.0

    @classmethod
    def from_array(cls, amplitudes) -> "StateVec":
        """Copy `amplitudes` (length 2**n) into a new state."""
        amplitudes = np.asarray(amplitudes)
        if amplitudes.ndim != 1:
            raise ValueError(f"expected a 1-D array, got shape {amplitudes.shape}")
        st = cls.__new__(cls)
        st._n = _qubit_count_of(amplitudes.shape[0])
        st._psi = np.array(amplitudes, dtype=KERNEL_DTYPE, copy=True)
        return st

    @classmethod
    def _adopt(cls, n: int, psi: np.ndarray) -> "StateVec":
        # takes ownership of a buffer produced by a kernel; no copy
        st = cls.__new__(cls)
        st._n = n
        st._psi = psi
        return st

    def qubit_count(self) -> int:
        return self._n

    def as_array(self) -> np.ndarray:
        view = self._psi.view()
        view.flags.writeable = False
        return view

    def as_mut_array(self) -> np.ndarray:
        return self._psi

    def grow(self, extra_qubits: int):
        """Append `extra_qubits` new high qubits in |0>.

        Existing amplitudes keep their indices; the new buffer is
        |0...0> (x) |old>.
        """
        if extra_qubits < 0:
            raise ValueError(f"extra_qubits must be >= 0, got {extra_qubits}")
        if extra_qubits == 0:
            return
        psi = np.zeros(1 << (self._n + extra_qubits), dtype=KERNEL_DTYPE)
        psi[:self.dim] = self._psi
        self._psi = psi
        self._n += extra_qubits
        logger.debug("grew state to %d qubits", self._n)
