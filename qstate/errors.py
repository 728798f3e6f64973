# qstate/errors.py
"""Typed failures raised before any kernel call."""


class StateError(ValueError):
    """Base class for argument errors detected by qstate."""


class InconsistentStateLength(StateError):
    def __init__(self, lhs_len: int, rhs_len: int):
        self.lhs_len = lhs_len
        self.rhs_len = rhs_len
        super().__init__(f"state lengths differ: {lhs_len} != {rhs_len}")


class InvalidTargetQubitIndex(StateError):
    def __init__(self, index: int):
        self.index = index
        super().__init__(f"qubit index {index} is out of range")


class InvalidTargetList(StateError):
    def __init__(self, targets):
        self.targets = list(targets)
        super().__init__(f"invalid target list: {self.targets}")
