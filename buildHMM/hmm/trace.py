import enum
from dataclasses import dataclass, field


class StateType(enum.IntEnum):
    S = 0
    N = 1
    B = 2
    M = 3
    D = 4
    I = 5
    E = 6
    C = 7
    T = 8


# N and C emit on self transitions; the first state of a run is silent.
EMITTING = (StateType.N, StateType.M, StateType.I, StateType.C)


@dataclass
class Trace:
    """State path of one sequence through a model with ``M`` nodes.

    Each step is a triple ``(state, node, column)``. ``node`` is 0 for
    states outside the core model. ``column`` is the 0-based alignment
    column of the emitted residue, or -1 for silent states.
    """
    M: int
    L: int
    st: list[StateType] = field(default_factory=list)
    k: list[int] = field(default_factory=list)
    i: list[int] = field(default_factory=list)

    def append(self, st: StateType, k: int = 0, i: int = -1) -> None:
        self.st.append(st)
        self.k.append(k)
        self.i.append(i)

    def __len__(self) -> int:
        return len(self.st)

    def __iter__(self):
        return iter(zip(self.st, self.k, self.i))

    def validate(self) -> None:
        """Checks the grammar of the trace.

        Raises:
            ValueError: If the trace is not a valid path.
        """
        if len(self) < 2 or self.st[0] != StateType.S \
                or self.st[-1] != StateType.T:
            raise ValueError("A trace must start with S and end with T.")
        prev_k = 0
        in_core = False
        for st, k, i in self:
            if st in (StateType.M, StateType.I) and i < 0 \
                    or st not in EMITTING and i >= 0:
                raise ValueError(f"Column mismatch for state {st.name}.")
            if st == StateType.B:
                in_core = True
                prev_k = 0
            elif st == StateType.E:
                in_core = False
            elif st in (StateType.M, StateType.D):
                if not in_core or k <= prev_k or k > self.M:
                    raise ValueError(f"Invalid node {k} in trace.")
                prev_k = k
            elif st == StateType.I:
                if not in_core or k != prev_k or not 1 <= k < self.M:
                    raise ValueError(f"Invalid insert node {k} in trace.")

    def residue_count(self) -> int:
        return sum(1 for st, i in zip(self.st, self.i)
                   if st in EMITTING and i >= 0)
