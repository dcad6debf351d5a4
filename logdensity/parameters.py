"""Named scalar parameters and the registry that owns them.

Priors, likelihoods and posteriors never receive parameter values as
arguments. They hold ``Parameter`` handles onto cells of a shared
``Parameters`` registry and read the current values when evaluated, so a
caller sets the values first and evaluates afterwards.

Handles are shared references: ``Parameter.clone()`` returns another handle
onto the same cell. Only ``Parameters.clone()`` produces independent storage.
Concurrent evaluation against one registry is therefore not safe; use one
cloned posterior per thread.
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterator, NamedTuple, Optional
import copy
import numpy as np

from .utils.exceptions import ParameterLookupError


@dataclass
class _ParameterCell:
    """Storage of one parameter value."""

    name: str
    value: float


class Parameter:
    """Handle onto a named, mutable scalar of a registry."""

    def __init__(self, cell: _ParameterCell, registry: "Parameters"):
        self._cell = cell
        self._registry = registry

    @property
    def name(self) -> str:
        return self._cell.name

    def evaluate(self) -> float:
        """Return the current value."""
        return self._cell.value

    def set(self, value: float) -> None:
        """Overwrite the current value."""
        self._cell.value = float(value)

    def evaluate_generator(self) -> float:
        """Draw a uniform random number in [0, 1) from the registry's generator."""
        return float(self._registry.generator.random())

    def clone(self) -> "Parameter":
        """Return another handle onto the same cell."""
        return Parameter(self._cell, self._registry)

    def shares_storage_with(self, other: "Parameter") -> bool:
        """Whether both handles write to the same cell."""
        return self._cell is other._cell

    def __float__(self) -> float:
        return self.evaluate()

    def __repr__(self) -> str:
        return f"Parameter({self.name!r}, {self.evaluate()!r})"


class Parameters:
    """Registry of named parameters with an attached random number generator."""

    def __init__(
        self,
        values: Optional[Dict[str, float]] = None,
        seed: Optional[int] = None,
    ):
        """Initialize registry.

        Args:
            values: Initial parameter values by name
            seed: Seed of the uniform generator used for sampling
        """
        self._cells: Dict[str, _ParameterCell] = {}
        self.generator = np.random.default_rng(seed)
        for name, value in (values or {}).items():
            self.declare(name, value)

    @classmethod
    def defaults(cls) -> "Parameters":
        """Return a fresh registry with default settings."""
        return cls()

    def __getitem__(self, name: str) -> Parameter:
        try:
            return Parameter(self._cells[name], self)
        except KeyError:
            raise ParameterLookupError(name) from None

    def declare(self, name: str, value: float = 0.0) -> Parameter:
        """Return the parameter ``name``, creating it with ``value`` if absent."""
        if name not in self._cells:
            self._cells[name] = _ParameterCell(name, float(value))
        return self[name]

    def __contains__(self, name: object) -> bool:
        return name in self._cells

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def values(self) -> Dict[str, float]:
        """Current values by name."""
        return {name: cell.value for name, cell in self._cells.items()}

    def clone(self) -> "Parameters":
        """Deep copy: fresh cells and an independent copy of the generator state."""
        result = Parameters()
        result._cells = {name: replace(cell) for name, cell in self._cells.items()}
        result.generator = copy.deepcopy(self.generator)
        return result

    def __repr__(self) -> str:
        return f"Parameters({self.values()!r})"


class ParameterRange(NamedTuple):
    """Allowed interval of a parameter."""

    min: float
    max: float


@dataclass
class ParameterDescription:
    """A parameter handle together with its allowed range and role.

    Attributes:
        parameter: Handle onto the described parameter
        min: Lower end of the allowed range (-inf if unconstrained)
        max: Upper end of the allowed range (+inf if unconstrained)
        nuisance: Whether the parameter is a nuisance parameter
    """

    parameter: Parameter
    min: float
    max: float
    nuisance: bool = False

    @property
    def name(self) -> str:
        return self.parameter.name

    @property
    def range(self) -> ParameterRange:
        return ParameterRange(self.min, self.max)

    def contains(self, value: float) -> bool:
        """Check if value lies within [min, max]."""
        return self.min <= value <= self.max

    def copy(self) -> "ParameterDescription":
        """New record sharing the parameter handle."""
        return replace(self)

    def as_tuple(self) -> tuple:
        """Return (name, min, max, nuisance)."""
        return (self.name, self.min, self.max, self.nuisance)
