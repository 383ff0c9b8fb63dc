"""
Finite-difference Jacobian estimation for vector-valued functions.

The engine differentiates any function object f: R^n -> R^m that declares its
input and output dimensions. It has no knowledge of states, manifolds or
measurement models: manifold-valued arguments are handled by the caller, who
wraps the function so that its input is a tangent-space perturbation (see
``liekf.models.measurement_models.RetractedMeasurement``).

Schemes:
    - Forward differences (default):
      J[:, i] = (f(x0 + h_i e_i) - f(x0)) / h_i          n + 1 evaluations
    - Central differences:
      J[:, i] = (f(x0 + h_i e_i) - f(x0 - h_i e_i)) / 2h_i   2n evaluations

Step size:
    The base step defaults to sqrt(ε) ≈ 1.49e-8 for forward and cbrt(ε) ≈
    6.06e-6 for central differences (ε = float64 machine epsilon), which
    balances truncation against rounding error for well-scaled inputs. With
    relative stepping (default) each coordinate uses

        h_i = step * max(1, |x0_i|, |typical_x_i|)

    so that inputs of large magnitude, or perturbations applied to large
    quantities (``typical_x``), are not swamped by rounding.
"""

import logging
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

_EPS = np.finfo(np.float64).eps


class DimensionMismatch(ValueError):
    """Raised when vectors disagree with a function object's declared dimensions.

    Attributes:
        expected: Declared shape.
        actual: Shape that was supplied or produced.
    """

    def __init__(self, what: str, expected: Tuple[int, ...], actual: Tuple[int, ...]):
        self.what = what
        self.expected = expected
        self.actual = actual
        super().__init__(f"{what}: expected shape {expected}, got {actual}")


class Functor(ABC):
    """Function object f: R^n -> R^m with fixed, declared dimensions."""

    @abstractmethod
    def inputs(self) -> int:
        """Input dimension n."""

    @abstractmethod
    def values(self) -> int:
        """Output dimension m."""

    @abstractmethod
    def __call__(self, x: np.ndarray) -> np.ndarray:
        """Evaluate f(x), returning a vector of length values()."""


class CallableFunctor(Functor):
    """
    Adapts a plain callable to the Functor interface.

    Example:
        >>> f = CallableFunctor(lambda x: np.array([x[0] * x[1]]), n_inputs=2, n_values=1)
        >>> NumericalDiff(f).df(np.array([2.0, 3.0])).shape
        (1, 2)
    """

    def __init__(self, func: Callable[[np.ndarray], np.ndarray], n_inputs: int, n_values: int):
        if n_inputs < 1 or n_values < 1:
            raise ValueError(
                f"Dimensions must be positive, got n_inputs={n_inputs}, n_values={n_values}"
            )
        self.func = func
        self.n_inputs = int(n_inputs)
        self.n_values = int(n_values)

    def inputs(self) -> int:
        return self.n_inputs

    def values(self) -> int:
        return self.n_values

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return self.func(x)


class DiffMethod(Enum):
    """Finite-difference scheme."""

    FORWARD = "forward"
    CENTRAL = "central"


@dataclass(frozen=True)
class NumericalDiffOptions:
    """
    Configuration of the finite-difference engine.

    Attributes:
        method: Differencing scheme (DiffMethod or its string value).
        step: Base step. None selects the default for the method
              (sqrt(ε) forward, cbrt(ε) central).
        relative: Scale the step by the magnitude of each coordinate.

    Example:
        >>> opts = NumericalDiffOptions(method="central")
        >>> opts.method
        <DiffMethod.CENTRAL: 'central'>
    """

    method: Union[DiffMethod, str] = DiffMethod.FORWARD
    step: Optional[float] = None
    relative: bool = True

    def __post_init__(self) -> None:
        """Validate options."""
        if not isinstance(self.method, DiffMethod):
            try:
                object.__setattr__(self, "method", DiffMethod(self.method))
            except ValueError:
                raise ValueError(
                    f"method must be one of {[m.value for m in DiffMethod]}, got {self.method!r}"
                ) from None
        if self.step is not None:
            if not np.isfinite(self.step) or self.step <= 0:
                raise ValueError(f"step must be finite and positive, got {self.step}")

    @property
    def base_step(self) -> float:
        """Step actually used before magnitude scaling."""
        if self.step is not None:
            return float(self.step)
        if self.method == DiffMethod.CENTRAL:
            return float(np.cbrt(_EPS))
        return float(np.sqrt(_EPS))


class NumericalDiff:
    """
    Finite-difference Jacobian of a Functor.

    Instances hold only the function object and options; nothing is retained
    between ``df`` calls, so one instance can be reused across base points.

    Example:
        >>> f = CallableFunctor(lambda x: np.array([np.sin(x[0]), x[0] * x[1]]), 2, 2)
        >>> J = NumericalDiff(f).df(np.array([0.0, 2.0]))
        >>> np.allclose(J, [[1.0, 0.0], [2.0, 0.0]], atol=1e-6)
        True
    """

    def __init__(self, functor: Functor, options: Optional[NumericalDiffOptions] = None):
        self.functor = functor
        self.options = options if options is not None else NumericalDiffOptions()

    def df(self, x0: np.ndarray, typical_x: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Estimate the Jacobian of the function object at x0.

        Args:
            x0: Base point, shape (n,).
            typical_x: Optional per-coordinate magnitude hint, shape (n,).
                Used only for relative step scaling.

        Returns:
            Jacobian J of shape (m, n).

        Raises:
            DimensionMismatch: If x0 or typical_x do not have shape (n,), or
                an evaluation returns a vector whose shape is not (m,).
        """
        n = self.functor.inputs()
        m = self.functor.values()

        x0 = np.asarray(x0, dtype=np.float64)
        if x0.shape != (n,):
            raise DimensionMismatch("base point", (n,), x0.shape)

        steps = self._steps(x0, typical_x)
        J = np.zeros((m, n))

        if self.options.method == DiffMethod.FORWARD:
            f0 = self._evaluate(x0, m)
            for i in range(n):
                x_plus = x0.copy()
                x_plus[i] += steps[i]
                # Divide by the increment actually applied, not the nominal step
                h = x_plus[i] - x0[i]
                if h == 0.0:
                    h = self._smallest_increment(x0[i], i)
                    x_plus[i] = x0[i] + h
                J[:, i] = (self._evaluate(x_plus, m) - f0) / h
            n_evaluations = n + 1
        else:
            for i in range(n):
                x_plus = x0.copy()
                x_minus = x0.copy()
                x_plus[i] += steps[i]
                x_minus[i] -= steps[i]
                span = x_plus[i] - x_minus[i]
                if span == 0.0:
                    span = self._smallest_increment(x0[i], i)
                    x_plus[i] = x0[i] + span
                    x_minus[i] = x0[i]
                J[:, i] = (self._evaluate(x_plus, m) - self._evaluate(x_minus, m)) / span
            n_evaluations = 2 * n

        logger.debug(
            "Numerical Jacobian %s (%s differences, %d evaluations)",
            J.shape, self.options.method.value, n_evaluations,
        )
        return J

    def _steps(self, x0: np.ndarray, typical_x: Optional[np.ndarray]) -> np.ndarray:
        step = self.options.base_step
        n = x0.shape[0]
        if not self.options.relative:
            return np.full(n, step)

        scale = np.maximum(1.0, np.abs(x0))
        if typical_x is not None:
            typical_x = np.asarray(typical_x, dtype=np.float64)
            if typical_x.shape != (n,):
                raise DimensionMismatch("typical_x", (n,), typical_x.shape)
            scale = np.maximum(scale, np.abs(typical_x))
        return step * scale

    @staticmethod
    def _smallest_increment(value: float, index: int) -> float:
        warnings.warn(
            f"Finite-difference step for coordinate {index} is below floating "
            "point resolution; using the smallest representable increment",
            RuntimeWarning,
        )
        return float(np.spacing(abs(value)))

    def _evaluate(self, x: np.ndarray, m: int) -> np.ndarray:
        y = np.asarray(self.functor(x), dtype=np.float64)
        if y.shape != (m,):
            raise DimensionMismatch("function value", (m,), y.shape)
        return y
