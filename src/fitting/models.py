"""
Suitability Curve Model Families

Closed-form parametric curves fitted to empirical HSI data:

- gaussian (water depth):
      y = a1 * exp(-((x - b1) / c1)^2) + (1 - a1)
  Peak value 1 at x = b1, floor 1 - a1 far from the peak.

- gamma (flow velocity), a bounded, shifted Gamma-like decay:
      y = (1 - d) * (E / a)^a * ((x + e) / b)^a * exp(-(x + e) / b) + d
  where E is Euler's number and e is the fitted shift. Peak value 1 at
  x = a*b - e, decaying towards the floor d.

Each family is a plain object with a vectorized `evaluate(x, params)`;
fitted models close over their numbers (no symbolic engine).
"""

from typing import Callable, Dict, List, Literal, Sequence

import numpy as np
from pydantic import BaseModel, Field

# Type aliases
FamilyName = Literal["gaussian", "gamma"]
ConfidenceLevel = Literal["high", "medium", "low"]


def _gaussian(x: np.ndarray, a1: float, b1: float, c1: float) -> np.ndarray:
    return a1 * np.exp(-((x - b1) / c1) ** 2) + (1 - a1)


def _gamma(x: np.ndarray, a: float, b: float, d: float, e: float) -> np.ndarray:
    # (E/a)^a * (s/b)^a * exp(-s/b) evaluated in log space; the factors
    # overflow/underflow separately for large a
    s = x + e
    log_shape = a * (1.0 + np.log(s / (a * b))) - s / b
    return (1 - d) * np.exp(log_shape) + d


class ModelFamily:
    """
    A named closed-form curve with ordered parameters.

    Attributes:
        name: Family identifier ('gaussian' or 'gamma')
        parameter_names: Parameter order used by bounds and the solver
        formula: Human-readable formula in terms of x and the parameters
    """

    def __init__(
        self,
        name: str,
        parameter_names: Sequence[str],
        formula: str,
        function: Callable[..., np.ndarray]
    ):
        self.name = name
        self.parameter_names = list(parameter_names)
        self.formula = formula
        self._function = function

    @property
    def n_parameters(self) -> int:
        return len(self.parameter_names)

    def evaluate(self, x, params: Sequence[float]) -> np.ndarray:
        """
        Evaluate the curve at x for a parameter vector in family order.

        Floating point warnings are suppressed; degenerate parameters give
        inf/nan values which the solver treats as rejected steps.
        """
        if len(params) != self.n_parameters:
            raise ValueError(
                f"{self.name} expects {self.n_parameters} parameters "
                f"{self.parameter_names}, got {len(params)}"
            )
        x = np.asarray(x, dtype=float)
        with np.errstate(all='ignore'):
            return self._function(x, *[float(p) for p in params])

    def to_vector(self, parameters: Dict[str, float]) -> List[float]:
        """Order a name -> value mapping into the family's parameter vector."""
        missing = [name for name in self.parameter_names if name not in parameters]
        if missing:
            raise ValueError(f"{self.name}: missing parameters {missing}")
        return [float(parameters[name]) for name in self.parameter_names]

    def to_mapping(self, vector: Sequence[float]) -> Dict[str, float]:
        return {name: float(value) for name, value in zip(self.parameter_names, vector)}

    def __repr__(self) -> str:
        return f"ModelFamily({self.name!r}, {self.parameter_names})"


GAUSSIAN = ModelFamily(
    name="gaussian",
    parameter_names=["a1", "b1", "c1"],
    formula="a1*exp(-((x-b1)/c1)^2)+(1-a1)",
    function=_gaussian
)

GAMMA = ModelFamily(
    name="gamma",
    parameter_names=["a", "b", "d", "e"],
    formula="((1-d)*(exp(1)/a)^a)*((x+e)/b)^a*exp(-(x+e)/b)+d",
    function=_gamma
)

MODELS = {
    "gaussian": GAUSSIAN,
    "gamma": GAMMA,
}


def get_model(name: str) -> ModelFamily:
    if name not in MODELS:
        available = ", ".join(MODELS.keys())
        raise ValueError(f"Unknown model family: {name}. Available families: {available}")
    return MODELS[name]


def make_evaluator(family: ModelFamily, parameters: Dict[str, float]) -> Callable[[float], float]:
    """
    Close over fitted parameters and return a scalar evaluate(x) function.

    Examples:
        >>> f = make_evaluator(GAUSSIAN, {'a1': 0.9, 'b1': 40.0, 'c1': 25.0})
        >>> f(40.0)
        1.0
    """
    vector = family.to_vector(parameters)

    def evaluate(x: float) -> float:
        return float(family.evaluate(x, vector))

    return evaluate


def format_formula(family: ModelFamily, parameters: Dict[str, float], precision: int = 4) -> str:
    """
    Render the family formula with fitted values substituted.

    Examples:
        >>> format_formula(GAUSSIAN, {'a1': 0.9, 'b1': 40.0, 'c1': 25.0})
        '0.9*exp(-((x-40)/25)^2)+(1-0.9)'
    """
    values = {name: f"{parameters[name]:.{precision}g}" for name in family.parameter_names}

    if family.name == "gaussian":
        return "{a1}*exp(-((x-{b1})/{c1})^2)+(1-{a1})".format(**values)
    if family.name == "gamma":
        return "((1-{d})*(exp(1)/{a})^{a})*((x+{e})/{b})^{a}*exp(-(x+{e})/{b})+{d}".format(**values)
    raise ValueError(f"No formula template for family {family.name}")


class FittedModel(BaseModel):
    """Fitted suitability curve, the terminal artifact of a pipeline run."""

    family: FamilyName = Field(..., description="Model family name")
    parameters: Dict[str, float] = Field(..., description="Fitted parameter values by name")
    r_squared: float = Field(..., description="Coefficient of determination (may be < 0)")
    converged: bool = Field(..., description="Whether the solver met its tolerance")
    confidence: ConfidenceLevel = Field(..., description="Fit confidence (high/medium/low)")
    n_points: int = Field(..., description="Number of (x, y) pairs fitted")
    function_evaluations: int = Field(0, description="Model evaluations spent by the solver")
    message: str = Field("", description="Solver termination message")

    @property
    def model(self) -> ModelFamily:
        return get_model(self.family)

    @property
    def formula(self) -> str:
        return format_formula(self.model, self.parameters)

    def evaluate(self, x):
        """Evaluate the fitted curve; scalar in, float out, arrays vectorized."""
        values = self.model.evaluate(x, self.model.to_vector(self.parameters))
        if np.ndim(x) == 0:
            return float(values)
        return values

    def __call__(self, x):
        return self.evaluate(x)
