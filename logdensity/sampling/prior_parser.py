"""Construction of priors from their one-line textual form.

Grammar (whitespace around tokens is free)::

    Parameter: <name>, prior type: <type>, range: [<min>,<max>] [, <extra>]

    flat      no extra
    Gaussian  x = <central> +- <sigma>
              x = <central> + <upper> - <lower>
    Scale     mu_0 = <mu_0>, lambda = <lambda>
              (range must be [mu_0 / lambda, mu_0 * lambda])

This is the format produced by ``Prior.as_string()``.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple
import re
import numpy as np

from ..parameters import Parameters, ParameterRange
from ..utils.exceptions import PriorSyntaxError, UnknownPriorError
from .priors import CurtailedGaussPrior, FlatPrior, Prior, ScalePrior


_NUMBER = r"[-+]?(?:(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?|inf(?:inity)?)"
_UNSIGNED = r"(?:(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?|inf(?:inity)?)"

_NAME_FIELD = re.compile(r"\s*Parameter\s*:\s*(?P<value>[^,]+?)\s*,")
_TYPE_FIELD = re.compile(r"\s*prior type\s*:\s*(?P<value>[^,]+?)\s*(?:,|$)")
_RANGE_FIELD = re.compile(r"\s*range\s*:\s*\[\s*(?P<min>[^,\]]+?)\s*,\s*(?P<max>[^,\]]+?)\s*\]")
_EXTRA_FIELD = re.compile(r"\s*(?:,\s*(?P<value>.*?))?\s*$")

_GAUSSIAN_EXTRA = re.compile(
    rf"x\s*=\s*(?P<central>{_NUMBER})\s*"
    rf"(?:\+-\s*(?P<sigma>{_UNSIGNED})|\+\s*(?P<upper>{_UNSIGNED})\s*-\s*(?P<lower>{_UNSIGNED}))$"
)
_SCALE_EXTRA = re.compile(
    rf"mu_0\s*=\s*(?P<mu_0>{_NUMBER})\s*,\s*lambda\s*=\s*(?P<lambda_>{_NUMBER})$"
)

PARSEABLE_PRIOR_TYPES = ("flat", "Gaussian", "Scale")


@dataclass
class PriorSpec:
    """Parsed fields of a textual prior."""

    text: str
    name: str
    kind: str
    range: ParameterRange
    arguments: Dict[str, float] = field(default_factory=dict)

    def build(self, parameters: Parameters) -> Prior:
        """Construct the prior on ``parameters``."""
        if self.kind == "flat":
            return FlatPrior(parameters, self.name, self.range)

        if self.kind == "Gaussian":
            central = self.arguments["central"]
            return CurtailedGaussPrior(
                parameters,
                self.name,
                self.range,
                central - self.arguments["sigma_lower"],
                central,
                central + self.arguments["sigma_upper"],
            )

        if self.kind == "Scale":
            return ScalePrior(parameters, self.name, self.arguments["mu_0"], self.arguments["lambda"])

        raise UnknownPriorError(self.text, self.kind)


def _to_float(text: str, value: str, field_name: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise PriorSyntaxError(text, field_name, f"'{value}' is not a number") from None


def _match(pattern: "re.Pattern[str]", text: str, pos: int, field_name: str) -> Tuple["re.Match[str]", int]:
    m = pattern.match(text, pos)
    if m is None:
        raise PriorSyntaxError(text, field_name, f"expected at offset {pos}")
    return m, m.end()


def parse_prior(text: str) -> PriorSpec:
    """Split a textual prior into its fields.

    Raises:
        PriorSyntaxError: if a field is malformed
        UnknownPriorError: if the prior type cannot be constructed
    """
    m, pos = _match(_NAME_FIELD, text, 0, "Parameter")
    name = m.group("value")

    m, pos = _match(_TYPE_FIELD, text, pos, "prior type")
    kind = m.group("value")
    # LogGamma is a known type of the format but has no constructor here
    if kind not in PARSEABLE_PRIOR_TYPES:
        raise UnknownPriorError(text, kind)

    m, pos = _match(_RANGE_FIELD, text, pos, "range")
    prior_range = ParameterRange(
        _to_float(text, m.group("min"), "range"),
        _to_float(text, m.group("max"), "range"),
    )

    m, pos = _match(_EXTRA_FIELD, text, pos, "trailing fields")
    extra = m.group("value") or ""

    arguments: Dict[str, float] = {}
    if kind == "flat":
        if extra:
            raise PriorSyntaxError(text, "flat", f"unexpected trailing text '{extra}'")

    elif kind == "Gaussian":
        g = _GAUSSIAN_EXTRA.match(extra)
        if g is None:
            raise PriorSyntaxError(text, "x", "expected 'x = <central> +- <sigma>' or 'x = <central> + <upper> - <lower>'")
        arguments["central"] = _to_float(text, g.group("central"), "x")
        if g.group("sigma") is not None:
            sigma = _to_float(text, g.group("sigma"), "x")
            arguments["sigma_upper"] = arguments["sigma_lower"] = sigma
        else:
            arguments["sigma_upper"] = _to_float(text, g.group("upper"), "x")
            arguments["sigma_lower"] = _to_float(text, g.group("lower"), "x")

    elif kind == "Scale":
        s = _SCALE_EXTRA.match(extra)
        if s is None:
            raise PriorSyntaxError(text, "mu_0", "expected 'mu_0 = <mu_0>, lambda = <lambda>'")
        arguments["mu_0"] = _to_float(text, s.group("mu_0"), "mu_0")
        arguments["lambda"] = _to_float(text, s.group("lambda_"), "lambda")

        # the support is fixed by mu_0 and lambda; the range must agree with it.
        # Invalid mu_0 or lambda are left to the ScalePrior constructor.
        mu_0, lambda_ = arguments["mu_0"], arguments["lambda"]
        support = (mu_0 / lambda_, mu_0 * lambda_) if mu_0 > 0 and lambda_ > 1 else prior_range
        if not np.allclose(prior_range, support, rtol=1e-9, atol=0.0):
            raise PriorSyntaxError(
                text,
                "range",
                f"[{prior_range.min},{prior_range.max}] does not match "
                f"[mu_0 / lambda, mu_0 * lambda] = [{support[0]},{support[1]}]",
            )

    return PriorSpec(text=text, name=name, kind=kind, range=prior_range, arguments=arguments)


def make_prior(parameters: Parameters, text: str) -> Prior:
    """Construct a prior on ``parameters`` from its textual form.

    Args:
        parameters: Registry the prior binds to
        text: One-line prior specification

    Returns:
        Concrete Prior instance
    """
    return parse_prior(text).build(parameters)
