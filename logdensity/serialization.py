"""HDF5 persistence of a posterior's parameter descriptions.

Three tables are written below a base group::

    <base>/parameters   (name, min, max, nuisance, prior), attribute "version"
    <base>/constraints  (name)
    <base>/observables  (name)

Reading rebuilds ``ParameterDescription`` records on a fresh parameter
registry. Priors are kept as text; ``make_prior`` can rebuild them.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, List, Optional, Union
import os
import h5py
import numpy as np

from .parameters import Parameters, ParameterDescription

if TYPE_CHECKING:
    from .posterior import LogPosterior

FileLike = Union[str, os.PathLike, h5py.Group]

DESCRIPTION_DTYPE = np.dtype(
    [
        ("name", h5py.string_dtype()),
        ("min", np.float64),
        ("max", np.float64),
        ("nuisance", np.int32),
        ("prior", h5py.string_dtype()),
    ]
)
NAME_DTYPE = h5py.string_dtype()


@dataclass
class AnalysisRecord:
    """Everything stored by ``dump_descriptions``."""

    descriptions: List[ParameterDescription]
    priors: List[str]
    constraints: List[str] = field(default_factory=list)
    observables: List[str] = field(default_factory=list)
    version: str = ""


@contextmanager
def _open(file: FileLike, mode: str) -> Iterator[h5py.Group]:
    if isinstance(file, h5py.Group):
        yield file
    else:
        with h5py.File(file, mode) as f:
            yield f


def _decode(value) -> str:
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return str(value)


def _prior_text(posterior: "LogPosterior", name: str) -> str:
    prior = posterior.log_prior_for(name)
    if prior is None or not prior.has_text_form:
        return ""
    return prior.as_string()


def dump_descriptions(
    posterior: "LogPosterior",
    file: FileLike,
    data_set_base: str = "/descriptions",
) -> None:
    """Store parameter descriptions, priors, constraint and observable names.

    Args:
        posterior: Posterior to describe
        file: Path of a new HDF5 file, or an open h5py File/Group
        data_set_base: Group receiving the tables
    """
    from . import __version__

    records = [
        (d.name, d.min, d.max, int(d.nuisance), _prior_text(posterior, d.name))
        for d in posterior.parameter_descriptions
    ]
    likelihood = posterior.likelihood
    cache = likelihood.observable_cache

    with _open(file, "a") as f:
        data_set = f.create_dataset(
            f"{data_set_base}/parameters", data=np.array(records, dtype=DESCRIPTION_DTYPE)
        )
        data_set.attrs["version"] = __version__

        f.create_dataset(
            f"{data_set_base}/constraints",
            data=np.array([c.name for c in likelihood], dtype=NAME_DTYPE),
        )
        f.create_dataset(
            f"{data_set_base}/observables",
            data=np.array([cache.observable(i).name for i in range(len(cache))], dtype=NAME_DTYPE),
        )


def read_descriptions(
    file: FileLike,
    data_set_base: str = "/descriptions",
    parameters: Optional[Parameters] = None,
) -> List[ParameterDescription]:
    """Read parameter descriptions stored by ``dump_descriptions``.

    Args:
        file: Path of an HDF5 file, or an open h5py File/Group
        data_set_base: Group holding the tables
        parameters: Registry to resolve names in (default: Parameters.defaults())

    Returns:
        Descriptions in stored order
    """
    return read_analysis(file, data_set_base, parameters).descriptions


def read_analysis(
    file: FileLike,
    data_set_base: str = "/descriptions",
    parameters: Optional[Parameters] = None,
) -> AnalysisRecord:
    """Read descriptions, prior texts, version, constraint and observable names."""
    p = parameters if parameters is not None else Parameters.defaults()

    with _open(file, "r") as f:
        data_set = f[f"{data_set_base}/parameters"]
        rows = data_set[()]
        version = _decode(data_set.attrs.get("version", ""))

        constraints = [_decode(n) for n in f[f"{data_set_base}/constraints"][()]]
        observables_path = f"{data_set_base}/observables"
        observables = [_decode(n) for n in f[observables_path][()]] if observables_path in f else []

    descriptions = []
    priors = []
    for row in rows:
        name = _decode(row["name"])
        descriptions.append(
            ParameterDescription(
                p.declare(name).clone(), float(row["min"]), float(row["max"]), bool(row["nuisance"])
            )
        )
        priors.append(_decode(row["prior"]))

    return AnalysisRecord(
        descriptions=descriptions,
        priors=priors,
        constraints=constraints,
        observables=observables,
        version=version,
    )
