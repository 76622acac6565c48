"""Request handling for the contact matrix API.

This module converts API request schemas into pipeline inputs, runs the
pipeline and shapes the results into response schemas.
"""

import logging

import pandas as pd

from ..api.v1.schemas.contacts import (
    AgeGridRequest,
    AgeGridResponse,
    AggregateRequest,
    ContactMatrixResponse,
    TransmissionRequest,
    TransmissionResponse,
)
from ..api.v1.schemas.population import (
    PopulationDetail,
    PopulationEntry,
    PopulationListResponse,
    PopulationRequest,
)
from ..config import settings
from ..utils.age_breaks import age_bracket_labels
from .age_grid import create_age_grid
from .aggregation import aggregate_contact_matrix
from .matrices import ContactMatrix
from .population_service import Population, as_conmat_population
from .transmission_service import transmission_probability_matrix

logger = logging.getLogger(__name__)

# Keyword arguments of transmission_probability_matrix
RESERVED_SETTING_NAMES = frozenset({"age_breaks", "population", "transmission_probabilities"})


class MatrixTooLargeError(Exception):
    """Raised when a request exceeds the configured matrix size."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Requested {size} ages exceeds the limit of {limit}")


def check_matrix_size(size: int) -> None:
    """Reject requests with more ages than ``settings.max_matrix_size``.

    Raises
    ------
    MatrixTooLargeError
        If ``size`` is above the configured limit.
    """
    if size > settings.max_matrix_size:
        raise MatrixTooLargeError(size, settings.max_matrix_size)


def _population_detail(population: Population) -> PopulationDetail:
    return PopulationDetail(
        group=None if population.group is None else str(population.group),
        total_population=population.total,
        entries=[
            PopulationEntry(age=age, population=count)
            for age, count in zip(population.ages, population.population)
        ],
    )


def build_populations(request: PopulationRequest) -> PopulationListResponse:
    """Build populations from input records.

    Records carrying a group are split into one population per group,
    in order of first appearance.

    Parameters
    ----------
    request : PopulationRequest
        Population records.

    Returns
    -------
    PopulationListResponse
        The populations built and their count.
    """
    frame = pd.DataFrame([record.model_dump() for record in request.records])

    if frame["group"].notna().any():
        grouped = frame.fillna({"group": ""}).groupby("group", sort=False)
        populations = list(as_conmat_population(grouped).values())
    else:
        populations = [as_conmat_population(frame.drop(columns="group"))]

    return PopulationListResponse(
        populations=[_population_detail(pop) for pop in populations],
        total=len(populations),
    )


def build_age_grid(request: AgeGridRequest) -> AgeGridResponse:
    """Build the feature grid for the requested ages.

    Returns
    -------
    AgeGridResponse
        One row per age pair with the six symmetric covariates.
    """
    check_matrix_size(len(request.ages))
    grid = create_age_grid(request.ages)
    return AgeGridResponse(
        n_rows=len(grid),
        columns=list(grid.columns),
        rows=grid.to_dict(orient="records"),
    )


def aggregate_contacts(request: AggregateRequest) -> ContactMatrixResponse:
    """Rebin a single-year contact matrix into age brackets.

    Parameters
    ----------
    request : AggregateRequest
        Matrix, ages, population and age breaks.

    Returns
    -------
    ContactMatrixResponse
        Aggregated matrix with bracket labels.
    """
    check_matrix_size(len(request.ages))
    method = request.method or settings.default_aggregation_method
    breaks = request.resolved_breaks()

    contact_matrix = ContactMatrix(ages=request.ages, matrix=request.matrix)
    population = Population(ages=request.ages, population=request.population)
    aggregated = aggregate_contact_matrix(contact_matrix, population, breaks, method=method)

    return ContactMatrixResponse(
        age_groups=age_bracket_labels(breaks),
        matrix=aggregated.matrix.tolist(),
        method=method,
    )


def compose_transmission(request: TransmissionRequest) -> TransmissionResponse:
    """Compose setting matrices into a transmission probability matrix.

    Parameters
    ----------
    request : TransmissionRequest
        Setting matrices, optional transmission probabilities, and the age
        breaks (with ages and population when rebinning is needed).

    Returns
    -------
    TransmissionResponse
        Composite and per-setting matrices with bracket labels.
    """
    for matrix in request.settings.values():
        check_matrix_size(len(matrix))
    reserved = RESERVED_SETTING_NAMES.intersection(request.settings)
    if reserved:
        raise ValueError(f"Setting names {sorted(reserved)} are reserved")

    if request.ages is not None:
        matrices = {
            name: ContactMatrix(ages=request.ages, matrix=matrix, setting=name)
            for name, matrix in request.settings.items()
        }
    else:
        matrices = dict(request.settings)

    population = None
    if request.population is not None:
        population = Population(ages=request.ages, population=request.population)

    result = transmission_probability_matrix(
        age_breaks=request.resolved_breaks(),
        population=population,
        transmission_probabilities=request.transmission_probabilities,
        **matrices,
    )
    logger.info(f"Composed transmission matrix for settings {result.setting_names}")

    return TransmissionResponse(
        age_groups=list(result.age_groups),
        open_ended=request.open_ended,
        matrix=result.matrix.tolist(),
        settings={name: m.tolist() for name, m in result.settings.items()},
        contributions={name: m.tolist() for name, m in result.contributions.items()},
    )
