"""Transmission matrix API endpoints.

This module provides the endpoint for composing setting matrices into a
transmission probability matrix.
"""

from fastapi import APIRouter, HTTPException

from ....services import contact_service
from ....services.exceptions import ConmatError
from ..schemas.common import ErrorResponse
from ..schemas.contacts import TransmissionRequest, TransmissionResponse

router = APIRouter()


@router.post(
    "",
    response_model=TransmissionResponse,
    summary="Compose transmission matrix",
    description="Combine setting matrices and transmission probabilities by age bracket.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        413: {"model": ErrorResponse, "description": "Matrix too large"},
        422: {"model": ErrorResponse, "description": "Mismatched or unweighted matrices"},
        500: {"model": ErrorResponse, "description": "Composition failed"},
    },
)
async def create_transmission_matrix(request: TransmissionRequest) -> TransmissionResponse:
    """Compose a transmission probability matrix.

    Settings are combined with their transmission probabilities when
    given, otherwise the setting matrices are used as transmission
    matrices directly.

    Parameters
    ----------
    request : TransmissionRequest
        Setting matrices, age breaks and optional probabilities.

    Returns
    -------
    TransmissionResponse
        Composite and per-setting matrices labelled by age bracket.

    Raises
    ------
    HTTPException
        413 if a matrix is too large, 422 for mismatched or unweighted
        matrices, 400 for other input errors, 500 if composition fails.
    """
    try:
        return contact_service.compose_transmission(request)
    except contact_service.MatrixTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ConmatError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Transmission matrix failed: {str(e)}")
