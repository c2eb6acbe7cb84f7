# src/mend_safety/adapters/routers/context_router.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Staff employer context and sign-out routes (v1).

Staff sessions may pin an employer that applies to later requests without an
explicit ``employer_id``. Non-staff sessions receive ``CONTEXT_FORBIDDEN``.
Sign-out is available to every role and drops any context held by the
session.

Layer:
    adapters/routers
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Response, status

from mend_safety.adapters.presenters.safety_presenter import SafetyPresenter
from mend_safety.adapters.routers.base_router import BaseRouter
from mend_safety.adapters.schemas.http.envelopes import SuccessEnvelope
from mend_safety.adapters.schemas.http.safety_schemas import (
    EmployerContextHTTP,
    SetEmployerContextHTTP,
)
from mend_safety.application.use_cases.access.employer_context import EmployerContextService
from mend_safety.dependencies.safety import get_employer_context_service
from mend_safety.domain.entities.access import IdentityClaims
from mend_safety.infrastructure.auth.identity import require_identity

router = BaseRouter(version="v1", resource="safety", tags=["Session"])
presenter = SafetyPresenter()

IdentityDep = Annotated[IdentityClaims, Depends(require_identity)]
ServiceDep = Annotated[EmployerContextService, Depends(get_employer_context_service)]


@router.get(
    "/context",
    response_model=SuccessEnvelope[EmployerContextHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Get the employer selected for this staff session",
)
async def get_context(
    identity: IdentityDep, service: ServiceDep
) -> SuccessEnvelope[EmployerContextHTTP]:
    return presenter.context(await service.get_context(identity))


@router.put(
    "/context",
    response_model=SuccessEnvelope[EmployerContextHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Select an employer for this staff session",
)
async def put_context(
    body: SetEmployerContextHTTP, identity: IdentityDep, service: ServiceDep
) -> SuccessEnvelope[EmployerContextHTTP]:
    return presenter.context(await service.set_context(identity, body.employer_id))


@router.delete(
    "/context",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=BaseRouter.std_error_responses(),
    summary="Clear the employer selected for this staff session",
)
async def delete_context(identity: IdentityDep, service: ServiceDep) -> Response:
    await service.clear_context(identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/session/sign-out",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=BaseRouter.std_error_responses(),
    summary="End the session and drop its employer context",
)
async def sign_out(identity: IdentityDep, service: ServiceDep) -> Response:
    await service.end_session(identity)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
