from typing import Annotated

from fastapi import Depends

from enrollment_service.database.session import DbSession
from enrollment_service.persistence.gateway import PersistenceGateway


def get_gateway(session: DbSession) -> PersistenceGateway:
    """Get a persistence gateway bound to the request's session."""
    return PersistenceGateway(session)


Gateway = Annotated[PersistenceGateway, Depends(get_gateway)]
