from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from schemas.application import LoanApplication
from schemas.user import PublicUser
from services.container import LoanServices
from services.errors import AuthenticationError, NotFoundError
from services.lifecycle import MSG_APPLICATION_NOT_FOUND

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> LoanServices:
    return request.app.state.services


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    services: LoanServices = Depends(get_services),
) -> PublicUser:
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    return await services.identity.authenticate_token(credentials.credentials)


async def load_owned_application(services: LoanServices, user: PublicUser, application_id: str) -> LoanApplication:
    """Other users' applications are reported as missing."""
    app = await services.engine.get_application(application_id)
    if app.user_id != user.id:
        raise NotFoundError(MSG_APPLICATION_NOT_FOUND)
    return app
