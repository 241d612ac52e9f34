"""Map pipeline exceptions to HTTP errors."""

from fastapi import HTTPException, status

from trackgen.errors import InvalidTransition, NotFound, ProviderRejected, ProviderUnavailable


def http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (InvalidTransition, ProviderUnavailable, ValueError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, ProviderRejected):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)[:200])
