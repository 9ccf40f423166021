"""Request-scoped dependencies: the authorizer and the calling principal."""

from functools import lru_cache

from fastapi import Depends, Header

from storefront.access.authz import Authorizer
from storefront.access.principal import Principal
from storefront.access.verifier import get_verifier
from storefront.config import get_settings


@lru_cache()
def get_authorizer() -> Authorizer:
    return Authorizer.from_settings(get_settings())


async def get_principal(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
    authorizer: Authorizer = Depends(get_authorizer),
) -> Principal:
    return authorizer.resolve_principal(get_verifier(), authorization=authorization, api_key=x_api_key)
