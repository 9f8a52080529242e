"""
Auth — session establishment and teardown.

    from cartsync import auth

    gateway = auth.AuthGateway(pipeline, tokens, cart_store)
    user = await gateway.login("ann@example.com", "secret")
    await gateway.logout()
"""

from cartsync.auth._gateway import (
    Authenticated,
    RegistrationForm,
    AuthGateway,
)

__all__ = (
    "Authenticated",
    "RegistrationForm",
    "AuthGateway",
)
