"""OAuth2 credential handling.

* :mod:`~zeyapi.auth.credential_store` -- atomic persistence of the
  :class:`~zeyapi.models.CredentialRecord`.
* :mod:`~zeyapi.auth.callback` -- one-shot local redirect listener.
* :mod:`~zeyapi.auth.tokens` -- the :class:`TokenManager` state machine
  performing the authorization-code and refresh exchanges.
"""

from zeyapi.auth.credential_store import CredentialStore
from zeyapi.auth.tokens import LinkState, TokenManager

__all__ = ["CredentialStore", "LinkState", "TokenManager"]
