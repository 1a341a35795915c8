from __future__ import annotations

import base64

from site_verifier.errors import ConfigurationError
from site_verifier_contracts import AuthMethod, Credentials


def build_auth_headers(
    use_authentication: bool,
    method: AuthMethod | str | None,
    credentials: Credentials,
) -> dict[str, str]:
    if not use_authentication:
        return {}

    try:
        auth_method = AuthMethod(method)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid authentication method: {method}") from exc

    if auth_method is AuthMethod.BASIC:
        raw = f"{credentials.username or ''}:{credentials.password or ''}"
        token = base64.b64encode(raw.encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {token}"}
    return {"Authorization": credentials.auth_token or ""}
