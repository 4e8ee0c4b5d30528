"""TLS policy for the connector transport.

TLS 1.0, 1.1 and 1.2 are enabled. SSLv3 is never negotiated. Plain http://
URLs are sent in cleartext and never touch this context.
"""

from __future__ import annotations

import ssl
import warnings

from ws_connector.errors import ConfigurationError

MINIMUM_TLS_VERSION = ssl.TLSVersion.TLSv1
MAXIMUM_TLS_VERSION = ssl.TLSVersion.TLSv1_2


def create_ssl_context(
    *,
    ciphers: str | None = None,
    ca_bundle: str | None = None,
    verify_ssl: bool = True,
    cert: str | None = None,
    key: str | None = None,
    key_password: str | None = None,
) -> ssl.SSLContext:
    """Build the SSL context handed to httpx.

    Args:
        ciphers: OpenSSL cipher string. Uses the platform default if None.
        ca_bundle: CA bundle to verify the server against.
        verify_ssl: Disable hostname and certificate checks when False.
        cert: Client certificate for mTLS (requires key).
        key: Client private key for mTLS.
        key_password: Password of the client key, if encrypted.

    Raises:
        ConfigurationError: If the cipher string, CA bundle or client
            certificate cannot be loaded.
    """
    ssl_context = ssl.create_default_context()

    # TLSv1 and TLSv1_1 members are deprecated, but still honored by OpenSSL
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        ssl_context.minimum_version = MINIMUM_TLS_VERSION
        ssl_context.maximum_version = MAXIMUM_TLS_VERSION
        ssl_context.options |= ssl.OP_NO_SSLv3

    if ciphers:
        try:
            ssl_context.set_ciphers(ciphers)
        except ssl.SSLError as e:
            raise ConfigurationError(f"Invalid cipher string '{ciphers}': {e}") from e

    if ca_bundle:
        try:
            ssl_context.load_verify_locations(ca_bundle)
        except (OSError, ssl.SSLError) as e:
            raise ConfigurationError(f"Cannot load CA bundle '{ca_bundle}': {e}") from e
    elif not verify_ssl:
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE

    if cert or key:
        if not (cert and key):
            raise ConfigurationError("Client certificate and key must be set together")
        try:
            ssl_context.load_cert_chain(cert, key, password=key_password)
        except (OSError, ssl.SSLError) as e:
            raise ConfigurationError(f"Cannot load client certificate '{cert}': {e}") from e

    return ssl_context
