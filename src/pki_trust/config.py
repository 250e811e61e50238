"""Configuration for OCSP responders and timestamp authorities."""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from cryptography import x509

from pki_trust.exceptions import InvalidArgumentError
from pki_trust.models import RequestSigner

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
TSA_ENV_PREFIX = "PKI_TRUST_TSA_"


@dataclass
class OcspServer:
    """An OCSP responder endpoint and the identity used when querying it."""

    url: str
    requestor_name: Optional[x509.GeneralName] = None
    signer: Optional[RequestSigner] = None

    def __post_init__(self) -> None:
        if not self.url:
            raise InvalidArgumentError("OCSP server url is required")


@dataclass
class TimestampParameters:
    """Timestamp authority endpoint and credentials."""

    url: str
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    proxy: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.url:
            raise InvalidArgumentError("Timestamp authority url is required")
        if (self.username is None) != (self.password is None):
            raise InvalidArgumentError("username and password must be given together")

    @property
    def auth(self) -> Optional[tuple[str, str]]:
        if self.username is None or self.password is None:
            return None
        return (self.username, self.password)

    @classmethod
    def from_env(
        cls, prefix: str = TSA_ENV_PREFIX, environ: Optional[Mapping[str, str]] = None
    ) -> "TimestampParameters":
        """
        Load timestamp authority settings from environment variables.

        Reads <prefix>URL, <prefix>USERNAME, <prefix>PASSWORD, <prefix>TIMEOUT
        and <prefix>PROXY.

        Args:
            prefix: Variable name prefix
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            TimestampParameters
        """
        env = os.environ if environ is None else environ

        url = env.get(f"{prefix}URL")
        if not url:
            raise InvalidArgumentError(f"{prefix}URL is not set")

        timeout = DEFAULT_TIMEOUT
        raw_timeout = env.get(f"{prefix}TIMEOUT")
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise InvalidArgumentError(f"Invalid {prefix}TIMEOUT: {raw_timeout!r}") from None

        logger.debug(f"Loaded timestamp authority settings from environment: {url}")
        return cls(
            url=url,
            username=env.get(f"{prefix}USERNAME") or None,
            password=env.get(f"{prefix}PASSWORD") or None,
            timeout=timeout,
            proxy=env.get(f"{prefix}PROXY") or None,
        )
