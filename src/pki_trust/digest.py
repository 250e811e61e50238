"""Digest algorithms used to build and label hashes."""

from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes

from pki_trust.exceptions import InvalidArgumentError, UnsupportedDigestError

XMLDSIG_SHA1_URI = "http://www.w3.org/2000/09/xmldsig#sha1"
XMLDSIG_SHA256_URI = "http://www.w3.org/2001/04/xmlenc#sha256"
XMLDSIG_SHA384_URI = "http://www.w3.org/2001/04/xmldsig-more#sha384"
XMLDSIG_SHA512_URI = "http://www.w3.org/2001/04/xmlenc#sha512"

_HASH_CLASSES: dict[str, type[hashes.HashAlgorithm]] = {
    "SHA1": hashes.SHA1,
    "SHA256": hashes.SHA256,
    "SHA384": hashes.SHA384,
    "SHA512": hashes.SHA512,
}


@dataclass(frozen=True)
class DigestMethod:
    """A digest algorithm identified by name, XMLDSig URI and OID."""

    name: str
    uri: str
    oid: str

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        """Return a fresh cryptography hash algorithm instance."""
        try:
            return _HASH_CLASSES[self.name]()
        except KeyError:
            raise UnsupportedDigestError(
                f"Hash algorithm name `{self.name}` is not supported in this context."
            ) from None

    @property
    def digest_size(self) -> int:
        return self.hash_algorithm().digest_size

    def compute_hash(self, value: bytes) -> bytes:
        """
        Compute the digest of a value.

        Args:
            value: Data to hash

        Returns:
            Raw digest bytes
        """
        if value is None:
            raise InvalidArgumentError("value is required")

        digest = hashes.Hash(self.hash_algorithm())
        digest.update(value)
        return digest.finalize()


SHA1 = DigestMethod("SHA1", XMLDSIG_SHA1_URI, "1.3.14.3.2.26")
SHA256 = DigestMethod("SHA256", XMLDSIG_SHA256_URI, "2.16.840.1.101.3.4.2.1")
SHA384 = DigestMethod("SHA384", XMLDSIG_SHA384_URI, "2.16.840.1.101.3.4.2.2")
SHA512 = DigestMethod("SHA512", XMLDSIG_SHA512_URI, "2.16.840.1.101.3.4.2.3")

DIGEST_METHODS = (SHA1, SHA256, SHA384, SHA512)


def get_by_oid(oid: str) -> DigestMethod:
    """Look up a digest method by its dotted OID."""
    if oid is None:
        raise InvalidArgumentError("oid is required")
    for method in DIGEST_METHODS:
        if method.oid == oid:
            return method
    raise UnsupportedDigestError(f"Hash algorithm OID `{oid}` is not supported in this context.")


def get_by_uri(uri: str) -> DigestMethod:
    """Look up a digest method by its XMLDSig URI."""
    if uri is None:
        raise InvalidArgumentError("uri is required")
    for method in DIGEST_METHODS:
        if method.uri == uri:
            return method
    raise UnsupportedDigestError(f"Hash algorithm URI `{uri}` is not supported in this context.")


def get_by_name(name: str) -> DigestMethod:
    """Look up a digest method by name (case-insensitive, dashes ignored)."""
    if name is None:
        raise InvalidArgumentError("name is required")
    normalized = name.upper().replace("-", "")
    for method in DIGEST_METHODS:
        if method.name == normalized:
            return method
    raise UnsupportedDigestError(f"Hash algorithm name `{name}` is not supported in this context.")
