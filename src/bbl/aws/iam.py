"""
IAM server certificate lifecycle.

Certificates are uploaded under a deterministic name (see
``certificate_name``) so later commands can find and delete them from the
name recorded in state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from botocore.exceptions import ClientError

from bbl.core.errors import CertificateNotFoundError

from .session import AWSClientProvider

logger = logging.getLogger(__name__)

NO_SUCH_ENTITY = "NoSuchEntity"


@dataclass
class Certificate:
    """An uploaded IAM server certificate."""

    name: str
    arn: str
    body: str = ""
    chain: str = ""


def certificate_name(lb_type: str, guid: str, env_id: str = "") -> str:
    """
    Build the server certificate name for a load balancer.

    Returns ``{lb_type}-elb-cert-{guid}``, suffixed with ``-{env_id}`` when the
    environment has an ID.
    """
    name = f"{lb_type}-elb-cert-{guid}"
    if env_id:
        name = f"{name}-{env_id}"
    return name


def _is_no_such_entity(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == NO_SUCH_ENTITY


class CertificateManager:
    """
    Creates, describes and deletes IAM server certificates.

    Usage:
        manager = CertificateManager(client_provider)
        manager.create("cert.pem", "key.pem", "", "concourse-elb-cert-abcd")
        arn = manager.describe("concourse-elb-cert-abcd").arn
    """

    def __init__(self, client_provider: AWSClientProvider):
        self.client_provider = client_provider

    def create(
        self,
        certificate_path: str,
        private_key_path: str,
        chain_path: str,
        certificate_name: str,
    ) -> None:
        """
        Upload a server certificate read from the given files.

        Args:
            certificate_path: Path to the PEM certificate
            private_key_path: Path to the PEM private key
            chain_path: Path to the PEM chain, or "" for none
            certificate_name: Name to upload the certificate under
        """
        params = {
            "ServerCertificateName": certificate_name,
            "CertificateBody": Path(certificate_path).read_text(),
            "PrivateKey": Path(private_key_path).read_text(),
        }
        if chain_path:
            params["CertificateChain"] = Path(chain_path).read_text()

        logger.debug("Uploading server certificate %s", certificate_name)
        self.client_provider.get_iam_client().upload_server_certificate(**params)

    def describe(self, certificate_name: str) -> Certificate:
        """
        Look up a server certificate by name.

        Raises:
            CertificateNotFoundError: If no certificate has that name
        """
        try:
            response = self.client_provider.get_iam_client().get_server_certificate(
                ServerCertificateName=certificate_name
            )
        except ClientError as e:
            if _is_no_such_entity(e):
                raise CertificateNotFoundError(f"{certificate_name} was not found") from e
            raise

        server_certificate = response["ServerCertificate"]
        metadata = server_certificate["ServerCertificateMetadata"]

        return Certificate(
            name=metadata["ServerCertificateName"],
            arn=metadata["Arn"],
            body=server_certificate.get("CertificateBody", ""),
            chain=server_certificate.get("CertificateChain", ""),
        )

    def delete(self, certificate_name: str) -> None:
        """Delete a server certificate. A missing certificate is not an error."""
        try:
            self.client_provider.get_iam_client().delete_server_certificate(
                ServerCertificateName=certificate_name
            )
        except ClientError as e:
            if _is_no_such_entity(e):
                logger.debug("Certificate %s already deleted", certificate_name)
                return
            raise
