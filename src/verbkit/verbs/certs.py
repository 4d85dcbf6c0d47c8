"""Certificate name inspection via the openssl command-line client."""

from __future__ import annotations

import re
from dataclasses import dataclass

from verbkit.backends.invoke import Invocation
from verbkit.backends.policy import CandidateGroup, ToolCandidate
from verbkit.config import AppSettings
from verbkit.dispatch.context import VerbContext, VerbOutcome, VerbSpec
from verbkit.errors import ExecutionFailed, InvalidArguments

GROUP_TLS_CLIENT = "tls-client"
GROUP_X509 = "x509"

TLS_PORT = 443
CLIENT_REQUEST = b"GET / HTTP/1.0\nEOT\n"
CERTOPT = ",".join(
    (
        "no_aux",
        "no_header",
        "no_issuer",
        "no_pubkey",
        "no_serial",
        "no_sigdump",
        "no_signame",
        "no_validity",
        "no_version",
    )
)

PEM_PATTERN = re.compile(rb"-----BEGIN CERTIFICATE-----.+?-----END CERTIFICATE-----", re.DOTALL)
COMMON_NAME_PATTERN = re.compile(r"\bCN\s*=\s*([^,/\n]+)")
DNS_NAME_PATTERN = re.compile(r"DNS:([^,\s]+)")


@dataclass(frozen=True, slots=True)
class CertificateNames:
    common_name: str | None
    alt_names: tuple[str, ...]


def _s_client_argv(executable: str, invocation: Invocation) -> list[str]:
    host = str(invocation.input_path)
    return [executable, "s_client", "-connect", f"{host}:{TLS_PORT}", "-servername", host]


def _x509_argv(executable: str, invocation: Invocation) -> list[str]:
    return [executable, "x509", "-noout", "-text", "-certopt", CERTOPT]


def candidate_groups(settings: AppSettings) -> tuple[CandidateGroup, ...]:
    return (
        CandidateGroup(GROUP_TLS_CLIENT, (ToolCandidate("openssl", _s_client_argv),)),
        CandidateGroup(GROUP_X509, (ToolCandidate("openssl", _x509_argv),)),
    )


def extract_pem(handshake_output: bytes) -> bytes | None:
    """Return the first PEM certificate block of an s_client transcript."""

    match = PEM_PATTERN.search(handshake_output)
    return match.group(0) + b"\n" if match else None


def extract_certificate_names(text_dump: str) -> CertificateNames:
    """Pull the subject Common Name and DNS alternative names out of ``x509 -text`` output."""

    common_name: str | None = None
    alt_names: list[str] = []
    lines = text_dump.splitlines()
    for index, line in enumerate(lines):
        stripped = line.strip()
        if common_name is None and stripped.startswith("Subject:"):
            match = COMMON_NAME_PATTERN.search(stripped)
            if match:
                common_name = match.group(1).strip()
        elif "Subject Alternative Name" in stripped and index + 1 < len(lines):
            alt_names.extend(DNS_NAME_PATTERN.findall(lines[index + 1]))
    return CertificateNames(common_name=common_name, alt_names=tuple(alt_names))


def cert_names(context: VerbContext, args: list[str]) -> VerbOutcome:
    """Print the Common Name and Subject Alternative Names served for a domain."""

    if len(args) != 1 or not args[0].strip():
        raise InvalidArguments("cert-names", "usage: cert-names <domain>")
    domain = args[0].strip()
    if domain.startswith("-") or ":" in domain or any(char.isspace() for char in domain):
        raise InvalidArguments("cert-names", f"not a domain name: {domain!r}")

    handshake = context.execute(
        GROUP_TLS_CLIENT,
        Invocation(
            verb="cert-names",
            input_path=domain,
            stdin_data=CLIENT_REQUEST,
            capture_stdout=True,
            timeout=context.settings.execution.cert_connect_timeout_seconds,
        ),
    )
    pem = extract_pem(handshake.stdout or b"")
    if pem is None:
        raise ExecutionFailed("openssl", None, detail=f"certificate not found for {domain}")

    dump = context.execute(
        GROUP_X509,
        Invocation(verb="cert-names", stdin_data=pem, capture_stdout=True),
    )
    names = extract_certificate_names((dump.stdout or b"").decode("utf-8", errors="replace"))

    lines = [f"Common Name: {names.common_name or '<none>'}", "Subject Alternative Name(s):"]
    lines.extend(f"  {name}" for name in names.alt_names)
    return VerbOutcome(lines=tuple(lines))


VERBS = (
    VerbSpec(
        name="cert-names",
        handler=cert_names,
        candidate_groups=candidate_groups,
        usage="cert-names <domain>",
        summary="Show the Common Name and Subject Alternative Names of a site certificate.",
    ),
)
