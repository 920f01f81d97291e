"""Command-line interface for sd-jwt-vci."""

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any, Optional

from . import __version__
from .config import Settings
from .decoder import decode_credential
from .exceptions import SDJWTError
from .issuer import SDJWTIssuer
from .keys import generate_es256_jwk, public_jwk
from .metadata import issuer_metadata
from .presentation import redisclose_credential
from .resolvers import jwk_kid_resolver, jwks_resolver
from .signers import ES256Signer, PlaceholderSigner
from .templates import default_registry
from .verifiers import CredentialVerifier

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sd-jwt-vci",
        description="Issue, decode and selectively disclose SD-JWT university credentials",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: SDJWT_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Keygen subcommand
    keygen_parser = subparsers.add_parser("keygen", help="Generate an ES256 signing key (JWK)")
    keygen_parser.add_argument("--kid", help="Key identifier (default: JWK thumbprint)")
    keygen_parser.add_argument("--output", "-o", help="Output file")

    # Templates subcommand
    templates_parser = subparsers.add_parser("templates", help="List credential templates")
    templates_parser.add_argument("--json", action="store_true", help="Print full template JSON")

    # Metadata subcommand
    metadata_parser = subparsers.add_parser("metadata", help="Print credential issuer metadata")
    metadata_parser.add_argument("--base-url", help="Public base URL (default: SDJWT_ISSUER_URL)")

    # Issue subcommand
    issue_parser = subparsers.add_parser("issue", help="Issue an SD-JWT credential")
    issue_parser.add_argument("--template", "-t", required=True, help="Template id")
    issue_parser.add_argument("--subject", "-s", required=True, help="Subject identifier")
    issue_parser.add_argument("--claims", help="JSON file with subject claims")
    issue_parser.add_argument(
        "--claim", action="append", default=[], metavar="KEY=VALUE", help="Custom claim override"
    )
    issue_parser.add_argument("--select", nargs="+", help="Selectively disclosable claims to include")
    issue_parser.add_argument("--key", help="Private JWK file (default: SDJWT_SIGNING_KEY_FILE)")
    issue_parser.add_argument(
        "--placeholder", action="store_true", help="Use a placeholder signature instead of a key"
    )
    issue_parser.add_argument("--output", "-o", help="Output file")

    # Decode subcommand
    decode_parser = subparsers.add_parser("decode", help="Decode an SD-JWT")
    decode_parser.add_argument("input", help="SD-JWT file, or - for stdin")

    # Disclose subcommand
    disclose_parser = subparsers.add_parser("disclose", help="Create selective disclosure")
    disclose_parser.add_argument("input", help="SD-JWT file, or - for stdin")
    disclose_parser.add_argument("--claims", "-c", nargs="*", default=[], help="Claims to disclose")
    disclose_parser.add_argument("--output", "-o", help="Output file")

    # Verify subcommand
    verify_parser = subparsers.add_parser("verify", help="Verify an SD-JWT")
    verify_parser.add_argument("input", help="SD-JWT file, or - for stdin")
    verify_parser.add_argument("--key", required=True, help="Issuer JWK or JWK Set file")

    return parser


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read().strip()
    with open(path, encoding="utf-8") as f:
        return f.read().strip()


def _read_json(path: str) -> Any:
    return json.loads(_read_text(path))


def _write_text(text: str, path: Optional[str]) -> None:
    if path:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)


def _dump(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def _parse_overrides(items: Sequence[str]) -> dict[str, str]:
    overrides = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid claim override '{item}', expected KEY=VALUE")
        overrides[key] = value
    return overrides


def cmd_keygen(args: argparse.Namespace, settings: Settings) -> int:
    jwk = generate_es256_jwk(args.kid)
    _write_text(_dump(jwk), args.output)
    return 0


def cmd_templates(args: argparse.Namespace, settings: Settings) -> int:
    registry = default_registry()
    if args.json:
        print(_dump([template.to_dict() for template in registry]))
        return 0
    for template in registry:
        sd_keys = ", ".join(template.selectively_disclosable_keys)
        print(f"{template.id}\t{template.name}\t{template.validity_period_days}d\t[{sd_keys}]")
    return 0


def cmd_metadata(args: argparse.Namespace, settings: Settings) -> int:
    base_url = args.base_url or settings.issuer_url
    print(_dump(issuer_metadata(base_url, default_registry())))
    return 0


def cmd_issue(args: argparse.Namespace, settings: Settings) -> int:
    if args.placeholder:
        signer = PlaceholderSigner()
        key_id = settings.key_id
    else:
        key_file = args.key or settings.signing_key_file
        if not key_file:
            print("error: --key, SDJWT_SIGNING_KEY_FILE or --placeholder is required", file=sys.stderr)
            return 2
        signer = ES256Signer(_read_json(key_file))
        key_id = signer.key_id

    claims = _read_json(args.claims) if args.claims else {}
    if not isinstance(claims, dict):
        raise ValueError(f"Claims file must hold a JSON object, got {type(claims).__name__}")
    issuer = SDJWTIssuer(signer, default_registry(), key_id=key_id, hash_alg=settings.hash_alg)
    sd_jwt = issuer.issue_credential(
        args.template,
        args.subject,
        claims,
        overrides=_parse_overrides(args.claim),
        selected_claim_keys=args.select,
    )
    _write_text(sd_jwt, args.output)
    return 0


def cmd_decode(args: argparse.Namespace, settings: Settings) -> int:
    credential = decode_credential(_read_text(args.input))
    print(
        _dump(
            {
                "header": credential.header,
                "payload": credential.payload,
                "disclosures": [item.as_array() for item in credential.disclosures],
                "claims": credential.reconstructed_claims,
            }
        )
    )
    return 0


def cmd_disclose(args: argparse.Namespace, settings: Settings) -> int:
    presentation = redisclose_credential(_read_text(args.input), args.claims)
    _write_text(presentation, args.output)
    return 0


def cmd_verify(args: argparse.Namespace, settings: Settings) -> int:
    key_data = _read_json(args.key)
    if not isinstance(key_data, dict):
        raise ValueError(f"Key file must hold a JWK or JWK Set object, got {type(key_data).__name__}")
    if "keys" in key_data:
        resolver = jwks_resolver(key_data)
    else:
        resolver = jwk_kid_resolver([(key_data.get("kid", settings.key_id), public_jwk(key_data))])

    result = CredentialVerifier(resolver).verify(_read_text(args.input))
    print(
        _dump(
            {
                "valid": result.valid,
                "signature_valid": result.signature_valid,
                "digests_valid": result.digests_valid,
                "expired": result.expired,
                "unreferenced_disclosures": result.unreferenced_disclosures,
                "error": result.error,
                "claims": result.verified_claims,
            }
        )
    )
    return 0 if result.valid else 1


COMMANDS = {
    "keygen": cmd_keygen,
    "templates": cmd_templates,
    "metadata": cmd_metadata,
    "issue": cmd_issue,
    "decode": cmd_decode,
    "disclose": cmd_disclose,
    "verify": cmd_verify,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = Settings.from_env()
        logging.basicConfig(
            level=args.log_level or settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        return COMMANDS[args.command](args, settings)
    except (SDJWTError, ValueError, KeyError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
