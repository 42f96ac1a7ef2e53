"""Main module for the image request CLI."""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from . import __version__
from .core import ConfigurationError, ImageRequestError, S3Error, get_logger
from .core.logging_config import context_extra
from .core.factories import ImageRequestPipelineFactory


def build_event(args: argparse.Namespace) -> Dict[str, Any]:
    """Build an API Gateway style event from the decode arguments."""
    query: Dict[str, str] = {}
    if args.signature:
        query["signature"] = args.signature
    if args.expires:
        query["expires"] = args.expires

    event: Dict[str, Any] = {"path": args.path}
    if query:
        event["queryStringParameters"] = query
    if args.accept:
        event["headers"] = {"Accept": args.accept}
    return event


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-request",
        description="Decode and validate image handler requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Decode a Default (base64 JSON) request
  image-request decode --path /eyJidWNrZXQiOiJteS1idWNrZXQiLCJrZXkiOiJjYXQuanBnIn0=

  # Decode a Thumbor request and fetch the source object
  image-request decode --path /fit-in/200x200/filters:grayscale()/my-bucket/cat.jpg --fetch

Configuration is read from the environment (SOURCE_BUCKETS, ENABLE_SIGNATURE, ...).
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    decode_parser = subparsers.add_parser("decode", help="Decode a request path into request info")
    decode_parser.add_argument("--path", required=True, help="Request path, starting with '/'")
    decode_parser.add_argument("--signature", default=None, help="Signature query parameter")
    decode_parser.add_argument("--expires", default=None, help="Expiry as YYYYMMDDTHHMMSSZ")
    decode_parser.add_argument("--accept", default=None, help="Accept header value")
    decode_parser.add_argument(
        "--fetch", action="store_true", help="Also fetch the source object from S3"
    )

    subparsers.add_parser("version", help="Show version information")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point of the `image-request` command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = get_logger("image-request.cli")

    if args.command == "version":
        print(f"image-request {__version__}")
        return

    if args.command != "decode":
        parser.print_help()
        sys.exit(1)

    try:
        pipeline = ImageRequestPipelineFactory.create_pipeline()
        event = build_event(args)
        if args.fetch:
            info, original = pipeline.setup(event)
            output = {
                "request": info.model_dump(mode="json"),
                "original": {"content_type": original.content_type, "size": len(original.body)},
            }
        else:
            output = pipeline.process(event).model_dump(mode="json")
        print(json.dumps(output, indent=2))
    except ImageRequestError as e:
        logger.error(
            "Request rejected",
            extra=context_extra(
                operation=args.command, fields={"kind": e.kind.value, "status": e.status_code}
            ),
        )
        print(json.dumps(e.to_response(), indent=2))
        sys.exit(1)
    except (ConfigurationError, S3Error) as e:
        logger.error(f"{type(e).__name__}: {e}", extra=context_extra(operation=args.command))
        sys.exit(2)


if __name__ == "__main__":
    main()
