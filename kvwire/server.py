#!/usr/bin/env python3
"""
KV-Wire Server Entry Point

This is the main entry point for starting the KV-Wire server.

Usage:
    kvwire-server <bind-ip> <port>            # e.g. kvwire-server 0.0.0.0 5000
    kvwire-server <bind-ip> <port> --debug    # Enable debug logging
    python -m kvwire.server 127.0.0.1 5000

Exit status is 1 on invalid arguments, an invalid bind address, or a
bind/listen failure. Otherwise the server runs until interrupted.
"""

import argparse
import ipaddress
import logging
import sys
from typing import List, Optional

from .console import ArgumentParser, setup_logging
from .network.tcp_server import KVServer
from .store.engine import KVStore


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value}") from None
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {value}")
    return port


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = ArgumentParser(
        prog="kvwire-server",
        description="KV-Wire: length-framed key-value store server",
    )

    parser.add_argument(
        "bind_ip",
        type=str,
        help="IPv4 address to bind to",
    )

    parser.add_argument(
        "port",
        type=_port,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the server."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    try:
        ipaddress.IPv4Address(args.bind_ip)
    except ValueError:
        print(f"Invalid bind IP: {args.bind_ip}", file=sys.stderr)
        return 1

    server = KVServer(host=args.bind_ip, port=args.port, store=KVStore())

    try:
        server.bind()
    except OSError as e:
        print(f"bind/listen failed: {e}", file=sys.stderr)
        return 1

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        server.stop()
        logger.info("Server shutdown complete")

    return 0


if __name__ == "__main__":
    sys.exit(main())
