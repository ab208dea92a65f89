#!/usr/bin/env python3
"""
Hashgen Command Line Interface

Hash a plaintext with Argon2id or PBKDF2 and print the encoded hash, or
verify a plaintext against an encoded hash.

Usage:
    hashgen argon2 PLAINTEXT [OPTIONS]
    hashgen pbkdf2 PLAINTEXT [OPTIONS]
    hashgen verify PLAINTEXT ENCODED
    hashgen --version
    hashgen --help

A PLAINTEXT of "-" is read from standard input (one trailing newline is
stripped).
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .. import __version__
from ..core.config import HashingConfig, SUPPORTED_PBKDF2_HASHES
from ..crypto.errors import HashingError
from ..crypto.kdf import Argon2Hasher, PBKDF2Hasher, PasswordHashGenerator


class HashgenCLI:
    """Main CLI application for hashgen."""

    def __init__(self, stdin=None, stdout=None, stderr=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.config = HashingConfig()

    def run(self, args: List[str]) -> int:
        """Run the CLI with given arguments and return the exit status."""
        parser = self.create_parser()
        parsed = parser.parse_args(args)

        logging.basicConfig(
            level=logging.DEBUG if parsed.verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=self.stderr,
        )

        if not hasattr(parsed, 'func'):
            parser.print_help(self.stdout)
            return 0

        try:
            if parsed.config:
                self.config = HashingConfig.load(parsed.config)
            return parsed.func(parsed)
        except (HashingError, OSError) as e:
            print(f"Error: {e}", file=self.stderr)
            return 2

    def create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="hashgen",
            description="Argon2id and PBKDF2 password hash generator",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
    hashgen argon2 "correct horse battery staple"
    hashgen argon2 secret --memory-cost 65536 --time-cost 3 --parallelism 4
    hashgen pbkdf2 secret --hash-function sha512 --iterations 210000
    echo secret | hashgen pbkdf2 -
    hashgen verify secret '$argon2id$v=19$m=19456,t=2,p=1$...'
            """
        )

        parser.add_argument(
            '--version',
            action='version',
            version=f'hashgen v{__version__}'
        )
        parser.add_argument('--config', '-c', help='JSON file with default hashing parameters')
        parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

        subparsers = parser.add_subparsers(title='commands', dest='command')

        self.add_argon2_command(subparsers)
        self.add_pbkdf2_command(subparsers)
        self.add_verify_command(subparsers)

        return parser

    def add_argon2_command(self, subparsers):
        """Add argon2 command to parser."""
        cmd = subparsers.add_parser('argon2', help='Hash plaintext with Argon2id')
        cmd.add_argument('plaintext', help='Text to hash, or - for stdin')
        cmd.add_argument('--memory-cost', '-m', type=int, help='Memory cost in KiB')
        cmd.add_argument('--time-cost', '-t', type=int, help='Number of passes')
        cmd.add_argument('--parallelism', '-p', type=int, help='Number of lanes')
        cmd.add_argument('--hash-len', type=int, help='Derived key length in bytes')
        cmd.add_argument('--salt-len', type=int, help='Salt length in bytes')
        cmd.set_defaults(func=self.handle_argon2)

    def add_pbkdf2_command(self, subparsers):
        """Add pbkdf2 command to parser."""
        cmd = subparsers.add_parser('pbkdf2', help='Hash plaintext with PBKDF2-HMAC')
        cmd.add_argument('plaintext', help='Text to hash, or - for stdin')
        cmd.add_argument('--iterations', '-i', type=int, help='Iteration count')
        cmd.add_argument('--hash-function', '-f', choices=SUPPORTED_PBKDF2_HASHES,
                         help='Underlying HMAC hash function')
        cmd.add_argument('--hash-len', type=int, help='Derived key length in bytes')
        cmd.add_argument('--salt-len', type=int, help='Salt length in bytes')
        cmd.set_defaults(func=self.handle_pbkdf2)

    def add_verify_command(self, subparsers):
        """Add verify command to parser."""
        cmd = subparsers.add_parser('verify', help='Verify plaintext against an encoded hash')
        cmd.add_argument('plaintext', help='Text to check, or - for stdin')
        cmd.add_argument('encoded', help='Encoded hash string')
        cmd.set_defaults(func=self.handle_verify)

    def read_plaintext(self, value: str) -> str:
        if value != '-':
            return value
        text = self.stdin.read()
        return text[:-1] if text.endswith('\n') else text

    @staticmethod
    def _overrides(args, **names) -> dict:
        return {field: getattr(args, arg) for field, arg in names.items() if getattr(args, arg) is not None}

    def handle_argon2(self, args) -> int:
        """Handle argon2 command."""
        params = replace(self.config.argon2, **self._overrides(
            args,
            memory_cost_kib='memory_cost',
            time_cost='time_cost',
            parallelism='parallelism',
            hash_len='hash_len',
            salt_len='salt_len',
        ))
        print(Argon2Hasher(params).hash(self.read_plaintext(args.plaintext)), file=self.stdout)
        return 0

    def handle_pbkdf2(self, args) -> int:
        """Handle pbkdf2 command."""
        params = replace(self.config.pbkdf2, **self._overrides(
            args,
            iterations='iterations',
            hash_name='hash_function',
            hash_len='hash_len',
            salt_len='salt_len',
        ))
        print(PBKDF2Hasher(params).hash(self.read_plaintext(args.plaintext)), file=self.stdout)
        return 0

    def handle_verify(self, args) -> int:
        """Handle verify command; exit status 0 on match and 1 on mismatch."""
        generator = PasswordHashGenerator(self.config)
        if generator.verify(self.read_plaintext(args.plaintext), args.encoded):
            print("valid", file=self.stdout)
            return 0
        print("invalid", file=self.stdout)
        return 1


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    cli = HashgenCLI()
    sys.exit(cli.run(sys.argv[1:] if argv is None else argv))


if __name__ == "__main__":
    main()
