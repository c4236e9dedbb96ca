#!/usr/bin/env python3
"""
Generate a JWT signing key and store it as SECRET_KEY in .env.

    python generate_secret_key.py            # hex key, written to .env
    python generate_secret_key.py --base64   # URL-safe base64 key
    python generate_secret_key.py --show     # print only
"""
import argparse
import base64
import os
import secrets
import shutil

from dotenv import set_key

ENV_FILE = ".env"
ENV_EXAMPLE = ".env.example"


def generate_secret_key(length=32):
    """Hex encoded random key of `length` bytes."""
    return secrets.token_hex(length)


def generate_base64_secret_key(length=32):
    return base64.urlsafe_b64encode(secrets.token_bytes(length)).decode('utf-8')


def update_env_file(secret_key, env_file=ENV_FILE):
    """Write SECRET_KEY into the env file, creating it from .env.example when missing."""
    if not os.path.exists(env_file) and os.path.exists(ENV_EXAMPLE):
        shutil.copyfile(ENV_EXAMPLE, env_file)
        print(f"Created {env_file} from {ENV_EXAMPLE}")
    set_key(env_file, "SECRET_KEY", secret_key)
    print(f"Updated SECRET_KEY in {env_file}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate SECRET_KEY for the Design AI backend")
    parser.add_argument("--length", type=int, default=32, help="key length in bytes")
    parser.add_argument("--base64", action="store_true", help="URL-safe base64 instead of hex")
    parser.add_argument("--show", action="store_true", help="print the key without touching .env")
    args = parser.parse_args()

    key = generate_base64_secret_key(args.length) if args.base64 else generate_secret_key(args.length)
    print(key)
    if not args.show:
        update_env_file(key)
