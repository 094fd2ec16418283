#!/usr/bin/env python3
"""Generate docker.env from .env and the service account key.

The relay and worker containers take all configuration from the
environment, so the service account JSON is inlined as
GOOGLE_SERVICE_ACCOUNT_JSON next to the variables from .env.

Usage:
    python utils/gen_docker_env.py [--env .env] [--key service_account_key.json] [--out docker.env]
"""

import argparse
import json
import os
import sys


def read_env_file(path: str) -> list:
    """Return the non-blank, non-comment lines of an env file."""
    lines = []
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#'):
                lines.append(line)
    return lines


def inline_service_account(path: str) -> str:
    """Return the GOOGLE_SERVICE_ACCOUNT_JSON line for a key file."""
    with open(path) as f:
        sa_data = json.load(f)
    missing = [k for k in ('client_email', 'private_key') if not sa_data.get(k)]
    if missing:
        raise ValueError(f"{path} is missing {', '.join(missing)}")
    return 'GOOGLE_SERVICE_ACCOUNT_JSON=' + json.dumps(sa_data, separators=(',', ':'))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--env', default='.env')
    parser.add_argument('--key', default='service_account_key.json')
    parser.add_argument('--out', default='docker.env')
    args = parser.parse_args(argv)

    output_lines = []
    if os.path.exists(args.env):
        output_lines = [l for l in read_env_file(args.env)
                        if not l.startswith('GOOGLE_SERVICE_ACCOUNT_JSON=')]
        print(f"  Read {len(output_lines)} variables from {args.env}")
    else:
        print(f"  Warning: {args.env} not found", file=sys.stderr)

    if os.path.exists(args.key):
        try:
            output_lines.append(inline_service_account(args.key))
        except ValueError as e:
            print(f"  Error: {e}", file=sys.stderr)
            return 1
        print(f"  Added GOOGLE_SERVICE_ACCOUNT_JSON from {args.key}")
    else:
        print(f"  Warning: {args.key} not found (Drive access won't work)", file=sys.stderr)

    with open(args.out, 'w') as f:
        f.write('\n'.join(output_lines) + '\n')

    print(f"\nGenerated {args.out} with {len(output_lines)} variables")
    return 0


if __name__ == '__main__':
    sys.exit(main())
