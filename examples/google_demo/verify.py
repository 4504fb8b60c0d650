"""Verify a Google ID token from the command line.

Reads GOOGLE_SIGNIN_* settings from the environment (or a .env file):

    GOOGLE_SIGNIN_AUDIENCES=1234.apps.googleusercontent.com
    GOOGLE_SIGNIN_HOSTED_DOMAINS=example.com

Usage:
    python verify.py <id_token>
"""

import asyncio
import logging
import sys

from google_signin import AuthError, GoogleSignInClient


async def main(token: str) -> int:
    async with GoogleSignInClient.from_env() as google:
        try:
            claims = await google.verify_token(token)
        except AuthError as e:
            print(f"rejected: {type(e).__name__}: {e}")
            return 1

    print(f"sub={claims.sub} email={claims.email} hd={claims.hd}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
