"""Authentication.

Users sign in with email/password and receive JWT access/refresh tokens.
Every protected route resolves the bearer token to a CurrentIdentity.
SSE routes also accept the token as a ?token= query parameter, because the
browser EventSource API cannot send an Authorization header.
"""
