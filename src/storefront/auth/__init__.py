"""Authentication and authorization.

Learn: Users log in with email/password and receive an access/refresh
JWT pair. The refresh token is also written to Redis so logout and
rotation can invalidate it. Access tokens are checked statelessly on
every request by the AuthGateway.
"""
