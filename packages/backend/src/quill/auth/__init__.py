"""Authentication and authorization.

Learn: Users → email/password → bcrypt-verified → signed JWT bearer token.
Every later request presents the token; the dependencies in
dependencies.py turn it back into a "current identity", re-checking that
the user still exists. Ownership checks on posts happen in the service
layer against that identity.
"""
