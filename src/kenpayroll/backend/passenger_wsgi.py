"""WSGI entrypoint for Passenger-style hosts."""

from kenpayroll.backend.app import create_app

# Passenger looks for a module-level ``application`` callable.
application = create_app()
