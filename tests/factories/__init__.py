"""Test factories for generating test data."""

from tests.factories.identity import ExternalIdentityFactory, LoggedInSessionFactory


__all__ = ["ExternalIdentityFactory", "LoggedInSessionFactory"]
