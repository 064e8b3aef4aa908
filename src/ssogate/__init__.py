"""ssogate - federated sign-on and identity reconciliation."""

__version__ = "0.1.0"
