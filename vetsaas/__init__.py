"""Tenant and subscription lifecycle service for a multi-tenant veterinary SaaS."""

__version__ = "0.1.0"
