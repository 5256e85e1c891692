"""
Shared utilities for the Meeting Access Gateway.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation and redaction
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- cancellation: Client-disconnect propagation for outbound calls
- base_service: FastAPI application scaffolding

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
