"""
Centralized observability utilities for request handlers.

This module provides configured instances of AWS Lambda Powertools for logging,
tracing, and metrics collection shared by every lambda_kit module.
"""

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics
from aws_lambda_powertools.tracing import Tracer

# Metrics namespace, overridden by POWERTOOLS_METRICS_NAMESPACE
METRICS_NAMESPACE = 'LambdaKit'

# JSON output format, service name can be set by environment variable "POWERTOOLS_SERVICE_NAME"
logger: Logger = Logger()

# Disabled outside Lambda or by setting POWERTOOLS_TRACE_DISABLED to "True"
tracer: Tracer = Tracer()

metrics = Metrics(namespace=METRICS_NAMESPACE)
