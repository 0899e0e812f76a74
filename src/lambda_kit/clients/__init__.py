"""
Clients for remote function invocation and outbound HTTP.
"""

from lambda_kit.clients.http_client import HttpClient
from lambda_kit.clients.lambda_invoker import LambdaInvoker

__all__ = ["HttpClient", "LambdaInvoker"]
