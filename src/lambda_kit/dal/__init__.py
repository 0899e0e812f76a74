"""
Data access layer for the key-value store.
"""

from lambda_kit.dal.dynamodb_handler import DynamoDBHandler

__all__ = ["DynamoDBHandler"]
