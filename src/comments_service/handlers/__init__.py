"""
AWS Lambda Handlers Module.

Each handler module is a Lambda entry point:

- comments_handler: basic comments API, author supplied in the body
- user_comments_handler: comments API authorized by API Gateway claims,
  optionally offloading writes to SQS
- comments_queue_handler: SQS consumer applying queued writes

Handler modules build their resolver and read environment variables at import
time, so they are imported by the Lambda entry points rather than here.
"""

from comments_service.handlers.utils.observability import logger, tracer, metrics

__all__ = [
    "logger",
    "tracer",
    "metrics",
]
