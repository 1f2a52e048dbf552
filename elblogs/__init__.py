"""Parse AWS Elastic Load Balancer access logs, read them from S3 and stream them as events."""

__version__ = "0.1.0"