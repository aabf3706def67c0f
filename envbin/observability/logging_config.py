"""Structured logging configuration for the application."""

import logging
import os
import sys

from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with service context."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["timestamp"] = self.formatTime(record, self.datefmt)

        log_record["environment"] = os.getenv("FLASK_ENV", "production")
        log_record["service"] = "envbin"
        log_record["pid"] = record.process


def cloudwatch_handler(formatter):
    """
    Build a handler shipping records to AWS CloudWatch Logs.

    Args:
        formatter: Formatter applied to shipped records

    Returns:
        watchtower.CloudWatchLogHandler
    """
    import boto3
    import watchtower

    client = boto3.client(
        "logs", region_name=os.getenv("AWS_REGION", "us-east-1")
    )
    handler = watchtower.CloudWatchLogHandler(
        log_group_name=os.getenv("CLOUDWATCH_LOG_GROUP", "/envbin/app"),
        log_stream_name=os.getenv("CLOUDWATCH_STREAM_NAME", "envbin"),
        boto3_client=client,
        send_interval=10,
        create_log_group=True,
    )
    handler.setFormatter(formatter)

    return handler


def setup_logging(app=None):
    """
    Configure structured JSON logging for the application.

    Args:
        app: Flask application instance (optional)

    Returns:
        Logger instance
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    logger = logging.getLogger()
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    formatter = CustomJsonFormatter(
        fmt="%(timestamp)s %(level)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

    if os.getenv("ENABLE_CLOUDWATCH_LOGS", "false").lower() == "true":
        logger.addHandler(cloudwatch_handler(formatter))

    if app:
        app.logger.handlers = logger.handlers
        app.logger.setLevel(log_level)
        app.logger.info(
            "Structured logging initialized",
            extra={"log_level": log_level, "format": "json"},
        )

    return logger
