"""
Logging configuration for the Verity verifier.

Provides structured JSON logging for audit trails and debugging.
"""

import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for tracking the verification being evaluated
verification_id_var: ContextVar[str] = ContextVar('verification_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in a consistent JSON format suitable for
    log aggregation systems like ELK, Splunk, or CloudWatch.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        verification_id = verification_id_var.get()
        if verification_id:
            log_data["verification_id"] = verification_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class AuditLogger:
    """
    Specialized logger for audit events.

    Records verification requests and decisions, deployment loading,
    and security-relevant rejections.
    """

    def __init__(self, name: str = "verity_verifier.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        if not self._logger.isEnabledFor(level):
            return

        extra = {
            "event_type": event_type,
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def verification_request(
        self,
        subject: str,
        cluster: str,
        schema: str,
        expiration: int
    ) -> None:
        """Log an incoming verification."""
        self._log(
            logging.DEBUG,
            "VERIFICATION_REQUEST",
            subject=subject,
            cluster=cluster,
            schema=schema,
            expiration=expiration,
            message=f"Verification requested for {subject}"
        )

    def verification_decision(
        self,
        subject: str,
        outcome: str,
        stage: str,
        error: Optional[str] = None,
        recovered_address: Optional[str] = None
    ) -> None:
        """Log a verification decision."""
        level = logging.INFO if error is None else logging.WARNING
        self._log(
            level,
            "VERIFICATION_DECISION",
            subject=subject,
            outcome=outcome,
            stage=stage,
            error=error,
            recovered_address=recovered_address,
            message=f"Verification {outcome}" + (f" ({error})" if error else "")
        )

    def deployment_loaded(
        self,
        cluster: str,
        trust_anchor_address: str,
        schema: str
    ) -> None:
        """Log that a deployment configuration was loaded."""
        self._log(
            logging.INFO,
            "DEPLOYMENT_LOADED",
            cluster=cluster,
            trust_anchor_address=trust_anchor_address,
            schema=schema,
            message=f"Loaded deployment for cluster {cluster}"
        )

    def security_event(
        self,
        event: str,
        severity: str = "medium",
        **details
    ) -> None:
        """Log a security-relevant event."""
        level = {
            "low": logging.INFO,
            "medium": logging.WARNING,
            "high": logging.ERROR,
            "critical": logging.CRITICAL
        }.get(severity, logging.WARNING)

        self._log(
            level,
            "SECURITY_EVENT",
            security_event=event,
            severity=severity,
            **details,
            message=f"Security event: {event}"
        )


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (default: VERITY_LOG_LEVEL or INFO)
        json_format: Use JSON formatting (default: VERITY_LOG_JSON or True)
        log_file: Optional file path for log output
    """
    if level is None:
        level = os.getenv("VERITY_LOG_LEVEL", "INFO")
    if json_format is None:
        json_format = os.getenv("VERITY_LOG_JSON", "1").lower() in ("1", "true", "yes")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_verification_id(verification_id: Optional[str] = None) -> str:
    """
    Set the verification ID for the current context.

    Args:
        verification_id: ID to set, or None to generate one

    Returns:
        The verification ID that was set
    """
    if verification_id is None:
        verification_id = str(uuid.uuid4())
    verification_id_var.set(verification_id)
    return verification_id


def get_verification_id() -> str:
    """Get the current verification ID."""
    return verification_id_var.get()


# Global audit logger instance
audit_log = AuditLogger()
