import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with a fixed set of extra fields."""

    EXTRA_FIELDS = (
        "request_id", "path", "method", "status_code", "user_id",
        "booking_id", "barber_id", "payment_intent_id", "session_id",
        "account_id", "refund_id", "amount_cents", "action", "identifier",
        "event_type", "error",
    )

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(config) -> None:
    formatter = JsonFormatter()
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handlers = [handler]

    log_file = config.get("LOG_FILE")
    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=config.get("LOG_MAX_BYTES", 10 * 1024 * 1024),
            backupCount=config.get("LOG_BACKUP_COUNT", 5),
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(config.get("LOG_LEVEL", "INFO"))
    root.handlers = handlers
