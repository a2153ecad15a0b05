import structlog
from pymongo import monitoring


class CommandLoggingListener(monitoring.CommandListener):
    """
    Logs every command the driver sends, with its outcome and duration.

    Registered on the MongoClient when telemetry is enabled; the log entries
    carry the current span ids through the structlog processors.
    """

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("mongodata.commands")

    def started(self, event):
        self._logger.debug(
            "Command started",
            command=event.command_name,
            database=event.database_name,
            request_id=event.request_id,
        )

    def succeeded(self, event):
        self._logger.debug(
            "Command succeeded",
            command=event.command_name,
            request_id=event.request_id,
            duration_ms=event.duration_micros / 1000,
        )

    def failed(self, event):
        self._logger.warning(
            "Command failed",
            command=event.command_name,
            request_id=event.request_id,
            duration_ms=event.duration_micros / 1000,
            failure=str(event.failure),
        )
