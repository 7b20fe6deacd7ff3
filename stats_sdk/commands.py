"""
Operator commands for the statistics plugin (``stats send``, ``stats status``).
"""
import logging
from typing import Any, Callable, Dict, Optional

from .classifier import ACCEPTED_STATUS, describe_response
from .plugin import StatisticsPlugin

logger = logging.getLogger(__name__)

Reply = Callable[[str, str], None]


def _ignore_reply(level: str, message: str) -> None:
    pass


class StatsCommandExecutor:
    """Executes stats commands issued by an operator."""

    def __init__(self, plugin: StatisticsPlugin):
        """
        Initialize the command executor.

        Args:
            plugin (StatisticsPlugin): The plugin the commands act on
        """
        self.plugin = plugin
        self.command_handlers = {
            "send": self._handle_send,
            "status": self._handle_status,
        }

    def execute_command(self, command: str, reply: Optional[Reply] = None) -> Dict[str, Any]:
        """
        Execute a command.

        Args:
            command (str): The command to execute
            reply (callable, optional): Receives ``(level, message)`` for every
                message meant for the operator, including late ones

        Returns:
            dict: Immediate result of the command
        """
        reply = reply or _ignore_reply
        if command not in self.command_handlers:
            logger.warning("Unknown command: %s", command)
            return {
                "status": "error",
                "message": f"Unknown command: {command}"
            }

        try:
            handler = self.command_handlers[command]
            return handler(reply)
        except Exception as e:
            logger.error("Error executing command %s: %s", command, str(e))
            return {
                "status": "error",
                "message": f"Error executing command: {str(e)}"
            }

    def _handle_send(self, reply: Reply) -> Dict[str, Any]:
        """
        Trigger a telemetry send in the background and report the outcome.

        Args:
            reply (callable): Operator reply channel

        Returns:
            dict: Pending status, the outcome follows through ``reply``
        """
        reply("info", "Triggering telemetry send...")
        future = self.plugin.send_once_now_async()

        def on_done(done):
            error = done.exception()
            if error is not None:
                logger.warning("Manual stats send failed: %s", error)
                reply("error", f"Telemetry send failed: {str(error) or error.__class__.__name__}")
                return

            result = done.result()
            if result.status_code == ACCEPTED_STATUS:
                reply("success", "Telemetry accepted (204).")
                return

            message = f"Telemetry returned HTTP {result.status_code}"
            body = describe_response(result)
            if body:
                message += f": {body}"
            reply("warning", message)

        future.add_done_callback(on_done)
        return {
            "status": "pending",
            "message": "Telemetry send triggered"
        }

    def _handle_status(self, reply: Reply) -> Dict[str, Any]:
        reporter = self.plugin.reporter
        if reporter is None or not reporter.running:
            message = "Statistics reporter is not running"
        else:
            message = (f"Statistics reporter is running: vanityUrl={reporter.config.vanity_url}, "
                       f"interval={reporter.config.interval_seconds}s")
        reply("info", message)
        return {
            "status": "success",
            "message": message
        }
