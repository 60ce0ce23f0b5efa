"""Control of the dnsmasq process serving one network."""

from __future__ import annotations

import logging
import signal
import subprocess
from typing import Optional

import psutil

from .dnsmasq_config import ServiceConfig
from .exceptions import ErrorHandler, ServiceError

__all__ = ["DnsmasqService"]

logger = logging.getLogger("dnsname.service")


class DnsmasqService:
    """Start, reload and stop dnsmasq via its PID file."""

    def __init__(self, conf: ServiceConfig, stop_timeout: float = 5) -> None:
        self.conf = conf
        self.stop_timeout = stop_timeout
        self.error_handler = ErrorHandler(logger)

    def pid(self) -> Optional[int]:
        """PID recorded in the PID file, or ``None`` if missing or unreadable."""
        try:
            text = self.conf.pid_file.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        try:
            return int(text)
        except ValueError:
            logger.warning(f"Ignoring malformed pid file {self.conf.pid_file}: {text!r}")
            return None

    def _process(self) -> Optional[psutil.Process]:
        pid = self.pid()
        if pid is None:
            return None
        try:
            process = psutil.Process(pid)
            if not process.is_running() or process.status() == psutil.STATUS_ZOMBIE:
                return None
            return process
        except psutil.NoSuchProcess:
            return None

    def is_running(self) -> bool:
        return self._process() is not None

    def start(self) -> None:
        cmd = [self.conf.binary, "-u", "root", f"--conf-file={self.conf.config_file}"]
        logger.info(f"Starting dnsmasq for {self.conf.network_interface}")
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
            self.error_handler.handle_subprocess_error(
                cmd, e, ServiceError, operation="dnsmasq start"
            )

    def reload(self) -> None:
        """Send SIGHUP so dnsmasq re-reads its hosts file."""
        process = self._process()
        if process is None:
            raise ServiceError(
                f"dnsmasq for {self.conf.network_interface} is not running",
                {"pid_file": str(self.conf.pid_file)},
            )
        try:
            process.send_signal(signal.SIGHUP)
        except psutil.Error as e:
            self.error_handler.log_and_raise(
                ServiceError, f"Unable to reload dnsmasq (pid {process.pid})", e
            )
        logger.debug(f"Sent SIGHUP to dnsmasq pid {process.pid}")

    def stop(self) -> bool:
        """Terminate dnsmasq; return ``False`` if it was not running."""
        process = self._process()
        if process is None:
            return False
        try:
            process.terminate()
            process.wait(timeout=self.stop_timeout)
        except psutil.NoSuchProcess:
            pass
        except psutil.TimeoutExpired:
            logger.warning(f"dnsmasq pid {process.pid} ignored SIGTERM, killing it")
            process.kill()
        except psutil.Error as e:
            self.error_handler.log_and_raise(
                ServiceError, f"Unable to stop dnsmasq (pid {process.pid})", e
            )
        logger.info(f"Stopped dnsmasq for {self.conf.network_interface}")
        return True
