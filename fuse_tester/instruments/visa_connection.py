"""VISA resource manager wrapper."""

import logging
from pathlib import Path

import pyvisa
import pyvisa.resources

logger = logging.getLogger(__name__)


class VISAConnection:
    """
    Owns the PyVISA resource manager.

    In simulation mode the PyVISA-sim backend is loaded with the given YAML
    file; otherwise visa_backend selects the backend ("" for the default).
    """

    def __init__(
        self,
        simulation_mode: bool = False,
        simulation_file: str | Path = "",
        visa_backend: str = "",
    ):
        self._simulation_mode = simulation_mode
        self._simulation_file = Path(simulation_file) if simulation_file else None
        self._visa_backend = visa_backend
        self._resource_manager: pyvisa.ResourceManager | None = None

    @property
    def is_open(self) -> bool:
        return self._resource_manager is not None

    @property
    def active_backend(self) -> str:
        """Name of the backend in use: "sim", the configured backend or "default"."""
        if self._simulation_mode:
            return "sim"
        return self._visa_backend or "default"

    def open(self) -> None:
        """Create the resource manager if it is not already open."""
        if self._resource_manager is not None:
            return

        if self._simulation_mode:
            backend = f"{self._simulation_file}@sim"
        elif self._visa_backend:
            backend = f"@{self._visa_backend}"
        else:
            backend = ""

        logger.info("Opening VISA resource manager (backend: %s)", self.active_backend)
        self._resource_manager = pyvisa.ResourceManager(backend)

    def close(self) -> None:
        """Close the resource manager."""
        if self._resource_manager is None:
            return
        try:
            self._resource_manager.close()
        finally:
            self._resource_manager = None
        logger.info("VISA resource manager closed")

    def list_resources(self) -> tuple[str, ...]:
        """List available resource addresses."""
        return self._require_open().list_resources()

    def open_resource(
        self,
        resource_address: str,
        timeout_ms: int = 5000,
        read_termination: str | None = "\n",
        write_termination: str | None = "\n",
    ) -> pyvisa.resources.MessageBasedResource:
        """
        Open a message-based resource.

        Args:
            resource_address: VISA address
            timeout_ms: I/O timeout in milliseconds
            read_termination: Read termination, or None to keep the resource default
            write_termination: Write termination, or None to keep the resource default

        Returns:
            The opened resource
        """
        resource = self._require_open().open_resource(resource_address)
        resource.timeout = timeout_ms
        if read_termination is not None:
            resource.read_termination = read_termination
        if write_termination is not None:
            resource.write_termination = write_termination
        logger.debug("Opened resource %s", resource_address)
        return resource

    def _require_open(self) -> pyvisa.ResourceManager:
        if self._resource_manager is None:
            raise RuntimeError("VISA resource manager is not open")
        return self._resource_manager

    def __enter__(self) -> "VISAConnection":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
