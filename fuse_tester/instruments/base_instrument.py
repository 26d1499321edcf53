"""Base class for SCPI instruments reached over VISA."""

import logging

import pyvisa.errors
import pyvisa.resources

from .errors import InstrumentFault

logger = logging.getLogger(__name__)


class BaseInstrument:
    """
    Common SCPI plumbing: connection, write/read/query and *IDN? parsing.

    VISA I/O errors are re-raised as InstrumentFault so callers only need
    to know the instrument error taxonomy.
    """

    def __init__(
        self,
        name: str,
        resource_address: str,
        timeout_ms: int = 5000,
        read_termination: str | None = "\n",
        write_termination: str | None = "\n",
    ):
        """
        Initialize instrument.

        Args:
            name: Human-readable instrument name
            resource_address: VISA resource address
            timeout_ms: Communication timeout in milliseconds
            read_termination: Character(s) appended to reads, or None for no termination
            write_termination: Character(s) appended to writes, or None for no termination
        """
        self._name = name
        self._resource_address = resource_address
        self._timeout_ms = timeout_ms
        self._read_termination = read_termination
        self._write_termination = write_termination
        self._resource: pyvisa.resources.MessageBasedResource | None = None
        self._identification: str | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def resource_address(self) -> str:
        return self._resource_address

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def read_termination(self) -> str | None:
        return self._read_termination

    @property
    def write_termination(self) -> str | None:
        return self._write_termination

    @property
    def is_connected(self) -> bool:
        return self._resource is not None

    @property
    def identification(self) -> str | None:
        """Raw *IDN? response captured on connect."""
        return self._identification

    # Connection

    def connect(self, resource: pyvisa.resources.MessageBasedResource) -> None:
        """
        Attach an opened VISA resource and identify the instrument.

        Args:
            resource: Resource from VISAConnection.open_resource
        """
        if self._resource is not None:
            logger.warning("%s: Already connected", self._name)
            return

        self._resource = resource
        try:
            self._identification = self.query("*IDN?")
        except Exception:
            self._resource = None
            try:
                resource.close()
            except pyvisa.errors.VisaIOError as e:
                logger.warning("%s: Error closing resource: %s", self._name, e)
            raise
        logger.info("%s: Connected to %s", self._name, self._identification)

    def disconnect(self) -> None:
        """Close the VISA resource."""
        if self._resource is None:
            return
        try:
            self._resource.close()
        except pyvisa.errors.VisaIOError as e:
            logger.warning("%s: Error closing resource: %s", self._name, e)
        finally:
            self._resource = None
        logger.info("%s: Disconnected", self._name)

    # Raw I/O

    def write(self, command: str) -> None:
        resource = self._check_connected()
        logger.debug("%s: write %r", self._name, command)
        try:
            resource.write(command)
        except pyvisa.errors.VisaIOError as e:
            raise InstrumentFault(f"{self._name}: write '{command}' failed: {e}") from e

    def read(self) -> str:
        resource = self._check_connected()
        try:
            return resource.read().strip()
        except pyvisa.errors.VisaIOError as e:
            raise InstrumentFault(f"{self._name}: read failed: {e}") from e

    def query(self, command: str) -> str:
        resource = self._check_connected()
        logger.debug("%s: query %r", self._name, command)
        try:
            return resource.query(command).strip()
        except pyvisa.errors.VisaIOError as e:
            raise InstrumentFault(f"{self._name}: query '{command}' failed: {e}") from e

    def query_float(self, command: str) -> float:
        """Query and parse a numeric response."""
        response = self.query(command)
        try:
            return float(response)
        except ValueError as e:
            raise InstrumentFault(
                f"{self._name}: unexpected response to '{command}': {response!r}"
            ) from e

    # Common commands

    def reset(self) -> None:
        logger.info("%s: Reset", self._name)
        self.write("*RST")

    def operation_complete(self) -> bool:
        return self.query("*OPC?") == "1"

    # Identification

    def manufacturer(self) -> str:
        return self._idn_field(0)

    def model(self) -> str:
        return self._idn_field(1)

    def serial(self) -> str:
        return self._idn_field(2)

    def firmware(self) -> str:
        return self._idn_field(3)

    def formatted_identification(self) -> str:
        return (
            f"Manufacturer: {self.manufacturer()}\n"
            f"Model: {self.model()}\n"
            f"Serial: {self.serial()}\n"
            f"Firmware: {self.firmware()}"
        )

    def _idn_field(self, index: int) -> str:
        if not self._identification:
            return "Unknown"
        fields = [f.strip() for f in self._identification.split(",")]
        if index < len(fields) and fields[index]:
            return fields[index]
        return "Unknown"

    def _check_connected(self) -> pyvisa.resources.MessageBasedResource:
        if self._resource is None:
            raise InstrumentFault(f"{self._name}: Not connected")
        return self._resource
