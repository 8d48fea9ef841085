"""Messages exchanged through the pipeline and UDP control packets."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import IntEnum

from flightpipe.dynamicmap import DynamicMap


class MessageType(IntEnum):
    AIRPORTS = 0
    EOF_AIRPORTS = 1
    FLIGHT_ROWS = 2
    EOF_FLIGHT_ROWS = 3
    GET_RESULTS = 4
    LATER = 5
    EOF_GETTER = 6
    FINAL_AVG = 7
    HEARTBEAT = 8
    EOF_ACK = 9


@dataclass
class Message:
    """A batch of rows sent on behalf of a client."""

    type_message: int
    client_id: str = ""
    message_id: int = 0
    row_id: int = 0
    dyn_maps: list[DynamicMap] = field(default_factory=list)

    def derive(self, **kwargs) -> Message:
        """Return a copy of this message with the given fields replaced."""
        return dataclasses.replace(self, **kwargs)

    @classmethod
    def get_results(cls, client_id: str) -> Message:
        """A request for the results of a client."""
        return cls(MessageType.GET_RESULTS, client_id)

    @classmethod
    def complete(
        cls,
        type_message: int,
        dyn_maps: list[DynamicMap],
        client_id: str,
        message_id: int,
    ) -> Message:
        """A message built from scratch, starting at row zero."""
        return cls(type_message, client_id, message_id, 0, dyn_maps)


class PacketType(IntEnum):
    ACK = 0
    ELECTION = 1
    COORDINATOR = 2
    HEALTH_CHECK = 3


SIZE_UDP_PACKET = 2


@dataclass(frozen=True)
class UDPPacket:
    """A two-byte control packet between health checkers."""

    packet_type: PacketType
    node_id: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "packet_type", PacketType(self.packet_type))
        if not 0 <= self.node_id <= 0xFF:
            raise ValueError(f"node id out of range: {self.node_id}")