import dataclasses

import pytest

from flightpipe.dynamicmap import DynamicMap
from flightpipe.message import Message, MessageType, PacketType, UDPPacket


def _message():
    return Message(MessageType.FLIGHT_ROWS, "client", 7, 3, [DynamicMap({"a": b"1"})])


def test_derive_keeps_unchanged_fields():
    original = _message()
    derived = original.derive(type_message=MessageType.EOF_FLIGHT_ROWS)
    assert derived.type_message == MessageType.EOF_FLIGHT_ROWS
    assert derived.client_id == original.client_id
    assert derived.message_id == original.message_id
    assert derived.row_id == original.row_id
    assert derived.dyn_maps == original.dyn_maps


def test_derive_without_data_leaves_original_untouched():
    original = _message()
    derived = original.derive(dyn_maps=[], message_id=10, row_id=1)
    assert derived.dyn_maps == []
    assert derived.message_id == 10
    assert derived.row_id == 1
    assert original.message_id == 7
    assert len(original.dyn_maps) == 1


def test_derive_rejects_unknown_field():
    with pytest.raises(TypeError):
        _message().derive(nonexistent=1)


def test_get_results_message():
    msg = Message.get_results("abc")
    assert msg.type_message == MessageType.GET_RESULTS
    assert msg.client_id == "abc"
    assert msg.dyn_maps == []


def test_complete_message_starts_at_row_zero():
    rows = [DynamicMap({"x": b"y"})]
    msg = Message.complete(MessageType.AIRPORTS, rows, "uuid", 5)
    assert msg.row_id == 0
    assert msg.message_id == 5
    assert msg.client_id == "uuid"
    assert msg.dyn_maps is rows
    assert msg.type_message == MessageType.AIRPORTS


def test_udp_packet_coerces_type():
    packet = UDPPacket(1, 3)
    assert packet.packet_type is PacketType.ELECTION
    assert packet == UDPPacket(PacketType.ELECTION, 3)


def test_udp_packet_is_frozen():
    packet = UDPPacket(PacketType.ACK, 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        packet.node_id = 2
    assert packet.node_id == 1
    assert packet == UDPPacket(PacketType.ACK, 1)


def test_udp_packet_rejects_bad_values():
    with pytest.raises(ValueError):
        UDPPacket(PacketType.ACK, 256)
    with pytest.raises(ValueError):
        UDPPacket(42, 1)