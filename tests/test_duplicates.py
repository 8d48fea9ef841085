import pytest

from flightpipe.checkpointer import CheckpointerHandler
from flightpipe.checkpointfiles import checkpoint_path
from flightpipe.duplicates import (
    CURR_FILE,
    MAX_MESSAGES_PER_CLIENT,
    TMP_FILE,
    DuplicatesHandler,
)
from flightpipe.message import Message, MessageType


def _msg(client_id, message_id, row_id):
    return Message(MessageType.FLIGHT_ROWS, client_id, message_id, row_id, [])


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_on_arrival_of_new_client_id_it_creates_its_registry():
    detector = DuplicatesHandler("cola")
    assert detector.last_messages_seen == {}

    detector.save_message_seen(_msg("cliente nuevo", 0, 5))

    client = detector.last_messages_seen["cliente nuevo"]
    assert 0 in client
    assert client[0] == 5


def test_should_delete_the_shortest_key_after_reaching_max_messages():
    detector = DuplicatesHandler("cola")
    for i in range(MAX_MESSAGES_PER_CLIENT):
        detector.save_message_seen(_msg("cliente nuevo", i, i))
        assert detector.last_messages_seen["cliente nuevo"][i] == i

    new_msg = _msg("cliente nuevo", MAX_MESSAGES_PER_CLIENT + 1, MAX_MESSAGES_PER_CLIENT + 1)
    assert detector.is_duplicate(new_msg) is False
    detector.save_message_seen(new_msg)

    client = detector.last_messages_seen["cliente nuevo"]
    assert 0 not in client
    assert client[MAX_MESSAGES_PER_CLIENT + 1] == MAX_MESSAGES_PER_CLIENT + 1
    assert len(client) == MAX_MESSAGES_PER_CLIENT


def test_should_return_is_duplicated_when_the_client_message_and_row_exist():
    detector = DuplicatesHandler("cola")
    detector.save_message_seen(_msg("cliente nuevo", 0, 5))
    assert detector.last_messages_seen["cliente nuevo"][0] == 5

    assert detector.is_duplicate(_msg("cliente nuevo", 0, 5)) is True
    assert detector.last_messages_seen["cliente nuevo"][0] == 5


def test_should_be_duplicate_when_message_id_is_less_than_least_key_and_map_is_full():
    detector = DuplicatesHandler("cola")
    for i in range(100, 100 + MAX_MESSAGES_PER_CLIENT):
        detector.save_message_seen(_msg("cliente nuevo", i, i))
        assert detector.last_messages_seen["cliente nuevo"][i] == i

    assert detector.is_duplicate(_msg("cliente nuevo", 99, 99)) is True
    client = detector.last_messages_seen["cliente nuevo"]
    assert 99 not in client
    assert client[100] == 100


def test_later_row_of_seen_message_is_not_duplicate():
    detector = DuplicatesHandler("cola")
    detector.save_message_seen(_msg("c", 3, 2))
    assert detector.is_duplicate(_msg("c", 3, 3)) is False
    assert detector.is_duplicate(_msg("c", 3, 1)) is True


def test_unknown_client_is_not_duplicate_and_gets_registered():
    detector = DuplicatesHandler("cola")
    assert detector.is_duplicate(_msg("otro", 0, 0)) is False
    assert detector.last_messages_seen == {"otro": {}}


def test_checkpoint_string_format():
    detector = DuplicatesHandler("cola")
    detector.save_message_seen(_msg("cliente nuevo", 0, 5))
    detector.save_message_seen(_msg("cliente nuevo", 1, 7))
    assert detector.checkpoint_string() == "cliente nuevo,0=5,1=7\n"


def test_checkpoint_round_trip(workdir):
    detector = DuplicatesHandler("cola")
    detector.save_message_seen(_msg("a", 0, 5))
    detector.save_message_seen(_msg("a", 1, 7))
    detector.save_message_seen(_msg("b", 3, 2))

    detector.do_checkpoint(4, 0)
    detector.commit(4)
    assert detector.checkpoint_versions(4) == (-1, 0)

    restored = DuplicatesHandler("cola")
    restored.restore_checkpoint(0, 4)
    assert restored.last_messages_seen == detector.last_messages_seen


def test_restore_with_unknown_version_leaves_state_empty(workdir):
    detector = DuplicatesHandler("cola")
    detector.save_message_seen(_msg("a", 0, 5))
    detector.do_checkpoint(4, 0)
    detector.commit(4)

    restored = DuplicatesHandler("cola")
    restored.restore_checkpoint(9, 4)
    assert restored.last_messages_seen == {}


def test_abort_discards_tmp_checkpoint(workdir):
    detector = DuplicatesHandler("cola")
    detector.save_message_seen(_msg("a", 0, 5))
    detector.do_checkpoint(4, 0)
    assert (workdir / checkpoint_path(4, "cola", TMP_FILE)).exists()

    detector.abort(4)
    assert not (workdir / checkpoint_path(4, "cola", TMP_FILE)).exists()
    assert detector.checkpoint_versions(4) == (-1, -1)


def test_malformed_entries_are_skipped_on_restore(workdir):
    (workdir / checkpoint_path(4, "cola", CURR_FILE)).write_text("2\na,0=5,bad,1=x,2=3\n")
    restored = DuplicatesHandler("cola")
    restored.restore_checkpoint(2, 4)
    assert restored.last_messages_seen == {"a": {0: 5, 2: 3}}


def test_works_with_checkpointer_handler(workdir):
    handler = CheckpointerHandler()
    detector = DuplicatesHandler("cola")
    handler.add_checkpointable(detector, 1)
    detector.save_message_seen(_msg("a", 0, 5))
    handler.do_checkpoint(1)
    detector.save_message_seen(_msg("a", 1, 6))
    handler.do_checkpoint(1)

    new_handler = CheckpointerHandler()
    recovered = DuplicatesHandler("cola")
    new_handler.add_checkpointable(recovered, 1)
    new_handler.restore_checkpoint()

    assert recovered.last_messages_seen == detector.last_messages_seen
    assert recovered.is_duplicate(_msg("a", 1, 6)) is True