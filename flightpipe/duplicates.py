"""Detection of messages and rows already seen, with checkpointing."""

from __future__ import annotations

import logging

from flightpipe.checkpointfiles import (
    checkpoint_path,
    current_valid_checkpoints,
    delete_tmp_file,
    handle_curr_file,
    handle_old_file,
    handle_tmp_file,
    write_checkpoint,
)
from flightpipe.filemanager import FileReader, IncompleteLineError, path_exists
from flightpipe.message import Message

log = logging.getLogger(__name__)

MAX_MESSAGES_PER_CLIENT = 1000

OLD_FILE = "duplicates_chk_old.csv"
CURR_FILE = "duplicates_chk_curr.csv"
TMP_FILE = "duplicates_chk_tmp.csv"


class DuplicatesHandler:
    """Remembers the last row seen of each message of each client.

    Only the newest MAX_MESSAGES_PER_CLIENT messages are kept per client;
    anything older than those is treated as a duplicate.
    """

    def __init__(self, queue_name: str) -> None:
        self.queue_name = queue_name
        # client id -> message id -> last row id
        self.last_messages_seen: dict[str, dict[int, int]] = {}

    def _length_and_smallest_key(self, client_id: str) -> tuple[int, int]:
        messages = self.last_messages_seen.get(client_id, {})
        return len(messages), min(messages, default=-1)

    def _evict_oldest(self, client_id: str) -> None:
        length, smallest = self._length_and_smallest_key(client_id)
        if length == MAX_MESSAGES_PER_CLIENT:
            del self.last_messages_seen[client_id][smallest]

    def is_duplicate(self, message: Message) -> bool:
        """Whether the message's row was already seen."""
        messages = self.last_messages_seen.setdefault(message.client_id, {})
        length, smallest = self._length_and_smallest_key(message.client_id)
        if length == MAX_MESSAGES_PER_CLIENT and message.message_id < smallest:
            return True
        last_row = messages.get(message.message_id)
        return last_row is not None and last_row >= message.row_id

    def save_message_seen(self, message: Message) -> None:
        """Record the message's row as the last one seen for it."""
        messages = self.last_messages_seen.setdefault(message.client_id, {})
        if message.message_id not in messages:
            self._evict_oldest(message.client_id)
        messages[message.message_id] = message.row_id

    def checkpoint_string(self) -> str:
        """One line per client: ``client,msg=row,msg=row``."""
        return "".join(
            client_id
            + "".join(f",{message_id}={row_id}" for message_id, row_id in messages.items())
            + "\n"
            for client_id, messages in self.last_messages_seen.items()
        )

    def do_checkpoint(self, process_id: int, version: int) -> None:
        write_checkpoint(process_id, self.queue_name, self, TMP_FILE, version)

    def commit(self, process_id: int) -> None:
        log.debug("DuplicatesHandler | Committing checkpoint for id: %s_%s", process_id, self.queue_name)
        handle_old_file(process_id, self.queue_name, OLD_FILE)
        handle_curr_file(process_id, self.queue_name, CURR_FILE, OLD_FILE)
        handle_tmp_file(process_id, self.queue_name, TMP_FILE, CURR_FILE)

    def abort(self, process_id: int) -> None:
        delete_tmp_file(process_id, self.queue_name, TMP_FILE)

    def checkpoint_versions(self, process_id: int) -> tuple[int, int]:
        return current_valid_checkpoints(process_id, self.queue_name, CURR_FILE, OLD_FILE)

    def restore_checkpoint(self, version: int, process_id: int) -> None:
        """Load the state from whichever checkpoint file holds the version."""
        files = (
            checkpoint_path(process_id, self.queue_name, OLD_FILE),
            checkpoint_path(process_id, self.queue_name, CURR_FILE),
        )
        for file_version, path in zip(self.checkpoint_versions(process_id), files):
            if file_version == version:
                self._read_checkpoint_as_state(path)
                break

    def _read_checkpoint_as_state(self, path: str) -> None:
        if not path_exists(path):
            log.info("DuplicatesHandler | Does not have a checkpoint: %s", path)
            return
        log.info("DuplicatesHandler | Restoring checkpoint: %s", path)
        with FileReader(path) as reader:
            reader.skip_header()
            try:
                for line in reader.lines():
                    self._restore_line(path, line)
            except IncompleteLineError as err:
                log.error("DuplicatesHandler | Error reading from checkpoint: %s | %s", path, err)
        log.info("DuplicatesHandler | Restored checkpoint: %s | State: %s", path, self.last_messages_seen)

    def _restore_line(self, path: str, line: str) -> None:
        client_id, *entries = line.split(",")
        messages: dict[int, int] = {}
        self.last_messages_seen[client_id] = messages
        for entry in entries:
            message_id, sep, row_id = entry.partition("=")
            try:
                if not sep:
                    raise ValueError(f"missing '=' in {entry!r}")
                messages[int(message_id)] = int(row_id)
            except ValueError as err:
                log.error("DuplicatesHandler | On restoring %s | Invalid entry %r | %s", path, entry, err)