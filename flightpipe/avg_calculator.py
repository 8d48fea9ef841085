"""Average of prices gathered from journey savers, with checkpointed state."""

from __future__ import annotations

import logging
import struct
from typing import Protocol, Sequence

from flightpipe.avgconfig import AvgCalculatorConfig
from flightpipe.checkpointer import CheckpointError, CheckpointerHandler
from flightpipe.checkpointfiles import (
    checkpoint_path,
    current_valid_checkpoints,
    delete_tmp_file,
    handle_curr_file,
    handle_old_file,
    handle_tmp_file,
    write_checkpoint,
)
from flightpipe.dynamicmap import DynamicMap
from flightpipe.filemanager import FileReader, IncompleteLineError, path_exists
from flightpipe.message import Message, MessageType
from flightpipe.partial_sum import PartialSum

log = logging.getLogger(__name__)

ACCUM_CHECKPOINT_ID = 0

LOCAL_PRICE = "localPrice"
LOCAL_QUANTITY = "localQuantity"
FINAL_AVG = "finalAvg"

OLD_FILE = "accum_chk_old.csv"
CURR_FILE = "accum_chk_curr.csv"
TMP_FILE = "accum_chk_tmp.csv"

_CHECKPOINT_NAME = ""


def _to_float32(value: float) -> float:
    return struct.unpack(">f", struct.pack(">f", value))[0]


class Producer(Protocol):
    def send(self, message: Message) -> None: ...


class Consumer(Protocol):
    def pop(self) -> Message | None:
        """Next message, or None once the consumer is closed."""


class AvgCalculator:
    """Sums the local prices and row counts of every saver per client.

    Once every saver has reported for a client, the general average is
    sent back to all the savers.
    """

    def __init__(
        self,
        to_journey_savers: Sequence[Producer],
        prices_consumer: Consumer | None = None,
        config: AvgCalculatorConfig | None = None,
        checkpointer: CheckpointerHandler | None = None,
    ) -> None:
        self.to_journey_savers = list(to_journey_savers)
        self.prices_consumer = prices_consumer
        self.config = config
        self.values_received_by_client: dict[str, PartialSum] = {}
        self.checkpointer = checkpointer if checkpointer is not None else CheckpointerHandler()
        self.checkpointer.add_checkpointable(self, ACCUM_CHECKPOINT_ID)

    def calculate_avg_loop(self) -> None:
        """Consume saver results until the consumer closes."""
        log.info("AvgCalculator | Started loop | Waiting for %s savers", len(self.to_journey_savers))
        if self.prices_consumer is None:
            raise ValueError("no consumer to read prices from")
        while True:
            message = self.prices_consumer.pop()
            if message is None:
                log.error("AvgCalculator | Consumer closed when not expected, exiting")
                return
            if message.type_message != MessageType.EOF_FLIGHT_ROWS:
                log.warning("AvgCalculator | Received a message that was not expected | Skipping...")
                continue
            self.handle_eof(message)
            try:
                self.checkpointer.do_checkpoint(ACCUM_CHECKPOINT_ID)
            except CheckpointError as err:
                log.error("AvgCalculator | Error on checkpointing | %s", err)

    def handle_eof(self, message: Message) -> None:
        """Add a saver's local sums to its client's total."""
        current = self.values_received_by_client.setdefault(message.client_id, PartialSum())
        if not message.dyn_maps:
            log.error("AvgCalculator | EOF message without data")
            return
        row = message.dyn_maps[0]
        try:
            prices = row.get_as_float(LOCAL_PRICE)
        except KeyError as err:
            log.error("AvgCalculator | Error getting local price | %s", err)
            return
        try:
            rows = row.get_as_int(LOCAL_QUANTITY)
        except KeyError as err:
            log.error("AvgCalculator | Error getting local quantity | %s", err)
            return
        updated = PartialSum(
            _to_float32(current.sum_of_prices + prices),
            current.sum_of_rows + rows,
            current.num_of_savers + 1,
        )
        self.values_received_by_client[message.client_id] = updated
        log.debug(
            "AvgCalculator | New accum price: %s | New accum count: %s",
            updated.sum_of_prices,
            updated.sum_of_rows,
        )
        if updated.num_of_savers == len(self.to_journey_savers):
            self._on_finished_client(message)

    def calculate_avg(self, sum_of_rows: int, sum_of_prices: float) -> float:
        """Average price as a 32-bit float; zero when there are no rows."""
        if sum_of_rows == 0:
            log.warning("AvgCalculator | Total rows is zero")
            return 0.0
        avg = _to_float32(_to_float32(sum_of_prices) / _to_float32(float(sum_of_rows)))
        log.info(
            "AvgCalculator | Sum of prices: %s | Total rows: %s | Avg: %s",
            sum_of_prices,
            sum_of_rows,
            avg,
        )
        return avg

    def send_to_journey_savers(self, avg: float, message: Message) -> None:
        """Send the average to every saver, each with its own message id."""
        data = [DynamicMap({FINAL_AVG: struct.pack(">f", avg)})]
        for index, channel in enumerate(self.to_journey_savers):
            log.info("AvgCalculator | Sending average for client %s to saver %s", message.client_id, index)
            outgoing = message.derive(
                type_message=MessageType.FINAL_AVG,
                dyn_maps=data,
                message_id=message.message_id + index + 1,
            )
            try:
                channel.send(outgoing)
            except Exception as err:
                log.error("AvgCalculator | Error sending avg | %s", err)

    def _on_finished_client(self, message: Message) -> None:
        log.info("AvgCalculator | Received all local values, calculating average")
        total = self.values_received_by_client[message.client_id]
        avg = self.calculate_avg(total.sum_of_rows, total.sum_of_prices)
        log.info("AvgCalculator | General average is: %s | Sending to journey savers...", avg)
        self.send_to_journey_savers(avg, message)

    def checkpoint_string(self) -> str:
        """One line per client: ``client=prices,rows,savers``."""
        return "".join(
            f"{client}={partial.serialize()}\n"
            for client, partial in self.values_received_by_client.items()
        )

    def do_checkpoint(self, process_id: int, version: int) -> None:
        write_checkpoint(process_id, _CHECKPOINT_NAME, self, TMP_FILE, version)

    def checkpoint_versions(self, process_id: int) -> tuple[int, int]:
        return current_valid_checkpoints(process_id, _CHECKPOINT_NAME, CURR_FILE, OLD_FILE)

    def commit(self, process_id: int) -> None:
        log.debug("AvgCalculator | Committing checkpoint for id: %s", process_id)
        handle_old_file(process_id, _CHECKPOINT_NAME, OLD_FILE)
        handle_curr_file(process_id, _CHECKPOINT_NAME, CURR_FILE, OLD_FILE)
        handle_tmp_file(process_id, _CHECKPOINT_NAME, TMP_FILE, CURR_FILE)

    def abort(self, process_id: int) -> None:
        delete_tmp_file(process_id, _CHECKPOINT_NAME, TMP_FILE)

    def restore_checkpoint(self, version: int, process_id: int) -> None:
        """Load the state from whichever checkpoint file holds the version."""
        files = (
            checkpoint_path(process_id, _CHECKPOINT_NAME, OLD_FILE),
            checkpoint_path(process_id, _CHECKPOINT_NAME, CURR_FILE),
        )
        for file_version, path in zip(self.checkpoint_versions(process_id), files):
            if file_version == version:
                self._read_checkpoint_as_state(path)
                break

    def _read_checkpoint_as_state(self, path: str) -> None:
        if not path_exists(path):
            log.info("AvgCalculator | Does not have a checkpoint: %s", path)
            return
        log.info("AvgCalculator | Restoring checkpoint: %s", path)
        with FileReader(path) as reader:
            reader.skip_header()
            try:
                for line in reader.lines():
                    self._restore_line(line)
            except IncompleteLineError as err:
                log.error("AvgCalculator | Error reading from checkpoint: %s | %s", path, err)
        log.info(
            "AvgCalculator | Restored checkpoint: %s | State: %s",
            path,
            self.values_received_by_client,
        )

    def _restore_line(self, line: str) -> None:
        parts = line.split("=")
        if len(parts) < 2:
            log.error("AvgCalculator | Invalid checkpoint line: %r", line)
            return
        client_id, partial_text = parts[0], parts[1]
        try:
            partial = PartialSum.deserialize(partial_text)
        except ValueError as err:
            log.error("AvgCalculator | Error deserializing partial sum for client %s | %s", client_id, err)
            return
        self.values_received_by_client[client_id] = partial