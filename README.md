# flightpipe

Building blocks for the nodes of a distributed pipeline that processes
flight records. Each node receives batches of rows, transforms or
aggregates them, and passes them on. It keeps its state across restarts
through checkpoints and drops messages it has already seen.

Requires Python 3.10 or later. The only runtime dependency is PyYAML.

## What is inside

- `flightpipe.dynamicmap.DynamicMap` is a row of named columns stored as
  raw bytes. A column is read back with `get_as_int` (big-endian unsigned
  32-bit), `get_as_float` (big-endian 32-bit float), `get_as_string` or
  `get_as_bytes`; a missing column raises `KeyError`. `reduce_to_columns`
  returns a new row with only the given columns, `column_count` counts
  them and `add_column` adds or replaces one.
- `flightpipe.message` holds `Message`, the unit that travels between
  nodes. It carries a `MessageType`, a client id, a message id, a row id
  and a list of rows. `Message.complete(...)` and
  `Message.get_results(...)` build new messages, and `message.derive(...)`
  copies a message with some fields replaced. The module also holds the
  two-byte `UDPPacket` with its `PacketType` values (`ACK`, `ELECTION`,
  `COORDINATOR`, `HEALTH_CHECK`).
- `flightpipe.filters.Filter` compares a column of a row against an
  `int`, a `str` or a `float` with `equals`, `greater`, `less`,
  `greater_or_equals` and `less_or_equals`. The type of the value decides
  how the column is decoded; any other type raises `TypeError`.
- `flightpipe.filemanager` reads and writes files line by line.
  `FileReader.lines()` yields lines without their newline and raises
  `IncompleteLineError` if the file ends mid-line; `FileWriter` appends.
  Both are context managers. `move_files`, `rename_file`, `delete_file`,
  `copy_file` and `path_exists` are small helpers.
- `flightpipe.logconfig.init_logger` configures the root logger from a
  level name such as `"info"` or `"debug"` and raises `ValueError` for an
  unknown one.
- `flightpipe.checkpointfiles` and `flightpipe.checkpointer` give each
  node a two-phase checkpoint. Every participant writes a temporary file.
  `CheckpointerHandler.do_checkpoint` then commits it, rotating it to
  "current" and the previous one to "old", or, if any participant failed,
  aborts and raises `CheckpointError`. On restart `restore_checkpoint`
  picks the newest version that every participant still holds. Checkpoint
  files live in the working directory, named
  `<process id>_<name>_<file>`.
- `flightpipe.duplicates.DuplicatesHandler` remembers, for each client,
  the last row seen in each of the latest 1000 messages. Messages older
  than those are reported as duplicates. It can take part in checkpoints.
- `flightpipe.udp` has `UdpServer` and `UdpClient`. Both send and receive
  fixed-size datagrams; a datagram of another size raises `OSError`, and
  a receive that waits too long (20 s for the server, 0.4 s for the
  client) raises `TimeoutError`.
- `flightpipe.partial_sum`, `flightpipe.avgconfig` and
  `flightpipe.avg_calculator` make up the average-price node. It collects
  partial sums of prices and row counts from every saver of a client.
  Once all of them have reported, it computes the general average and
  sends it back to each saver.

## Examples

Filtering a row:

```python
from flightpipe.dynamicmap import DynamicMap
from flightpipe.filters import Filter

row = DynamicMap({"startingAirport": b"ATL", "totalFare": b"\x42\xc8\x00\x00"})
check = Filter()

check.equals(row, "ATL", "startingAirport")     # True
check.greater(row, 50.0, "totalFare")           # True, the fare is 100.0
```

Dropping repeated messages:

```python
from flightpipe.duplicates import DuplicatesHandler
from flightpipe.message import Message, MessageType

seen = DuplicatesHandler("flights")
msg = Message.complete(MessageType.FLIGHT_ROWS, [], "client-1", 0)

if not seen.is_duplicate(msg):
    seen.save_message_seen(msg)
```

Storing and reading back a partial sum:

```python
from flightpipe.partial_sum import PartialSum

text = "10.5,3,2"
partial = PartialSum.deserialize(text)
assert partial.serialize() == text
```

Computing an average. Any object with a `send(message)` method can stand
for a saver:

```python
import struct

from flightpipe.avg_calculator import AvgCalculator
from flightpipe.dynamicmap import DynamicMap
from flightpipe.message import Message, MessageType


class Saver:
    def __init__(self):
        self.sent = []

    def send(self, message):
        self.sent.append(message)


saver = Saver()
calc = AvgCalculator([saver])

report = DynamicMap({
    "localPrice": struct.pack(">f", 30.0),
    "localQuantity": struct.pack(">I", 3),
})
calc.handle_eof(Message.complete(MessageType.EOF_FLIGHT_ROWS, [report], "client-1", 0))

saver.sent[0].dyn_maps[0].get_as_float("finalAvg")   # 10.0
calc.calculate_avg(0, 10.0)                          # 0.0 when no rows were counted
```

`calculate_avg_loop` does the same for every message taken from a
consumer (any object whose `pop()` returns the next `Message`, or `None`
once closed) and checkpoints the accumulated sums after each one.

## Configuration of the average node

`flightpipe.avgconfig.load_settings` reads an optional `config.yaml` and
overlays environment variables with the `CLI_` prefix: `CLI_ID`,
`CLI_LOG_LEVEL`, `CLI_RABBITMQ_ADDRESS`, `CLI_RABBITMQ_QUEUE_INPUT`,
`CLI_RABBITMQ_QUEUE_OUTPUT`, `CLI_SAVERS_COUNT`, `CLI_NAME` and
`CLI_HEALTHCHECKER_ADDRESSES` (comma separated). `get_config` validates
the result and returns an `AvgCalculatorConfig`. It raises `ConfigError`
when a required value is missing or invalid.

## What this package does not do

- It has no TCP layer: there is no socket wrapper for connecting to,
  serving or reconnecting with other nodes over TCP.
- It does not connect to a message broker. The average node works with
  whatever producer and consumer objects it is given.
- It installs no command. Nothing here starts a node, listens for
  signals or sends heartbeats; an application has to wire the pieces
  together itself.