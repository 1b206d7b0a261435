# djournal

A segmented, append-only commit log stored on local disk, with optional
time- or count-based segment retention, plus a small asyncio TCP broker
that acknowledges what clients send.

## Storage model

- A log lives in a directory as a sequence of segment files named
  `<base_offset>.log`. The last segment is the active one.
- Each appended record (`djournal.entry.LogEntry`) gets the next global
  offset, a timestamp in whole seconds and a CRC-32 checksum of its key
  followed by its value.
- Before an append, a non-empty active segment that is full (by size) or
  older than its maximum duration is replaced by a new segment starting
  at the next offset. An entry that does not fit in a non-empty segment
  also starts a new one.
- Reopening a directory rebuilds every segment's index and checks offsets
  and checksums. A wrong offset or checksum stops the load with an
  `InitializationError`; a truncated entry at the end of a file is
  ignored with a logged warning. The age of a reopened segment counts
  from the moment it was loaded.

## Using the log

```python
from pathlib import Path

from djournal.commitlog import Log
from djournal.compaction import CompactionOptions, RetainMinSegments

with Log(
    Path("/tmp/journal"),
    max_segment_size=10 * 1024 * 1024,
    max_segment_duration=None,
    compaction_options=CompactionOptions(policy=RetainMinSegments(2)),
) as log:
    offset = log.append(b"user-1", b"signed up")
    entry = log.read(offset)
    print(entry.offset, entry.key, entry.value)

    removed = log.purge_old_segments()
```

- `max_segment_size` is in bytes (default 16 MiB).
- `max_segment_duration` is in seconds; `None` means segments never
  expire by age.
- `Log.read` returns `None` when an offset is not stored in any segment.
- `Log.close()` (or leaving the `with` block) flushes and closes every
  segment file.

Lower-level pieces are available too:

- `djournal.segment.LogSegment`: a single segment file.
- `djournal.scan.scan_segment`: rebuilds a segment's index from its file.
- `djournal.entry`: the record type, its encoding, and the
  `compute_checksum`, `decode_entry` and `read_entry` functions.

## Retention policies

Retention policies live in `djournal.compaction` and are passed in
`CompactionOptions(policy=...)`:

| Policy | Effect of `purge_old_segments()` |
| --- | --- |
| `Disabled()` | Removes nothing. This is the default. |
| `RetainMinSegments(n)` | Removes the oldest segments so that `n` remain; the active segment is always kept. |
| `RetainDuration(seconds)` | Removes segments older than the given age. The active segment is kept unless the period is under one second. |
| `RetainTotalSize(bytes)` | Accepted, but logs a warning and removes nothing. |

`purge_old_segments()` returns how many segment files it removed. The
selection itself is available as
`djournal.retention.select_segments_to_purge(policy, segments)`.

## Errors

Failures raise subclasses of `djournal.errors.JournalError`, among them:

- `SegmentFullError`
- `ChecksumMismatchError`
- `OffsetNotFoundError`
- `DeserializationError`
- `InitializationError`

## Running the broker

```
djournal
```

Options:

- `--address HOST:PORT`: where to listen (default `127.0.0.1:8080`).
- `--log-dir PATH`: directory for segment files (default
  `distributed_journal_broker_main` under the system temporary
  directory).

The log directory is **wiped and recreated** at start. The log uses
10 MiB segments that expire after one day. Every chunk of data a client
sends is answered with `ACK\n`. Stop the broker with Ctrl-C.

From code, `djournal.server.Server(address, log)` can be bound with
`await server.bind()`, run with `await server.run()` and stopped with
`server.close()`.

## What it does not do

- The broker does not write received data into the log, and it offers no
  request to read from it. It only acknowledges each chunk it receives.
- There is no replication and no client library; the log is a local,
  single-process store.
- Size-based retention (`RetainTotalSize`) removes nothing.

## Tests

```
pip install -e .[test]
pytest
```