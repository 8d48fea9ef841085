"""Checkpoint files rotated through temporary, current and old versions.

A checkpoint file holds the checkpoint version on its first line followed
by the state written by its owner. Files are named
``<process id>_<name>_<file>`` in the working directory.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

from flightpipe.filemanager import (
    FileReader,
    FileWriter,
    IncompleteLineError,
    delete_file,
    path_exists,
    rename_file,
)

log = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")


class _CheckpointWriter(Protocol):
    def checkpoint_string(self) -> str: ...


def checkpoint_path(process_id: int, name: str, file: str) -> str:
    """Name of the checkpoint file for a process, owner name and file kind."""
    return f"{process_id}_{name}_{file}"


def write_checkpoint(
    process_id: int,
    name: str,
    writer: _CheckpointWriter,
    tmp_file: str,
    version: int,
) -> None:
    """Write the version and the writer's state into the temporary file.

    Raises OSError if the file cannot be written.
    """
    path = checkpoint_path(process_id, name, tmp_file)
    log.debug("CheckpointFileManager | Performing checkpoint: %s", path)
    try:
        with FileWriter(path) as file_writer:
            file_writer.write_line(f"{version}\n")
            file_writer.write_line(writer.checkpoint_string())
    except OSError as err:
        log.error("CheckpointFileManager | Error writing the checkpoint: %s | %s", path, err)
        raise


def handle_tmp_file(process_id: int, name: str, tmp_file: str, curr_file: str) -> None:
    """Promote the temporary checkpoint to the current one."""
    tmp_path = checkpoint_path(process_id, name, tmp_file)
    curr_path = checkpoint_path(process_id, name, curr_file)
    if not path_exists(tmp_path):
        log.error("CheckpointFileManager | Tmp file %s does not exist", tmp_path)
        return
    log.debug("CheckpointFileManager | Renaming TMP checkpoint %s into current %s", tmp_path, curr_path)
    try:
        rename_file(tmp_path, curr_path)
    except OSError as err:
        log.error(
            "CheckpointFileManager | Error renaming TMP checkpoint %s into current %s | %s",
            tmp_path,
            curr_path,
            err,
        )


def handle_curr_file(process_id: int, name: str, curr_file: str, old_file: str) -> None:
    """Demote the current checkpoint to the old one."""
    curr_path = checkpoint_path(process_id, name, curr_file)
    old_path = checkpoint_path(process_id, name, old_file)
    if not path_exists(curr_path):
        log.debug("CheckpointFileManager | Current file %s does not exist", curr_path)
        return
    log.debug("CheckpointFileManager | Renaming current (%s) into old checkpoint (%s)", curr_path, old_path)
    try:
        rename_file(curr_path, old_path)
    except OSError as err:
        log.error("CheckpointFileManager | Error renaming current checkpoint file: %s | %s", curr_path, err)


def handle_old_file(process_id: int, name: str, old_file: str) -> None:
    """Delete the old checkpoint, if there is one."""
    old_path = checkpoint_path(process_id, name, old_file)
    if not path_exists(old_path):
        log.debug("CheckpointFileManager | Old file %s does not exist", old_path)
        return
    log.debug("CheckpointFileManager | Deleting old checkpoint %s", old_path)
    try:
        delete_file(old_path)
    except OSError as err:
        log.error("CheckpointFileManager | Error deleting old file | %s", err)


def delete_tmp_file(process_id: int, name: str, tmp_file: str) -> None:
    """Discard the temporary checkpoint of an aborted checkpoint."""
    tmp_path = checkpoint_path(process_id, name, tmp_file)
    log.debug("CheckpointFileManager | Aborting checkpoint | Deleting TMP file: %s", tmp_path)
    try:
        delete_file(tmp_path)
    except OSError as err:
        log.error("CheckpointFileManager | Error deleting tmp file | %s", err)


def current_valid_checkpoints(
    process_id: int, name: str, curr_file: str, old_file: str
) -> tuple[int, int]:
    """Versions of the old and current checkpoints; -1 where there is none."""
    return (
        _version_from_file(process_id, name, old_file),
        _version_from_file(process_id, name, curr_file),
    )


def _version_from_file(process_id: int, name: str, file: str) -> int:
    path = checkpoint_path(process_id, name, file)
    if not path_exists(path):
        return -1
    try:
        with FileReader(path) as reader:
            first_line = next(reader.lines(), None)
    except (OSError, IncompleteLineError) as err:
        log.error("CheckpointFileManager | Error reading version from %s | %s", path, err)
        return -1
    if first_line is None:
        return -1
    if not _INTEGER.fullmatch(first_line):
        log.error("CheckpointFileManager | Invalid checkpoint version in %s: %r", path, first_line)
        return -1
    return int(first_line)