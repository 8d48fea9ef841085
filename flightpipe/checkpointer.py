"""Two-phase checkpointing coordinated across several participants."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Protocol, Sequence

log = logging.getLogger(__name__)


class Checkpointable(Protocol):
    """A participant whose state is saved and restored by version."""

    def do_checkpoint(self, process_id: int, version: int) -> None:
        """Write a tentative checkpoint; raise to veto it."""

    def restore_checkpoint(self, version: int, process_id: int) -> None:
        """Load the state saved under the given version."""

    def checkpoint_versions(self, process_id: int) -> tuple[int, int]:
        """Versions available on disk; -1 where there is none."""

    def commit(self, process_id: int) -> None:
        """Make the tentative checkpoint the current one."""

    def abort(self, process_id: int) -> None:
        """Discard the tentative checkpoint."""


class CheckpointError(Exception):
    """A checkpoint was aborted because a participant failed."""


class CheckpointerHandler:
    """Groups checkpointables by id and checkpoints each group atomically."""

    def __init__(self) -> None:
        self._checkpointables: dict[int, list[Checkpointable]] = {}
        self._versions: dict[int, int] = {}

    def add_checkpointable(self, checkpointable: Checkpointable, checkpoint_id: int) -> None:
        if checkpoint_id not in self._checkpointables:
            self._checkpointables[checkpoint_id] = []
            self._versions[checkpoint_id] = 0
        self._checkpointables[checkpoint_id].append(checkpointable)

    def do_checkpoint(self, checkpoint_id: int) -> None:
        """Checkpoint every member of the group, committing only if all succeed.

        Raises CheckpointError after aborting when any member fails.
        """
        members = self._checkpointables.get(checkpoint_id, [])
        version = self._versions.get(checkpoint_id, 0)
        log.debug("CheckpointerHandler | Checkpointing %s with version %s", checkpoint_id, version)

        failed = False
        for member in members:
            try:
                member.do_checkpoint(checkpoint_id, version)
            except Exception as err:
                log.error("CheckpointerHandler | Error trying to checkpoint | %s", err)
                failed = True

        if not failed:
            self._versions[checkpoint_id] = version + 1
            for member in members:
                member.commit(checkpoint_id)
            log.debug("CheckpointerHandler | Committed checkpoint for %s", checkpoint_id)
            return

        for member in members:
            member.abort(checkpoint_id)
        log.debug("CheckpointerHandler | Aborted checkpoint for %s", checkpoint_id)
        raise CheckpointError("error trying to do checkpoint, operation was aborted")

    def restore_checkpoint(self) -> None:
        """Restore every group to the newest version all its members hold."""
        for checkpoint_id, members in self._checkpointables.items():
            version = _version_to_restore(members, checkpoint_id)
            self._versions[checkpoint_id] = version + 1
            if version == -1:
                log.info("CheckpointerHandler | No valid checkpoint to restore for %s", checkpoint_id)
                continue
            log.info("CheckpointerHandler | ID: %s | Using checkpoint %s", checkpoint_id, version)
            for member in members:
                member.restore_checkpoint(version, checkpoint_id)


def _version_to_restore(members: Sequence[Checkpointable], checkpoint_id: int) -> int:
    available = Counter(
        version for member in members for version in member.checkpoint_versions(checkpoint_id)
    )
    candidates = [
        version
        for version, count in available.items()
        if version > -1 and count == len(members)
    ]
    return max(candidates, default=-1)