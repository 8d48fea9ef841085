"""Line-oriented file reading and writing plus small file utilities."""

from __future__ import annotations

import logging
import os
import shutil
from typing import Iterable, Iterator

log = logging.getLogger(__name__)


class IncompleteLineError(ValueError):
    """The file ended with a line that has no terminating newline."""

    def __init__(self, line: str) -> None:
        super().__init__(f"last line: {line}")
        self.line = line


class FileReader:
    """Reads a file line by line; every line must end with a newline."""

    def __init__(self, filename: str | os.PathLike) -> None:
        self.filename = os.fspath(filename)
        try:
            self._file = open(self.filename, encoding="utf-8", newline="")
        except OSError as err:
            log.error("FileReader | open_file failed | file_name: %s | %s", self.filename, err)
            raise

    def __enter__(self) -> FileReader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __iter__(self) -> Iterator[str]:
        return self.lines()

    def lines(self) -> Iterator[str]:
        """Yield each remaining line without its newline.

        Raises IncompleteLineError if the file ends mid-line.
        """
        for raw in self._file:
            if not raw.endswith("\n"):
                raise IncompleteLineError(raw)
            yield raw[:-1]

    def skip_header(self) -> None:
        """Consume the first line, if any."""
        self._file.readline()

    def close(self) -> None:
        log.debug("FileManager | closing file | file_name: %s", self.filename)
        self._file.close()


class FileWriter:
    """Appends text to a file, creating it if needed."""

    def __init__(self, filename: str | os.PathLike) -> None:
        self.filename = os.fspath(filename)
        try:
            self._file = open(self.filename, "a", encoding="utf-8", newline="")
        except OSError as err:
            log.error("FileWriter | open_file failed | file_name: %s | %s", self.filename, err)
            raise

    def __enter__(self) -> FileWriter:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def write_line(self, line: str) -> None:
        """Write the text as given; the caller supplies any newline."""
        self._file.write(line)

    def close(self) -> None:
        log.debug("FileManager | closing file | file_name: %s", self.filename)
        self._file.close()


def move_files(files: Iterable[str], folder_name: str) -> None:
    """Move the files into the folder, creating it if missing."""
    try:
        os.mkdir(folder_name)
    except FileExistsError:
        pass
    except OSError as err:
        log.error("FileMover | Error creating directory %s | %s", folder_name, err)
        raise
    for file in files:
        target = os.path.join(folder_name, file)
        try:
            os.rename(file, target)
        except OSError as err:
            log.error("FileMover | Error moving file to '%s' | %s", target, err)
            raise


def rename_file(file: str, new_name: str) -> None:
    try:
        os.replace(file, new_name)
    except OSError as err:
        log.error("FileRenamer | Error renaming file | %s", err)
        raise


def delete_file(file: str) -> None:
    try:
        os.remove(file)
    except OSError as err:
        log.error("FileDeleter | Error deleting file | %s", err)
        raise


def path_exists(path: str) -> bool:
    return os.path.exists(path)


def copy_file(file_name: str, new_file_name: str) -> None:
    try:
        shutil.copyfile(file_name, new_file_name)
    except OSError as err:
        log.error("FileCopier | Error copying file | %s", err)
        raise