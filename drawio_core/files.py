"""
Graph file manager - loading and saving .drawio.svg diagram files.

This module implements:
- Loading a Graph from the content attribute of an SVG container
- Saving a Graph, creating missing directories, via temp file + rename
- Per-path transactions (lock, load, mutate, save) for tool calls
- Diagnostic statistics that never raise
"""

import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from . import container
from .errors import MalformedDocumentError
from .graph import Graph
from .models import DiagramStats
from .serializer import from_xml, to_xml

logger = logging.getLogger(__name__)


class GraphFileManager:
    """
    Reads and writes diagrams stored in .drawio.svg files.

    Paths are resolved against the current working directory. Overlapping
    transactions on the same path inside this process are serialized;
    other processes writing the same file still race (last writer wins).
    """

    def __init__(self):
        # path -> (lock, number of transactions holding or waiting for it)
        self._locks: dict[Path, tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _locked(self, path: Path) -> Iterator[None]:
        with self._locks_guard:
            lock, users = self._locks.get(path, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[path] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                _, users = self._locks[path]
                if users == 1:
                    del self._locks[path]
                else:
                    self._locks[path] = (lock, users - 1)

    # --- File Operations ---

    def load(self, file_path: str | Path) -> Graph:
        """Load a diagram from a .drawio.svg file."""
        path = Path(file_path).resolve()
        if not path.exists():
            raise FileNotFoundError(f"Diagram file not found: {path}")

        text = path.read_text(encoding="utf-8")
        xml = container.extract(text)
        if xml is None:
            raise MalformedDocumentError(f"No diagram content found in {path}")
        return from_xml(xml)

    def save(self, graph: Graph, file_path: str | Path) -> Path:
        """
        Save a diagram to a .drawio.svg file.

        Missing parent directories are created. The document is written to a
        temporary file in the same directory and renamed over the target.
        """
        path = Path(file_path).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)

        document = container.embed(to_xml(graph), container.render_document(graph))

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(document)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("Saved diagram to %s", path)
        return path

    @contextmanager
    def transaction(self, file_path: str | Path) -> Iterator[Graph]:
        """
        Load a diagram, hand it to the caller, and save it if the block succeeds.

        An exception inside the block leaves the file untouched.
        """
        path = Path(file_path).resolve()
        with self._locked(path):
            graph = self.load(path)
            yield graph
            self.save(graph, path)

    # --- Diagnostics ---

    def get_diagram_stats(self, file_path: str | Path) -> DiagramStats:
        """Count nodes and edges in a file; any failure reports zeros."""
        try:
            return self.load(file_path).stats()
        except Exception as e:
            logger.debug("Could not read stats from %s: %s", file_path, e)
            return DiagramStats()


# Default instance shared by the tool layer
file_manager = GraphFileManager()
