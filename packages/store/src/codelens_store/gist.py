"""GistStore — zero-infrastructure shared storage via a GitHub Gist.

Data format: a single JSON file named `codelens_store.json` inside the Gist,
holding the four flat collections keyed by entity id (see MemoryStore). Every
read fetches the file; every mutation rewrites it whole.

Unlike a history log, this store backs live review state, so failures are
raised as PersistenceError instead of being logged and dropped.
"""

from __future__ import annotations

import json
import logging

from codelens_store.base import PersistenceError
from codelens_store.memory import COLLECTIONS, MemoryStore, empty_collections

logger = logging.getLogger(__name__)

_GIST_FILENAME = "codelens_store.json"


class GistStore(MemoryStore):
    """Stores every entity in a GitHub Gist as one JSON document.

    Suitable for a single user syncing a few hundred sessions between
    machines. The Gist ID is stored in .codelens.yml under `gist_id`.
    """

    def __init__(self, gist_id: str, token: str):
        try:
            from github import Github
        except ImportError:
            raise ImportError("PyGithub is required for GistStore. Install codelens.")
        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def _load(self) -> dict[str, dict[str, dict]]:
        try:
            gist = self._get_gist()
        except Exception as e:
            logger.error("GistStore could not fetch gist %s: %s", self._gist_id, e)
            raise PersistenceError(f"Could not read Gist {self._gist_id} ({type(e).__name__}: {e})") from e
        return self._read_collections(gist)

    def _flush(self, data: dict[str, dict[str, dict]]) -> None:
        from github import InputFileContent

        try:
            gist = self._get_gist()
            gist.edit(files={_GIST_FILENAME: InputFileContent(json.dumps(data, indent=2))})
        except Exception as e:
            logger.error("GistStore could not write gist %s: %s", self._gist_id, e)
            raise PersistenceError(f"Could not write Gist {self._gist_id} ({type(e).__name__}: {e})") from e

    @staticmethod
    def _read_collections(gist) -> dict[str, dict[str, dict]]:
        """Read the current document from the Gist file, or start an empty one."""
        file_obj = gist.files.get(_GIST_FILENAME)
        if file_obj is None:
            return empty_collections()
        try:
            raw = json.loads(file_obj.content) or {}
        except (json.JSONDecodeError, AttributeError) as e:
            raise PersistenceError(f"{_GIST_FILENAME} is not valid JSON: {e}") from e
        return {name: dict(raw.get(name) or {}) for name in COLLECTIONS}
