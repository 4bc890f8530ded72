"""Clients retrieving object schemas from the source and target sides."""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import MetadataError
from ..models.migration import OrgConnection
from ..models.schema import SchemaSnapshot

logger = logging.getLogger(__name__)


class DescribeClient(ABC):
    """
    Base class for schema fetch clients.

    One client serves one side of a migration. Every call returns a new
    SchemaSnapshot for the requested object.
    """

    side: str = "source"

    @abstractmethod
    async def describe_entity(self, entity_name: str) -> SchemaSnapshot:
        """
        Describe an object.

        Args:
            entity_name: API name of the object (e.g. "Account")

        Returns:
            SchemaSnapshot of the object

        Raises:
            MetadataError: if the object cannot be described
        """
        pass


class SalesforceDescribeClient(DescribeClient):
    """
    Describe client for a Salesforce org over the REST API.

    Requests go through a requests session with retry logic. The blocking
    call runs in a worker thread so describe_entity can be awaited.
    """

    def __init__(
        self,
        connection: OrgConnection,
        session: Optional[requests.Session] = None,
        retry_config: Optional[Dict[str, Any]] = None,
        timeout: float = 60.0
    ):
        """
        Initialize the client.

        Args:
            connection: Org connection settings (instance URL, token, API version)
            session: Custom requests session
            retry_config: max_retries and backoff_factor for the HTTP adapter
            timeout: Request timeout in seconds
        """
        self.connection = connection
        self.side = connection.name
        self.timeout = timeout
        self._retry_config = retry_config or {"max_retries": 3, "backoff_factor": 2.0}
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic."""
        session = requests.Session()

        retries = Retry(
            total=self._retry_config.get("max_retries", 3),
            backoff_factor=self._retry_config.get("backoff_factor", 2.0),
            status_forcelist=[429, 500, 502, 503, 504],
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    @property
    def base_url(self) -> str:
        """Get the base URL for API requests."""
        instance_url = (self.connection.instance_url or "").rstrip("/")
        if not instance_url:
            raise MetadataError(f"No instance URL configured for the {self.side} org", side=self.side)
        return f"{instance_url}/services/data/v{self.connection.api_version}"

    def _get_auth_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.connection.access_token:
            headers["Authorization"] = f"Bearer {self.connection.access_token}"
        return headers

    def describe_entity_sync(self, entity_name: str) -> SchemaSnapshot:
        """Describe an object, blocking until the response arrives."""
        url = f"{self.base_url}/sobjects/{entity_name}/describe"

        try:
            response = self._session.get(url, headers=self._get_auth_headers(), timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 404:
                raise MetadataError(
                    f"Object {entity_name} not found in the {self.side} org",
                    entity=entity_name,
                    side=self.side,
                ) from e
            raise MetadataError(
                f"Describe of {entity_name} failed in the {self.side} org: HTTP {status}",
                entity=entity_name,
                side=self.side,
            ) from e
        except requests.exceptions.RequestException as e:
            raise MetadataError(
                f"Describe of {entity_name} failed in the {self.side} org: {e}",
                entity=entity_name,
                side=self.side,
            ) from e

        snapshot = SchemaSnapshot.from_describe(response.json())
        logger.debug(f"Described {entity_name} in the {self.side} org: {len(snapshot.fields)} fields")
        return snapshot

    async def describe_entity(self, entity_name: str) -> SchemaSnapshot:
        return await asyncio.to_thread(self.describe_entity_sync, entity_name)


class StaticDescribeClient(DescribeClient):
    """
    Describe client serving snapshots that are already known.

    Snapshots come from describe JSON files in a directory, from in-memory
    describe payloads or from SchemaSnapshot objects.
    """

    def __init__(
        self,
        snapshots: Optional[Dict[str, SchemaSnapshot]] = None,
        side: str = "source",
        schemas_dir: Optional[str] = None
    ):
        """
        Initialize the client.

        Args:
            snapshots: Snapshots keyed by object name
            side: Side this client serves, used in error messages
            schemas_dir: Directory containing describe JSON files
        """
        self.side = side
        self._snapshots: Dict[str, SchemaSnapshot] = {}
        for snapshot in (snapshots or {}).values():
            self.register_snapshot(snapshot)

        if schemas_dir:
            self.load_from_directory(schemas_dir)

    def register_snapshot(self, snapshot: SchemaSnapshot) -> None:
        """Register a snapshot under its object name."""
        self._snapshots[snapshot.entity_name.lower()] = snapshot

    def register_payload(self, payload: Dict[str, Any]) -> SchemaSnapshot:
        """Register a snapshot built from a describe payload."""
        snapshot = SchemaSnapshot.from_describe(payload)
        self.register_snapshot(snapshot)
        return snapshot

    def load_from_directory(self, directory: str) -> int:
        """
        Load all describe files from a directory.

        Args:
            directory: Path to directory containing describe JSON files

        Returns:
            Number of snapshots loaded
        """
        loaded = 0
        path = Path(directory)

        if not path.exists():
            logger.warning(f"Schema directory does not exist: {directory}")
            return 0

        for file_path in sorted(path.glob("**/*.json")):
            try:
                snapshot = SchemaSnapshot.from_json_file(str(file_path))
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load describe data from {file_path}: {e}")
                continue
            if not snapshot.entity_name:
                logger.warning(f"Describe file without object name skipped: {file_path}")
                continue
            self.register_snapshot(snapshot)
            loaded += 1
            logger.info(f"Loaded describe data: {snapshot.entity_name} from {file_path}")

        return loaded

    def list_entities(self) -> List[str]:
        return [s.entity_name for s in self._snapshots.values()]

    async def describe_entity(self, entity_name: str) -> SchemaSnapshot:
        snapshot = self._snapshots.get(entity_name.lower())
        if snapshot is None:
            raise MetadataError(
                f"Object {entity_name} not found in the {self.side} schemas",
                entity=entity_name,
                side=self.side,
            )
        return snapshot
