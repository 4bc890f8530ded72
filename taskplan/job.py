"""Migration job - the owning context of the migration tasks."""

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import ConfigurationError, MetadataError, QueryParseError, TaskPlanError
from .models.migration import OrgConnection
from .resources import get_message
from .services.describe_client import DescribeClient, SalesforceDescribeClient
from .services.field_expander import FieldExpander
from .services.relationships import RelationshipExtractor
from .soql import parse_query
from .task import MigrationTask

logger = logging.getLogger(__name__)


class MigrationJob:
    """
    Context shared by the tasks of one migration job.

    Holds:
    - the source and target connections and their describe clients
    - job-wide settings (person accounts, multiselect deny-list)
    - the registry of tasks by object name, filled during setup

    Failures are recorded per object; one failing object never stops the
    processing of the others.
    """

    def __init__(
        self,
        tasks: Optional[Iterable[MigrationTask]] = None,
        source: Optional[OrgConnection] = None,
        target: Optional[OrgConnection] = None,
        person_account_enabled: bool = False,
        multiselect_deny_list: Optional[Iterable[str]] = None,
        source_client: Optional[DescribeClient] = None,
        target_client: Optional[DescribeClient] = None,
        excluded_objects: Optional[Iterable[str]] = None
    ):
        """
        Initialize the job.

        Args:
            tasks: Tasks built from the object configurations
            source: Source side connection
            target: Target side connection
            person_account_enabled: Whether person accounts are enabled
            multiselect_deny_list: Objects whose lookups multiselect keywords skip
            source_client: Describe client for the source side
            target_client: Describe client for the target side
            excluded_objects: Object names skipped during setup
        """
        self.tasks: List[MigrationTask] = list(tasks or [])
        self.excluded_objects = set(excluded_objects or [])
        self.source = source or OrgConnection(name="source")
        self.target = target or OrgConnection(name="target")
        self.person_account_enabled = person_account_enabled
        self.field_expander = FieldExpander(multiselect_deny_list)
        self.source_client = source_client or self._create_client(self.source)
        self.target_client = target_client or self._create_client(self.target)

        self.registry: Dict[str, MigrationTask] = {}
        self.errors: List[Dict[str, Any]] = []

    def _create_client(self, connection: OrgConnection) -> Optional[DescribeClient]:
        if not connection.is_describable:
            return None
        return SalesforceDescribeClient(connection)

    # ------------------------------------------------------------- registry

    def ensure_unique(self, name: str, task: MigrationTask) -> None:
        """
        Check that no other task handles the same object.

        Raises:
            ConfigurationError: if another task is registered under the name
        """
        existing = self.registry.get(name)
        if existing is not None and existing is not task:
            raise ConfigurationError(
                f"{name}: the object is configured more than once",
                entity=name,
            )

    def register_task(self, task: MigrationTask) -> None:
        """
        Add a set-up task to the registry.

        Raises:
            ConfigurationError: if another task already handles the same object
        """
        self.ensure_unique(task.name, task)
        self.registry[task.name] = task

    def get_task(self, name: str) -> Optional[MigrationTask]:
        """Get a task by object name."""
        return self.registry.get(name)

    @property
    def configured_tasks(self) -> List[MigrationTask]:
        return [t for t in self.tasks if t.is_initialized]

    # ------------------------------------------------------------ lifecycle

    def setup(self) -> List[MigrationTask]:
        """
        Set up every task that is not excluded.

        Returns:
            Tasks that were set up successfully
        """
        logger.info("=== SETUP ===")
        for task in self.tasks:
            if task.excluded or self._is_excluded_object(task):
                logger.info(f"Skipping excluded object: {task.query}")
                continue
            try:
                task.setup(self)
            except ConfigurationError as e:
                self._record_error(task, "setup", e)

        return self.configured_tasks

    def _is_excluded_object(self, task: MigrationTask) -> bool:
        if not self.excluded_objects:
            return False
        try:
            name = task.name or parse_query(task.query).sobject
        except QueryParseError:
            # Reported by task.setup
            return False
        return name in self.excluded_objects

    async def describe(self, parallel: bool = False) -> None:
        """
        Describe every set-up task.

        Args:
            parallel: Describe different objects concurrently. The two sides
                of one object are always described one after the other.
        """
        logger.info("=== DESCRIBE ===")
        pending = [t for t in self.configured_tasks if not t.is_described]
        if parallel:
            await asyncio.gather(*(self._describe_task(t) for t in pending))
        else:
            for task in pending:
                await self._describe_task(task)

    async def _describe_task(self, task: MigrationTask) -> None:
        try:
            await task.describe()
        except (ConfigurationError, MetadataError) as e:
            self._record_error(task, "describe", e)

    async def plan(self, parallel: bool = False) -> Dict[str, Any]:
        """Set up and describe all tasks, then return the job report."""
        self.setup()
        await self.describe(parallel=parallel)
        return self.to_dict()

    def dependency_edges(self) -> List[Tuple[str, str]]:
        """(parent, child) object pairs between the described tasks."""
        return RelationshipExtractor.dependency_edges(self.registry)

    def _record_error(self, task: MigrationTask, phase: str, error: TaskPlanError) -> None:
        entity = task.name or getattr(error, "entity", None) or task.query
        key = "taskSetupFailed" if phase == "setup" else "taskDescribeFailed"
        logger.error(get_message(key, entity, error))
        self.errors.append({
            "entity": entity,
            "phase": phase,
            "error_type": type(error).__name__,
            "error": str(error),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    # -------------------------------------------------------- serialization

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation of the resolved job."""
        return {
            "source": self.source.to_dict(),
            "target": self.target.to_dict(),
            "person_account_enabled": self.person_account_enabled,
            "tasks": [t.to_dict() for t in self.configured_tasks],
            "dependencies": [
                {"parent": parent, "child": child} for parent, child in self.dependency_edges()
            ],
            "errors": self.errors,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        source_client: Optional[DescribeClient] = None,
        target_client: Optional[DescribeClient] = None
    ) -> "MigrationJob":
        """
        Create from the job configuration.

        Access tokens missing from the configuration are read from the
        SOURCE_ACCESS_TOKEN and TARGET_ACCESS_TOKEN environment variables.
        """
        source = OrgConnection.from_dict("source", data.get("source"))
        target = OrgConnection.from_dict("target", data.get("target"))
        if source.is_describable and not source.access_token:
            source.access_token = os.environ.get("SOURCE_ACCESS_TOKEN")
        if target.is_describable and not target.access_token:
            target.access_token = os.environ.get("TARGET_ACCESS_TOKEN")

        return cls(
            tasks=[MigrationTask.from_dict(o) for o in data.get("objects", [])],
            source=source,
            target=target,
            person_account_enabled=data.get("isPersonAccountEnabled", False),
            multiselect_deny_list=data.get("multiselectDenyList"),
            source_client=source_client,
            target_client=target_client,
            excluded_objects=data.get("excludedObjects"),
        )

    @classmethod
    def from_json_file(cls, file_path: str, **kwargs) -> "MigrationJob":
        """Load a job configuration from a JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data, **kwargs)
