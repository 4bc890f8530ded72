"""Migration task descriptor - one configured object of a migration job."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Union

from .constants import (
    DEFAULT_EXTERNAL_ID_FIELD,
    PERSON_ACCOUNT_FIELD,
    PERSON_ACCOUNT_OBJECTS,
    RECORD_ID_FIELD,
    RECORD_TYPE_ID_FIELD,
    SPECIAL_OBJECTS,
    complex_field,
    is_complex_field,
)
from .errors import ConfigurationError, MetadataError, QueryParseError
from .models.field import FieldDescriptor
from .models.migration import MockField, MultiselectPattern, Operation
from .models.schema import SchemaSnapshot
from .resources import get_message
from .services.describe_client import DescribeClient
from .services.query_resolver import QueryResolver
from .services.relationships import RelationshipExtractor
from .services.validator import FieldValidator, ValidationIssue
from .soql import (
    Query,
    compose_query,
    compose_where_clause,
    distinct_fields,
    field_ref,
    parse_query,
)

if TYPE_CHECKING:
    from .job import MigrationJob

logger = logging.getLogger(__name__)


def _uses_person_account_field(job: Optional["MigrationJob"], name: str, operation: Any) -> bool:
    return (job is not None
            and job.person_account_enabled
            and operation != Operation.DELETE
            and name in PERSON_ACCOUNT_OBJECTS)


def _mandatory_fields(external_id: str, original_external_id: str, with_person_account: bool) -> Set[str]:
    fields = {RECORD_ID_FIELD, complex_field(external_id)}
    if original_external_id:
        fields.add(complex_field(original_external_id))
    if with_person_account:
        fields.add(PERSON_ACCOUNT_FIELD)
    return fields


def _build_delete_query(job: "MigrationJob", name: str, text: str) -> Query:
    """Derive the delete query: same filter, record id only."""
    try:
        parsed = parse_query(text)
    except QueryParseError as e:
        raise ConfigurationError(
            get_message("malformedDeleteQuery", name, text, e),
            entity=name,
            text=text,
        ) from e

    parsed = parsed.with_fields([field_ref(RECORD_ID_FIELD)])
    if job.person_account_enabled and name == "Contact":
        parsed = parsed.with_where(
            compose_where_clause(parsed.where, PERSON_ACCOUNT_FIELD, "false")
        )
    return parsed


class TaskState(str, Enum):
    """Lifecycle state of a task."""
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"  # After setup
    DESCRIBED = "described"  # After describe


@dataclass(eq=False)
class MigrationTask:
    """
    Task descriptor for one object of a migration job.

    Built from the object configuration, then:

    1. setup(job) normalizes the operation and the external id, resolves
       the query, injects the bookkeeping fields and derives the delete
       query. Runs once.
    2. describe() fetches the source and target schemas, expands the
       multiselect keywords and validates the fields. Runs once.

    Field maps and relationship summaries are empty until describe()
    has completed.
    """
    # Configuration
    query: str = ""
    delete_query: str = ""
    operation: Union[Operation, str, int] = Operation.READONLY
    external_id: str = DEFAULT_EXTERNAL_ID_FIELD
    delete_old_data: bool = False
    update_with_mock_data: bool = False
    mock_csv_data: bool = False
    target_records_filter: str = ""
    excluded: bool = False
    use_csv_values_mapping: bool = False
    all_records: bool = True
    excluded_fields: List[str] = field(default_factory=list)
    mock_fields: List[MockField] = field(default_factory=list)
    is_extra_object: bool = False
    process_all_source: bool = False
    process_all_target: bool = False

    # Runtime state
    name: str = field(default="", init=False)
    state: TaskState = field(default=TaskState.UNCONFIGURED, init=False)
    original_external_id: str = field(default="", init=False)
    parsed_query: Optional[Query] = field(default=None, init=False)
    parsed_delete_query: Optional[Query] = field(default=None, init=False)
    multiselect_pattern: Optional[MultiselectPattern] = field(default=None, init=False)
    source_describe: Optional[SchemaSnapshot] = field(default=None, init=False)
    target_describe: Optional[SchemaSnapshot] = field(default=None, init=False)
    issues: List[ValidationIssue] = field(default_factory=list, init=False)
    job: Optional["MigrationJob"] = field(default=None, init=False, repr=False)

    # ----------------------------------------------------------------- state

    @property
    def is_initialized(self) -> bool:
        return self.state != TaskState.UNCONFIGURED

    @property
    def is_described(self) -> bool:
        return self.state == TaskState.DESCRIBED

    # ------------------------------------------------------------ operation

    @property
    def str_operation(self) -> str:
        if isinstance(self.operation, Operation):
            return self.operation.value
        return str(self.operation)

    @property
    def is_readonly_object(self) -> bool:
        return self.operation in (Operation.READONLY, Operation.DELETE)

    @property
    def is_special_object(self) -> bool:
        return self.name in SPECIAL_OBJECTS

    # ---------------------------------------------------------- external id

    @property
    def has_complex_external_id(self) -> bool:
        return is_complex_field(self.external_id)

    @property
    def has_complex_original_external_id(self) -> bool:
        return is_complex_field(self.original_external_id)

    @property
    def complex_external_id(self) -> str:
        return complex_field(self.external_id)

    @property
    def complex_original_external_id(self) -> str:
        return complex_field(self.original_external_id)

    @property
    def external_id_field(self) -> Optional[FieldDescriptor]:
        if not self.is_described or self.source_describe is None:
            return None
        return self.source_describe.get_field(self.external_id)

    @property
    def has_autonumber_external_id(self) -> bool:
        descriptor = self.external_id_field
        return self.external_id == RECORD_ID_FIELD or bool(descriptor and descriptor.auto_number)

    # --------------------------------------------------------------- fields

    @property
    def mandatory_fields(self) -> Set[str]:
        """Bookkeeping fields that exclusions never remove."""
        return _mandatory_fields(
            self.external_id, self.original_external_id, self._needs_person_account_field()
        )

    @property
    def effective_excluded_fields(self) -> Set[str]:
        return set(self.excluded_fields) - self.mandatory_fields

    @property
    def fields_in_query(self) -> List[str]:
        if self.parsed_query is None:
            return []
        return self.parsed_query.field_names

    @property
    def fields_in_query_map(self) -> Dict[str, FieldDescriptor]:
        """Query fields with their source descriptors; computed fields get a placeholder."""
        if not self.is_described or self.source_describe is None:
            return {}
        return {
            name: self.source_describe.get_field(name) or FieldDescriptor.dynamic(name)
            for name in self.fields_in_query
        }

    @property
    def fields_to_update(self) -> List[str]:
        """Query fields that can be written to the target."""
        if (self.parsed_query is None
                or not self.is_described
                or self.source_describe is None
                or not self.source_describe.fields
                or self.operation == Operation.READONLY):
            return []

        result = []
        for name in self.fields_in_query:
            descriptor = self.source_describe.get_field(name)
            if descriptor is None and self.target_describe is not None:
                descriptor = self.target_describe.get_field(name)
            if descriptor is None or descriptor.readonly:
                continue
            result.append(name)
        return result

    @property
    def fields_to_update_map(self) -> Dict[str, FieldDescriptor]:
        if self.source_describe is None:
            return {}
        return {name: self.source_describe.fields[name]
                for name in self.fields_to_update if name in self.source_describe.fields}

    @property
    def has_record_type_id_field(self) -> bool:
        return RECORD_TYPE_ID_FIELD in self.fields_in_query

    @property
    def is_limited_query(self) -> bool:
        query = self.parsed_query
        return bool(query and ((query.limit or 0) > 0 or query.where))

    # -------------------------------------------------------- relationships

    @property
    def parent_lookup_entities(self) -> List[str]:
        return RelationshipExtractor.parent_lookup_entities(self.fields_in_query_map)

    @property
    def parent_master_detail_entities(self) -> List[str]:
        return RelationshipExtractor.parent_master_detail_entities(self.fields_in_query_map)

    @property
    def parent_lookup_tasks(self) -> List["MigrationTask"]:
        """Registered tasks of the parent lookup objects."""
        if self.job is None:
            return []
        tasks = (self.job.get_task(name) for name in self.parent_lookup_entities)
        return [t for t in tasks if t is not None]

    @property
    def has_parent_lookup_objects(self) -> bool:
        return RelationshipExtractor.has_parent_relationships(self.fields_in_query_map)

    @property
    def has_child_lookup_objects(self) -> bool:
        if self.job is None:
            return False
        return RelationshipExtractor.has_child_relationships(self.name, self.job.registry)

    @property
    def is_object_without_relationships(self) -> bool:
        registry = self.job.registry if self.job is not None else {}
        return RelationshipExtractor.has_no_relationships(self.name, self.fields_in_query_map, registry)

    # ------------------------------------------------------------ lifecycle

    def setup(self, job: "MigrationJob") -> None:
        """
        Normalize the configuration and resolve the queries.

        Does nothing when the task is already set up. A failure leaves the
        task unconfigured and it is not registered in the job.

        Raises:
            ConfigurationError: if the operation or a query string is invalid
        """
        if self.is_initialized:
            return

        display_name = self.name or self.query
        try:
            operation = Operation.normalize(self.operation)
        except ValueError as e:
            raise ConfigurationError(
                get_message("unknownOperation", display_name, self.operation),
                entity=self.name or None,
                text=str(self.operation),
            ) from e

        original_external_id = self.external_id
        external_id = RECORD_ID_FIELD if operation == Operation.INSERT else self.external_id

        query, pattern = QueryResolver(self.name).resolve(self.query)
        name = query.sobject
        with_person_account = _uses_person_account_field(job, name, operation)

        if operation == Operation.DELETE:
            fields = [field_ref(RECORD_ID_FIELD)]
        else:
            fields = list(query.fields)
            fields.append(field_ref(RECORD_ID_FIELD))
            fields.append(field_ref(complex_field(external_id)))
            fields.append(field_ref(complex_field(original_external_id)))
            if with_person_account:
                fields.append(field_ref(PERSON_ACCOUNT_FIELD))

        excluded = set(self.excluded_fields) - _mandatory_fields(
            external_id, original_external_id, with_person_account
        )
        fields = [f for f in fields if f.field and f.field not in excluded]
        query = query.with_fields(distinct_fields(fields))

        delete_old_data = self.delete_old_data or operation == Operation.DELETE
        delete_query = None
        if delete_old_data:
            delete_query = _build_delete_query(job, name, self.delete_query or compose_query(query))

        job.ensure_unique(name, self)

        # Nothing below can fail
        self.operation = operation
        self.original_external_id = original_external_id
        self.external_id = external_id
        self.name = name
        self.multiselect_pattern = pattern
        self.job = job
        self.delete_old_data = delete_old_data
        self._set_query(query)
        if delete_query is not None:
            self.parsed_delete_query = delete_query
            self.delete_query = compose_query(delete_query)

        job.register_task(self)
        self.state = TaskState.CONFIGURED
        logger.debug(f"{self.name}: set up with query {self.query}")

    async def describe(self) -> None:
        """
        Retrieve the object schemas and finalize the query fields.

        The source side is processed first. A side backed by a file takes
        the schema of the other side. Multiselect expansion runs against
        the first described schema, validation once per described side.

        Raises:
            ConfigurationError: if the task is not set up, has no fields
                or misses its external id
            MetadataError: if a schema cannot be retrieved
        """
        if self.is_described:
            return
        if not self.is_initialized or self.job is None:
            raise ConfigurationError(
                f"{self.name or self.query}: the task must be set up before describe",
                entity=self.name or None,
            )

        job = self.job
        expanded = False

        if job.source.is_describable:
            snapshot = await self._fetch(job.source_client, "source", "objectSourceDoesNotExist")
            self.source_describe = snapshot
            if job.target.is_file:
                self.target_describe = snapshot
            self._expand(snapshot)
            expanded = True
            self._validate(snapshot, is_source=True)

        if job.target.is_describable:
            snapshot = await self._fetch(job.target_client, "target", "objectTargetDoesNotExist")
            self.target_describe = snapshot
            if job.source.is_file:
                self.source_describe = snapshot
            if not expanded:
                self._expand(snapshot)
            self._validate(snapshot, is_source=False)

        self.state = TaskState.DESCRIBED

    # -------------------------------------------------------------- helpers

    def _needs_person_account_field(self) -> bool:
        return _uses_person_account_field(self.job, self.name, self.operation)

    def _set_query(self, query: Query) -> None:
        self.parsed_query = query
        self.query = compose_query(query)

    async def _fetch(self, client: Optional[DescribeClient], side: str, error_key: str) -> SchemaSnapshot:
        logger.info(get_message("gettingMetadataForSObject", self.name, get_message(side)))
        if client is None:
            raise MetadataError(
                f"{self.name}: no describe client configured for the {side}",
                entity=self.name,
                side=side,
            )
        try:
            snapshot = await client.describe_entity(self.name)
        except ConfigurationError:
            raise
        except Exception as e:
            raise MetadataError(get_message(error_key, self.name), entity=self.name, side=side) from e
        return snapshot.bind(self.name)

    def _expand(self, snapshot: SchemaSnapshot) -> None:
        query = self.job.field_expander.expand(
            self.parsed_query,
            snapshot,
            self.multiselect_pattern,
            self.effective_excluded_fields,
        )
        self._set_query(query)

    def _validate(self, snapshot: SchemaSnapshot, is_source: bool) -> None:
        query, issues = FieldValidator().validate(self, snapshot, is_source)
        self._set_query(query)
        self.issues.extend(issues)

    # -------------------------------------------------------- serialization

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation of the resolved task."""
        return {
            "name": self.name,
            "state": self.state.value,
            "operation": self.str_operation,
            "external_id": self.external_id,
            "original_external_id": self.original_external_id,
            "query": self.query,
            "delete_query": self.delete_query if self.delete_old_data else None,
            "fields": self.fields_in_query,
            "fields_to_update": self.fields_to_update,
            "multiselect_pattern": self.multiselect_pattern.to_dict() if self.multiselect_pattern else None,
            "excluded_fields": list(self.excluded_fields),
            "parent_lookup_objects": self.parent_lookup_entities,
            "parent_master_detail_objects": self.parent_master_detail_entities,
            "has_parent_lookup_objects": self.has_parent_lookup_objects,
            "has_child_lookup_objects": self.has_child_lookup_objects,
            "issues": [i.to_dict() for i in self.issues],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationTask":
        """Create from an object entry of the job configuration."""
        return cls(
            query=data.get("query", ""),
            delete_query=data.get("deleteQuery", ""),
            operation=data.get("operation", Operation.READONLY),
            external_id=data.get("externalId") or DEFAULT_EXTERNAL_ID_FIELD,
            delete_old_data=data.get("deleteOldData", False),
            update_with_mock_data=data.get("updateWithMockData", False),
            mock_csv_data=data.get("mockCSVData", False),
            target_records_filter=data.get("targetRecordsFilter", ""),
            excluded=data.get("excluded", False),
            use_csv_values_mapping=data.get("useCSVValuesMapping", False),
            all_records=data.get("allRecords", True),
            excluded_fields=list(data.get("excludedFields", [])),
            mock_fields=[MockField.from_dict(m) for m in data.get("mockFields", [])],
            is_extra_object=data.get("isExtraObject", False),
            process_all_source=data.get("processAllSource", False),
            process_all_target=data.get("processAllTarget", False),
        )
