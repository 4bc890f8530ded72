"""Human-readable message templates used in errors and log output."""

from typing import Any, Dict

RESOURCES: Dict[str, str] = {
    "source": "source",
    "target": "target",
    "malformedQuery": "{0}: malformed query string: {1}. Error: {2}",
    "malformedDeleteQuery": "{0}: malformed delete query string: {1}. Error: {2}",
    "unknownOperation": "{0}: unknown operation '{1}'",
    "missingFieldsToProcess": "{0}: there are no fields to process",
    "noExternalKey": "{0}: the external id field is missing in the metadata of the {1} side (operation {2})",
    "fieldSourceDoesNotExist": "{0}: field {1} does not exist in the source, it was removed from the query",
    "fieldTargetDoesNotExist": "{0}: field {1} does not exist in the target, it was removed from the query",
    "objectSourceDoesNotExist": "{0}: the object does not exist in the source or its metadata cannot be retrieved",
    "objectTargetDoesNotExist": "{0}: the object does not exist in the target or its metadata cannot be retrieved",
    "gettingMetadataForSObject": "{0}: getting metadata from the {1}",
    "taskSetupFailed": "{0}: setup failed: {1}",
    "taskDescribeFailed": "{0}: describe failed: {1}",
}


def get_message(key: str, *args: Any) -> str:
    """
    Format the message registered under ``key``.

    Unknown keys fall back to the key followed by the arguments so that
    nothing is lost in the log output.
    """
    template = RESOURCES.get(key)
    if template is None:
        return " ".join([key] + [str(a) for a in args])
    try:
        return template.format(*args)
    except IndexError:
        return " ".join([template] + [str(a) for a in args])
