from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol

from ordercloud_export.clients.base import Payload
from ordercloud_export.context import RunContext
from ordercloud_export.errors import ExportAbort, OrderCloudError, OrderCloudNotFoundError
from ordercloud_export.results import Bucket, Outcome
from ordercloud_export.settings import ImportMode


class Exporter(Protocol):
    """Common interface for the per-entity exporters driven by the orchestrator."""

    def export(self, entity_id: str) -> None:
        ...


class EntityExporter:
    """
    Shared get-or-create and dependent-save handling.

    Every helper counts exactly one Processed and one outcome per attempt.
    """

    def __init__(self, ctx: RunContext) -> None:
        self.ctx = ctx
        self.client = ctx.client
        self.source = ctx.source
        self.result = ctx.result
        self.logger = logging.getLogger(type(self).__module__)

    def _find_source_entity(self, kind: str, entity_id: str, bucket: Bucket, code: str) -> Any:
        """Watch-listed entity lookup; a missing entity is a genuine error."""
        entity = self.source.find_entity(kind, entity_id)
        if entity is None:
            self.result.record(bucket, Outcome.ERRORED)
            self.logger.error("%s '%s' not found in source", kind, entity_id)
            raise ExportAbort.error(code, f"{kind} '{entity_id}' not found.", entity_id)
        return entity

    def _skip(self, bucket: Bucket, code: str, message: str, entity_id: Optional[str] = None) -> None:
        self.result.record(bucket, Outcome.SKIPPED)
        self.logger.info("%s", message)
        raise ExportAbort.info(code, message, entity_id)

    def _get_or_create(
        self,
        bucket: Bucket,
        label: str,
        get: Callable[[], Payload],
        build: Callable[[Optional[Payload]], Payload],
        save: Callable[[Payload], Payload],
        patch: Optional[Callable[[Payload], Payload]],
        get_failed_code: str,
        create_failed_code: str,
        entity_id: Optional[str] = None,
    ) -> Payload:
        """
        Look the remote entity up and create it on NotFound. An existing
        entity is left alone (CREATE), patched (UPDATE) or replaced (REPLACE).

        Any remote failure is counted as Errored and stops the branch.
        """
        try:
            existing = get()
        except OrderCloudNotFoundError:
            existing = None
        except OrderCloudError as e:
            self.result.record(bucket, Outcome.ERRORED)
            self.logger.error("Get %s failed: %s", label, e.detail)
            raise ExportAbort.info(get_failed_code, f"Get {label} failed. {e.detail}", entity_id) from e

        mode = self.ctx.settings.import_mode
        if existing is not None and mode is ImportMode.CREATE:
            self.result.record(bucket, Outcome.NOT_CHANGED)
            return existing

        try:
            if existing is None:
                self.logger.info("Saving %s", label)
                saved = save(build(None))
                outcome = Outcome.CREATED
            elif mode is ImportMode.UPDATE and patch is not None:
                self.logger.info("Patching %s", label)
                saved = patch(build(existing))
                outcome = Outcome.PATCHED
            else:
                self.logger.info("Replacing %s", label)
                saved = save(build(existing))
                outcome = Outcome.UPDATED
        except OrderCloudError as e:
            self.result.record(bucket, Outcome.ERRORED)
            self.logger.error("Create %s failed: %s", label, e.detail)
            raise ExportAbort.info(create_failed_code, f"Create {label} failed. {e.detail}", entity_id) from e

        self.result.record(bucket, outcome)
        return saved if saved is not None else existing or {}

    def _attempt(
        self,
        bucket: Bucket,
        outcome: Outcome,
        label: str,
        action: Callable[[], Optional[Payload]],
    ) -> Optional[Payload]:
        """
        Save one dependent. A failure is counted and logged, and None is
        returned so siblings carry on. Assignments succeed with {}.
        """
        self.logger.info("Saving %s", label)
        try:
            value = action()
        except OrderCloudError as e:
            self.result.record(bucket, Outcome.ERRORED)
            self.logger.error("Save %s failed: %s", label, e.detail)
            return None
        self.result.record(bucket, outcome)
        return value if value is not None else {}

    def _skip_dependent(self, bucket: Bucket, label: str, reason: str) -> None:
        self.result.record(bucket, Outcome.SKIPPED)
        self.logger.info("Skipping %s: %s", label, reason)
