"""Resource lifecycle controller.

Create, read, update and delete run the same transaction template for every
object type:

    lock -> [pre-check] -> submit -> commit -> [post-check] -> read back -> unlock

Any fatal error aborts the remaining steps. Unlock and close still run and
their failures are reported as warnings on the error. Nothing is retried:
lock conflicts and commit failures go back to the caller.
"""
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from .client import DeviceClient
from .codec.parse import parse
from .codec.render import delete_option_statements, delete_statements, render
from .codec.schema import ID_SEPARATOR, ConfigObject, Kind, schema_of
from .codec.statement import Statement, is_empty_dump
from .errors import (
    READ_COMPUTED_WARNING,
    BadIdError,
    CompatibilityError,
    DeviceWarning,
    LifecycleError,
    NotFoundError,
)
from .prober import show_command
from .registry import Capability, ResourceType
from .session import Session
from .utils.audit_log import log_transaction
from .utils.logging_config import timed_section

logger = logging.getLogger(__name__)

Body = Callable[[Session, list], Awaitable[Optional[ConfigObject]]]


@dataclass
class OperationResult:
    """Outcome of one lifecycle call.

    ``state`` is the object to store as current state; None with
    ``removed`` set means the host should drop the object from its state.
    """
    state: Optional[ConfigObject]
    warnings: list[DeviceWarning] = field(default_factory=list)
    removed: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.state.id() if self.state is not None else None,
            "removed": self.removed,
            "warnings": [w.to_dict() for w in self.warnings],
        }


def keep_local_fields(state: ConfigObject, source: ConfigObject) -> ConfigObject:
    """Copy host-side fields (never on the device) from ``source``."""
    for spec in schema_of(type(state)).fields:
        if spec.kind == Kind.LOCAL:
            setattr(state, spec.name, getattr(source, spec.name))
    return state


def split_id(resource_id: str, count: int) -> tuple[str, ...]:
    """Identifier values of an object ID.

    Raises:
        BadIdError: If the ID holds fewer than ``count`` elements
    """
    if count == 0:
        return ()
    if count == 1:
        return (resource_id,)
    elements = resource_id.split(ID_SEPARATOR)
    if len(elements) < count:
        raise BadIdError(f"missing element(s) in id {resource_id!r} with separator {ID_SEPARATOR!r}")
    return tuple(elements[:count])


class ResourceController:
    """Lifecycle operations for one resource type."""

    def __init__(self, resource_type: ResourceType):
        self.resource_type = resource_type

    @property
    def name(self) -> str:
        return self.resource_type.name

    # === Operations ===

    async def create(self, client: DeviceClient, plan: ConfigObject) -> OperationResult:
        """Create ``plan`` on the device.

        Raises:
            ValidationError: Before any device I/O
            DuplicateConfigError: If the object already exists
            NotFoundError: If the object is absent after commit
            LifecycleError: Any other session failure
        """
        statements = render(plan)

        async def body(session: Session, warnings: list) -> ConfigObject:
            if session.non_transactional:
                warnings += await session.submit(statements)
                warnings += await session.commit(self._commit_message("create"))
                return plan
            if self.resource_type.has(Capability.PRE_CHECK):
                await self.resource_type.pre_check(session, plan)
            warnings += await session.submit(statements)
            warnings += await session.commit(self._commit_message("create"))
            if self.resource_type.has(Capability.POST_CHECK):
                await self.resource_type.post_check(session, plan)
            return await self._read_back(session, client, plan)

        session = client.new_fake_session() if client.fake_create else client.new_session()
        return await self._transaction(client, session, "create", plan, body)

    async def read(self, client: DeviceClient, prior: ConfigObject) -> OperationResult:
        """Read the current device state of ``prior``.

        An identified object absent from the device comes back with
        ``removed`` set instead of an error.
        """
        dump, warnings = await self._show(client, prior, "read")
        if is_empty_dump(dump) and not prior.is_global():
            logger.info(f"{self.name} {prior.id()!r} not found on {client.target}")
            return OperationResult(None, warnings, removed=True)
        state = keep_local_fields(self._parse(dump, prior, client), prior)
        return OperationResult(state, warnings)

    async def import_state(self, client: DeviceClient, resource_id: str) -> OperationResult:
        """Read an existing device object from its ID string.

        IDs join identifier values with ``_-_``; a single identifier takes
        the whole ID. Global objects ignore the ID.

        Raises:
            BadIdError: If the ID has fewer elements than identifiers
            NotFoundError: If an identified object is absent
        """
        object_type = self.resource_type.object_type
        names = schema_of(object_type).identifiers
        reference = object_type(**dict(zip(names, split_id(resource_id, len(names)))))

        dump, warnings = await self._show(client, reference, "import")
        if is_empty_dump(dump) and names:
            expected = f">{ID_SEPARATOR}<".join(names)
            raise NotFoundError(f"don't find {self.name} with id {resource_id!r} (id must be <{expected}>)")
        return OperationResult(self._parse(dump, reference, client), warnings)

    async def update(
        self, client: DeviceClient, plan: ConfigObject, prior: ConfigObject
    ) -> OperationResult:
        """Replace ``prior`` with ``plan`` on the device.

        Types with the delete-options capability retract only what the plan
        no longer holds; other types delete the prior object first.
        """
        statements = render(plan)
        if self.resource_type.has(Capability.DELETE_OPTIONS):
            retract = delete_option_statements(plan)
        else:
            retract = delete_statements(prior)

        async def body(session: Session, warnings: list) -> ConfigObject:
            warnings += await session.submit(retract + statements)
            warnings += await session.commit(self._commit_message("update"))
            if session.non_transactional:
                return plan
            if not self.resource_type.has(Capability.COMPUTED_READ):
                return await self._read_back(session, client, plan)
            try:
                return await self._read_back(session, client, plan)
            except LifecycleError as e:
                warnings.append(DeviceWarning(READ_COMPUTED_WARNING, e.message))
                return plan

        session = client.new_fake_session() if client.fake_update else client.new_session()
        return await self._transaction(client, session, "update", plan, body)

    async def delete(self, client: DeviceClient, prior: ConfigObject) -> OperationResult:
        """Remove ``prior`` from the device.

        Objects holding shared global state are left in place unless their
        ``clean_on_destroy`` flag is set; no session is opened then.
        """
        if self.resource_type.has(Capability.CLEAN_ON_DESTROY) and not prior.clean_on_destroy:
            logger.info(f"{self.name}: clean_on_destroy is off, leaving device configuration untouched")
            return OperationResult(None, removed=True)

        statements = delete_statements(prior)

        async def body(session: Session, warnings: list) -> None:
            warnings += await session.submit(statements)
            warnings += await session.commit(self._commit_message("delete"))
            return None

        session = client.new_fake_session() if client.fake_delete else client.new_session()
        result = await self._transaction(client, session, "delete", prior, body)
        result.removed = True
        return result

    # === Transaction template ===

    async def _transaction(
        self, client: DeviceClient, session: Session, operation: str, obj: ConfigObject, body: Body
    ) -> OperationResult:
        warnings: list[DeviceWarning] = []
        async with timed_section(operation, target=session.target, resource=self.name):
            await session.open()
            try:
                self._check_platform(session)
                state = await self._locked(session, body, warnings)
            except LifecycleError as e:
                e.warnings.extend(await session.close())
                self._audit(client, session, operation, obj, error=e)
                raise
            except BaseException:
                await session.close()
                raise
            warnings.extend(await session.close())
        self._audit(client, session, operation, obj, warnings=warnings)
        return OperationResult(state, warnings)

    async def _locked(self, session: Session, body: Body, warnings: list) -> Optional[ConfigObject]:
        await session.lock()
        try:
            state = await body(session, warnings)
        except LifecycleError as e:
            e.warnings[:0] = warnings
            e.warnings.extend(await session.unlock())
            raise
        except BaseException:
            await session.unlock()
            raise
        warnings.extend(await session.unlock())
        return state

    def _check_platform(self, session: Session) -> None:
        if session.non_transactional or not self.resource_type.has(Capability.SECURITY_PLATFORM):
            return
        info = session.system_information
        if info is None or not info.is_security_platform():
            model = info.hardware_model if info is not None else "unknown"
            raise CompatibilityError(f"{self.name} not compatible with Junos device {model!r}")

    async def _show(
        self, client: DeviceClient, obj: ConfigObject, operation: str
    ) -> tuple[str, list[DeviceWarning]]:
        session = client.new_session()
        async with timed_section(operation, target=client.target, resource=self.name):
            await session.open()
            try:
                dump = await session.command(show_command(obj.root_path(), relative=True))
            except LifecycleError as e:
                e.warnings.extend(await session.close())
                raise
            except BaseException:
                await session.close()
                raise
            return dump, await session.close()

    async def _read_back(self, session: Session, client: DeviceClient, plan: ConfigObject) -> ConfigObject:
        dump = await session.command(show_command(plan.root_path(), relative=True))
        return keep_local_fields(self._parse(dump, plan, client), plan)

    def _parse(self, dump: str, reference: ConfigObject, client: DeviceClient) -> ConfigObject:
        return parse(dump, type(reference), reference.identity(), client.decoder)

    def _commit_message(self, operation: str) -> str:
        return f"{operation} resource {self.name}"

    def _audit(
        self,
        client: DeviceClient,
        session: Session,
        operation: str,
        obj: ConfigObject,
        warnings: Optional[list[DeviceWarning]] = None,
        error: Optional[LifecycleError] = None,
    ) -> None:
        transaction = session.transaction
        statements: list[Statement] = transaction.statements if transaction else []
        log_transaction(
            target=session.target,
            operation=operation,
            resource_type=self.name,
            resource_id=obj.id(),
            success=error is None,
            statements=[s.text for s in statements],
            commit_message=(transaction.commit_message or "") if transaction else "",
            warnings=[str(w) for w in (error.warnings if error else warnings or [])],
            error=f"{error.summary}: {error.message}" if error else None,
        )
