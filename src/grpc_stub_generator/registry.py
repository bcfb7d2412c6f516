"""The registry of message types that are known across a compilation run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from google.protobuf import descriptor_pb2

from grpc_stub_generator import helper

logger = logging.getLogger(__name__)


class DuplicateTypeError(ValueError):
    """Raised when a fully-qualified type name is registered twice."""


class MessageNotResolvedError(Exception):
    """Raised when a message type is used before its own dependencies were settled."""

    def __init__(self, fqname: str):
        self.fqname = fqname
        super().__init__(f"The message type '{fqname}' has not been resolved yet.")


@dataclass(frozen=True)
class FileContext:
    """Per-compilation-unit state.

    Attributes:
        name: The proto file name, e.g. "demo/echo.proto".
        package: The declared package, possibly empty.
        module: The dotted Python module that holds the unit's message classes.
        import_alias: The alias used when another unit references a type owned by this one.
    """

    name: str
    package: str = ""
    module: str = ""
    import_alias: str = ""

    @classmethod
    def create(cls, name: str, package: str = "") -> FileContext:
        """Factory that derives module path and import alias from the file name."""
        module = helper.module_name_for(name)
        return cls(name=name, package=package, module=module, import_alias=helper.import_alias_for(module))


@dataclass(eq=False)
class MessageType:
    """Handle of a message type, owned by exactly one compilation unit.

    Attributes:
        fqname: The canonical fully-qualified name, without a leading dot.
        class_name: The Python class name, dotted for nested messages (e.g. "Outer.Inner").
        file: The owning unit.
    """

    fqname: str
    class_name: str
    file: FileContext
    resolved: bool = field(default=False, init=False)

    def mark_resolved(self) -> None:
        self.resolved = True

    def check_resolved(self) -> None:
        """Raise if the message's own dependencies are not settled."""
        if not self.resolved:
            raise MessageNotResolvedError(self.fqname)

    @property
    def top_level_name(self) -> str:
        """The module-level class that holds this type, e.g. `Outer` for `Outer.Inner`."""
        return self.class_name.split(".", 1)[0]


class TypeRegistry:
    """Maps fully-qualified message names to their type handles.

    Generators only query the registry; it is populated once per run, before any
    service is resolved.
    """

    def __init__(self) -> None:
        self._types_by_name: dict[str, MessageType] = {}

    def register(self, message_type: MessageType) -> MessageType:
        """Register a message type.

        Args:
            message_type (MessageType): The handle to register.

        Raises:
            DuplicateTypeError: If the fully-qualified name is already registered.

        Returns:
            MessageType: The registered handle.
        """
        existing = self._types_by_name.get(message_type.fqname)
        if existing is not None:
            raise DuplicateTypeError(
                f"The type '{message_type.fqname}' is declared in both '{existing.file.name}' "
                f"and '{message_type.file.name}'."
            )

        self._types_by_name[message_type.fqname] = message_type
        return message_type

    def register_message(self, file: FileContext, fqname: str, class_name: str) -> MessageType:
        return self.register(MessageType(fqname=fqname, class_name=class_name, file=file))

    def register_file(self, file_proto: descriptor_pb2.FileDescriptorProto) -> FileContext:
        """Register all messages, including nested ones, that a file declares.

        Args:
            file_proto: The file descriptor.

        Returns:
            FileContext: The context of the registered unit.
        """
        file = FileContext.create(file_proto.name, file_proto.package)

        count = 0
        for message_proto in file_proto.message_type:
            count += self._register_nested(file, message_proto, file.package, "")

        logger.debug("Registered %d message types from '%s'.", count, file.name)
        return file

    def _register_nested(
        self, file: FileContext, message_proto: descriptor_pb2.DescriptorProto, scope: str, class_scope: str
    ) -> int:
        fqname = f"{scope}.{message_proto.name}" if scope else message_proto.name
        class_name = f"{class_scope}.{message_proto.name}" if class_scope else message_proto.name

        self.register_message(file, fqname, class_name)

        count = 1
        for nested in message_proto.nested_type:
            if nested.options.map_entry:
                # Map entries have no class of their own.
                continue
            count += self._register_nested(file, nested, fqname, class_name)

        return count

    def lookup(self, fqname: str) -> MessageType | None:
        """Look up a message type by its fully-qualified name.

        Returns:
            MessageType | None: The handle, or None if the name is unknown.
        """
        return self._types_by_name.get(fqname)

    def resolve_all(self) -> None:
        """Mark every registered type as resolved."""
        for message_type in self._types_by_name.values():
            message_type.mark_resolved()

