"""Generate RPC client stubs and abstract server bases for protobuf services.

A `ServiceGenerator` goes through two phases. `resolve` registers the message types
that the service's methods reference; it must run for every service of the whole
compilation run before any service is emitted, since references may point into
other units. `add_imports_to` and `generate` then read the resolved state.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from grpc_stub_generator import helper, proto_types
from grpc_stub_generator.descriptors import MethodDescriptor, ServiceDescriptor
from grpc_stub_generator.output import IndentingWriter
from grpc_stub_generator.proto_types import RuntimeName
from grpc_stub_generator.registry import FileContext, MessageType, TypeRegistry
from grpc_stub_generator.writer_dto import MethodShape, ServiceNaming

logger = logging.getLogger(__name__)


class GeneratorPhase(enum.Enum):
    """Lifecycle of a service generator."""

    CONSTRUCTED = "constructed"
    RESOLVED = "resolved"
    EMITTED = "emitted"


class GeneratorPhaseError(RuntimeError):
    """Raised when a generator operation is called out of phase."""


class NameClashError(ValueError):
    """Raised when two generated definitions would be bound to the same Python name."""


class UnresolvedTypeReference(Exception):
    """Raised when generated code would reference a message type that is not known.

    Attributes:
        fqname: The fully-qualified name that could not be resolved.
        location: Where the name was referenced, e.g. "input type of SayHello".
    """

    def __init__(self, fqname: str, location: str | None):
        self.fqname = fqname
        self.location = location
        super().__init__(f"Unknown type reference ({fqname}) for {location}")


class ServiceGenerator:
    """Generates the client class and the abstract server base for one service."""

    def __init__(self, descriptor: ServiceDescriptor, file: FileContext):
        """Derive the names of the generated classes.

        Args:
            descriptor (ServiceDescriptor): The service to generate code for.
            file (FileContext): The unit that declares the service.
        """
        self._descriptor = descriptor
        self.file = file
        self.naming = ServiceNaming.create(descriptor.name, descriptor.package or file.package)

        # Message types needed directly by this service, by fully-qualified name.
        self._deps: proto_types.DependencyMapType = {}
        # Undefined type names, mapped to a description of where they are used.
        self._undefined_deps: proto_types.UndefinedDependencyMapType = {}

        self._methods: list[MethodGenerator] = []
        self.phase = GeneratorPhase.CONSTRUCTED

    @property
    def full_service_name(self) -> str:
        return self.naming.full_service_name

    @property
    def client_class_name(self) -> str:
        return self.naming.client_class_name

    @property
    def service_class_name(self) -> str:
        return self.naming.service_class_name

    @property
    def methods(self) -> Sequence[MethodGenerator]:
        return tuple(self._methods)

    @property
    def dependencies(self) -> Mapping[str, MessageType]:
        return MappingProxyType(self._deps)

    @property
    def undefined_dependencies(self) -> Mapping[str, str]:
        return MappingProxyType(self._undefined_deps)

    def _require_phase(self, operation: str, *phases: GeneratorPhase) -> None:
        if self.phase not in phases:
            allowed = ", ".join(phase.value for phase in phases)
            raise GeneratorPhaseError(
                f"Cannot {operation} service '{self.full_service_name}' in phase '{self.phase.value}' "
                f"(allowed: {allowed})."
            )

    def resolve(self, registry: TypeRegistry) -> None:
        """Find all message types used by this service.

        Precondition: every message type of the compilation run has been registered and resolved.

        Args:
            registry (TypeRegistry): The registry of all message types.
        """
        self._require_phase("resolve", GeneratorPhase.CONSTRUCTED)

        methods = [MethodGenerator(self, registry, method) for method in self._descriptor.methods]
        self._check_member_names(methods)
        self._methods = methods

        self.phase = GeneratorPhase.RESOLVED

        if self._undefined_deps:
            logger.debug(
                "Service '%s' references %d unknown type(s): %s",
                self.full_service_name,
                len(self._undefined_deps),
                ", ".join(self._undefined_deps),
            )

    def _check_member_names(self, methods: list[MethodGenerator]) -> None:
        """Raise if two methods, adapters or inherited members of the server base share a name.

        Raises:
            NameClashError: If a handler or adapter name is already taken.
        """
        owners = {
            proto_types.SERVICE_NAME_PROPERTY: "the service name property",
            proto_types.ADD_METHOD: "the runtime Service base",
        }
        for method in methods:
            rpc = f"RPC {method.rpc_name}"
            names = [method.handler_name]
            if method.has_preamble:
                names.append(method.preamble_name)

            for name in names:
                owner = owners.setdefault(name, rpc)
                if owner != rpc:
                    raise NameClashError(
                        f"The member '{name}' of '{self.service_class_name}' is defined by both {owner} and {rpc}."
                    )

    def add_dependency(self, registry: TypeRegistry, fqname: str, location: str) -> None:
        """Add a dependency on the given message type.

        If the type name can't be resolved, it is recorded together with its location.
        """
        self._require_phase("add a dependency to", GeneratorPhase.CONSTRUCTED)

        if fqname in self._deps:
            return

        message_type = registry.lookup(fqname)
        if message_type is None:
            self._undefined_deps.setdefault(fqname, location)
            return

        message_type.check_resolved()
        self._deps[message_type.fqname] = message_type
        logger.debug("Service '%s' depends on '%s'.", self.full_service_name, message_type.fqname)

    def add_imports_to(self, imports: proto_types.ImportSetType) -> None:
        """Add the units that the generated code needs to import.

        Args:
            imports (set[FileContext]): The set to add the owning unit of every dependency to.
        """
        self._require_phase("collect imports of", GeneratorPhase.RESOLVED, GeneratorPhase.EMITTED)

        for message_type in self._deps.values():
            imports.add(message_type.file)

    def resolve_class_name_for(self, fqname: str) -> str:
        """Returns the class name to use for a message type in generated code.

        Raises:
            UnresolvedTypeReference: If the type is not a dependency of this service.
        """
        self._require_phase("resolve class names of", GeneratorPhase.RESOLVED, GeneratorPhase.EMITTED)

        message_type = self._deps.get(fqname)
        if message_type is None:
            raise UnresolvedTypeReference(fqname, self._undefined_deps.get(fqname))

        owning_package = message_type.file.package
        if self.file.package == owning_package or owning_package == "":
            # Same unit, same package, or a type without package; imported without alias.
            return message_type.class_name

        return f"{message_type.file.import_alias}.{message_type.class_name}"

    def generate(self, out: IndentingWriter) -> None:
        """Write the client class and the server base class.

        All type references are resolved before the first line is written.
        """
        self._require_phase("generate", GeneratorPhase.RESOLVED)

        shapes = [(method, method.shape()) for method in self._methods]

        self._generate_client(out, shapes)
        out.println()
        out.println()
        self._generate_service(out, shapes)

        self.phase = GeneratorPhase.EMITTED

    def _generate_client(self, out: IndentingWriter, shapes: list[tuple[MethodGenerator, MethodShape]]) -> None:
        with out.block(helper.new_class_declaration(self.client_class_name)):
            for method, shape in shapes:
                method.generate_client_method_descriptor(out, shape)
            if shapes:
                out.println()

            out.println(f"_channel: {RuntimeName.CLIENT_CHANNEL}")
            out.println()
            init = helper.new_function("__init__", ["self", f"channel: {RuntimeName.CLIENT_CHANNEL}"])
            with out.block(init):
                out.println("self._channel = channel")

            for method, shape in shapes:
                method.generate_client_stub(out, shape)

    def _generate_service(self, out: IndentingWriter, shapes: list[tuple[MethodGenerator, MethodShape]]) -> None:
        bases = [RuntimeName.SERVICE, proto_types.ABSTRACT_BASE]
        declaration = helper.new_class_declaration(self.service_class_name, bases)
        with out.block(declaration):
            out.println(helper.new_decorator("property"))
            with out.block(helper.new_function(proto_types.SERVICE_NAME_PROPERTY, ["self"], "str")):
                out.println(f"return {helper.quote(self.full_service_name)}")
            out.println()

            with out.block(helper.new_function("__init__", ["self"])):
                out.println("super().__init__()")
                for method, shape in shapes:
                    method.generate_service_method_registration(out, shape)

            if shapes:
                out.println()

            for method, shape in shapes:
                method.generate_service_method_preamble(out, shape)

            for index, (method, shape) in enumerate(shapes):
                if index:
                    out.println()
                method.generate_service_method_stub(out, shape)


class MethodGenerator:
    """Generates the code fragments of one RPC method."""

    def __init__(self, service: ServiceGenerator, registry: TypeRegistry, method: MethodDescriptor):
        self._service = service

        self.rpc_name = method.name
        self.handler_name = helper.handler_name(method.name)
        self.service_name = service.full_service_name

        self.client_streaming = method.client_streaming
        self.server_streaming = method.server_streaming

        self.input_type = method.input_type
        self.output_type = method.output_type

        service.add_dependency(registry, method.input_type, f"input type of {self.rpc_name}")
        service.add_dependency(registry, method.output_type, f"output type of {self.rpc_name}")

    @property
    def path(self) -> str:
        """The wire path of the method."""
        return f"/{self.service_name}/{self.rpc_name}"

    @property
    def descriptor_name(self) -> str:
        return f"{proto_types.METHOD_DESCRIPTOR_PREFIX}{self.handler_name}"

    @property
    def preamble_name(self) -> str:
        return f"{self.handler_name}{proto_types.PREAMBLE_SUFFIX}"

    @property
    def has_preamble(self) -> bool:
        return not self.client_streaming

    def shape(self) -> MethodShape:
        """Resolve the message class names and derive the method's types.

        Raises:
            UnresolvedTypeReference: If the input or output type is unknown.
        """
        return MethodShape.create(
            request_type=self._service.resolve_class_name_for(self.input_type),
            response_type=self._service.resolve_class_name_for(self.output_type),
            client_streaming=self.client_streaming,
            server_streaming=self.server_streaming,
        )

    def generate_client_method_descriptor(self, out: IndentingWriter, shape: MethodShape) -> None:
        with out.block(f"{self.descriptor_name} = {RuntimeName.CLIENT_METHOD}("):
            out.println(f"{helper.quote(self.path)},")
            out.println(f"{shape.request_serializer},")
            out.println(f"{shape.response_deserializer},")
        out.println(")")

    def generate_client_stub(self, out: IndentingWriter, shape: MethodShape) -> None:
        out.println()
        heading = helper.new_function(
            self.handler_name, ["self", f"request: {shape.argument_type}"], shape.client_return_type
        )
        with out.block(heading):
            out.println(f"call = {RuntimeName.CLIENT_CALL}(self._channel, self.{self.descriptor_name})")
            if self.client_streaming:
                out.println("call.request.pipe(request)")
            else:
                out.println("call.request.add(request)")
                out.println("call.request.close()")

            if self.server_streaming:
                out.println(f"return {RuntimeName.RESPONSE_STREAM}(call)")
            else:
                out.println(f"return {RuntimeName.RESPONSE_FUTURE}(call)")

    def generate_service_method_registration(self, out: IndentingWriter, shape: MethodShape) -> None:
        handler = self.handler_name if self.client_streaming else self.preamble_name

        with out.block("self.add_method("):
            with out.block(f"{RuntimeName.SERVICE_METHOD}("):
                out.println(f"{helper.quote(self.rpc_name)},")
                out.println(f"self.{handler},")
                out.println(f"{self.client_streaming},")
                out.println(f"{self.server_streaming},")
                out.println(f"{shape.request_deserializer},")
                out.println(f"{shape.response_serializer},")
            out.println(")")
        out.println(")")

    def generate_service_method_preamble(self, out: IndentingWriter, shape: MethodShape) -> None:
        """Write the adapter that awaits the single request before calling the handler."""
        if not self.has_preamble:
            return

        parameters = ["self", f"call: {RuntimeName.SERVICE_CALL}", f"request: {shape.pending_request_type}"]
        return_type = shape.server_return_type if self.server_streaming else shape.response_type

        with out.block(helper.new_function(self.preamble_name, parameters, return_type, is_async=True)):
            if self.server_streaming:
                with out.block(f"async for response in self.{self.handler_name}(call, await request):"):
                    out.println("yield response")
            else:
                out.println(f"return await self.{self.handler_name}(call, await request)")
        out.println()

    def generate_service_method_stub(self, out: IndentingWriter, shape: MethodShape) -> None:
        out.println(helper.new_decorator(proto_types.ABSTRACT_METHOD))
        out.println(
            helper.new_function(
                self.handler_name,
                ["self", f"call: {RuntimeName.SERVICE_CALL}", f"request: {shape.argument_type}"],
                shape.server_return_type,
                stub=True,
            )
        )
