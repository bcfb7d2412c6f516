"""Immutable records that describe the services a compilation unit declares."""

from __future__ import annotations

from dataclasses import dataclass

from google.protobuf import descriptor_pb2

from grpc_stub_generator import helper


@dataclass(frozen=True)
class MethodDescriptor:
    """One RPC method of a service.

    Attributes:
        name: The RPC name, as declared (e.g. "SayHello").
        input_type: Fully-qualified request message name, without a leading dot.
        output_type: Fully-qualified response message name, without a leading dot.
        client_streaming: Whether the caller sends a sequence of requests.
        server_streaming: Whether the callee sends a sequence of responses.
    """

    name: str
    input_type: str
    output_type: str
    client_streaming: bool = False
    server_streaming: bool = False

    @classmethod
    def from_proto(cls, proto: descriptor_pb2.MethodDescriptorProto) -> MethodDescriptor:
        return cls(
            name=proto.name,
            input_type=helper.strip_leading_dot(proto.input_type),
            output_type=helper.strip_leading_dot(proto.output_type),
            client_streaming=proto.client_streaming,
            server_streaming=proto.server_streaming,
        )


@dataclass(frozen=True)
class ServiceDescriptor:
    """A service and its methods, in declaration order."""

    name: str
    package: str = ""
    methods: tuple[MethodDescriptor, ...] = ()

    @classmethod
    def from_proto(cls, proto: descriptor_pb2.ServiceDescriptorProto, package: str = "") -> ServiceDescriptor:
        """Create a service record from its protobuf descriptor.

        Args:
            proto: The service descriptor, as found in `FileDescriptorProto.service`.
            package: The package of the file that declares the service.

        Returns:
            ServiceDescriptor: The immutable service record.
        """
        return cls(
            name=proto.name,
            package=package,
            methods=tuple(MethodDescriptor.from_proto(method) for method in proto.method),
        )


def services_of(file_proto: descriptor_pb2.FileDescriptorProto) -> list[ServiceDescriptor]:
    """All services declared by a file, in declaration order."""
    return [ServiceDescriptor.from_proto(service, file_proto.package) for service in file_proto.service]
