"""Pytest configuration and fixtures for grpc stub generator tests."""

from __future__ import annotations

import pytest

from grpc_stub_generator.descriptors import MethodDescriptor, ServiceDescriptor
from grpc_stub_generator.output import IndentingWriter
from grpc_stub_generator.registry import FileContext, TypeRegistry
from grpc_stub_generator.writer import ServiceGenerator


@pytest.fixture
def demo_file() -> FileContext:
    """The unit `demo/echo.proto` in package `demo`."""
    return FileContext.create("demo/echo.proto", "demo")


@pytest.fixture
def common_file() -> FileContext:
    """A unit of another package, `common`."""
    return FileContext.create("common/empty.proto", "common")


@pytest.fixture
def global_file() -> FileContext:
    """A unit without a package."""
    return FileContext.create("timestamp.proto")


@pytest.fixture
def registry(demo_file, common_file, global_file) -> TypeRegistry:
    """A resolved registry with message types in three units."""
    registry = TypeRegistry()
    registry.register_message(demo_file, "demo.EchoRequest", "EchoRequest")
    registry.register_message(demo_file, "demo.EchoResponse", "EchoResponse")
    registry.register_message(demo_file, "demo.ChatMessage", "ChatMessage")
    registry.register_message(demo_file, "demo.Outer.Inner", "Outer.Inner")
    registry.register_message(common_file, "common.Empty", "Empty")
    registry.register_message(global_file, "Timestamp", "Timestamp")
    registry.resolve_all()
    return registry


@pytest.fixture
def out() -> IndentingWriter:
    return IndentingWriter()


def unary(name: str, input_type: str = "demo.EchoRequest", output_type: str = "demo.EchoResponse") -> MethodDescriptor:
    return MethodDescriptor(name, input_type, output_type)


def make_service(name: str, *methods: MethodDescriptor, package: str = "demo") -> ServiceDescriptor:
    return ServiceDescriptor(name=name, package=package, methods=tuple(methods))


def resolved_generator(descriptor: ServiceDescriptor, file: FileContext, registry: TypeRegistry) -> ServiceGenerator:
    generator = ServiceGenerator(descriptor, file)
    generator.resolve(registry)
    return generator
