"""Top-level module for service module generation across a compilation run."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Collection, Sequence
from dataclasses import dataclass, fields

from google.protobuf import descriptor_pb2

from grpc_stub_generator import helper, proto_types
from grpc_stub_generator.descriptors import ServiceDescriptor, services_of
from grpc_stub_generator.output import IndentingWriter
from grpc_stub_generator.registry import FileContext, TypeRegistry
from grpc_stub_generator.writer import NameClashError, ServiceGenerator

logger = logging.getLogger(__name__)

PY_SUFFIX = ".py"

_TRUE_VALUES = {"", "1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class InvalidOptionError(ValueError):
    """Raised when the generator parameter contains an unknown or malformed option."""


@dataclass(frozen=True)
class GeneratorOptions:
    """Options of a generation run.

    Attributes:
        runtime_module: The module that generated code imports the RPC runtime symbols from.
        service_module_suffix: Suffix of generated module names, replacing `.proto`.
        format_output: Whether to format generated modules with ruff.
    """

    runtime_module: str = "grpc_runtime"
    service_module_suffix: str = proto_types.SERVICE_MODULE_SUFFIX
    format_output: bool = False

    @classmethod
    def from_parameter(cls, parameter: str) -> GeneratorOptions:
        """Parse a plugin parameter string such as `runtime_module=my.runtime,format_output`.

        Args:
            parameter (str): Comma-separated `key=value` pairs; a bare key sets a flag.

        Raises:
            InvalidOptionError: If a key is unknown or a value is malformed.

        Returns:
            GeneratorOptions: The parsed options.
        """
        known = {option.name for option in fields(cls)}
        values: dict[str, str | bool] = {}

        for item in parameter.split(","):
            item = item.strip()
            if not item:
                continue

            key, _, value = item.partition("=")
            key = key.strip()
            value = value.strip()

            if key not in known:
                raise InvalidOptionError(f"Unknown generator option '{key}'.")

            if key == "format_output":
                values[key] = _parse_flag(key, value)
            elif not value:
                raise InvalidOptionError(f"The generator option '{key}' requires a value.")
            else:
                values[key] = value

        return cls(**values)


def _parse_flag(key: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise InvalidOptionError(f"The generator option '{key}' expects a boolean, got '{value}'.")


class UnitGenerator:
    """Generates the service module of one compilation unit."""

    def __init__(
        self,
        file: FileContext,
        services: Sequence[ServiceDescriptor],
        options: GeneratorOptions | None = None,
    ):
        self.file = file
        self.options = options or GeneratorOptions()
        self.service_generators = [ServiceGenerator(service, file) for service in services]

    @property
    def output_file_name(self) -> str:
        """The name of the generated module file, e.g. `demo/echo_grpc.py`."""
        return helper.replace_proto_suffix(self.file.name, self.options.service_module_suffix) + PY_SUFFIX

    def resolve(self, registry: TypeRegistry) -> None:
        for service_generator in self.service_generators:
            service_generator.resolve(registry)

    def _is_unqualified(self, imported: FileContext) -> bool:
        return imported.package == self.file.package or imported.package == ""

    @staticmethod
    def _bind(bound: dict[str, str], name: str, module: str) -> None:
        """Record a module-level name bound by an import line.

        Raises:
            NameClashError: If the name is used by generated code or already bound by another import.
        """
        if name in proto_types.RESERVED_NAMES:
            raise NameClashError(
                f"The name '{name}' imported from '{module}' would shadow a name of the generated code."
            )

        other = bound.setdefault(name, module)
        if other != module:
            raise NameClashError(f"The name '{name}' is imported from both '{other}' and '{module}'.")

    @property
    def imports(self) -> list[str]:
        """Import lines for every unit that the generated services reference.

        Raises:
            NameClashError: If two imports would bind the same module-level name.
        """
        imported_files: proto_types.ImportSetType = set()
        for service_generator in self.service_generators:
            service_generator.add_imports_to(imported_files)

        names_by_file: dict[FileContext, set[str]] = {file: set() for file in imported_files}
        for service_generator in self.service_generators:
            for message_type in service_generator.dependencies.values():
                names_by_file[message_type.file].add(message_type.top_level_name)

        bound: dict[str, str] = {}
        lines: list[str] = []
        for imported in sorted(imported_files, key=lambda file: file.module):
            if self._is_unqualified(imported):
                names = sorted(names_by_file[imported])
                for name in names:
                    self._bind(bound, name, imported.module)
                lines.append(f"from {imported.module} import {helper.join_parameters(names)}")
            else:
                self._bind(bound, imported.import_alias, imported.module)
                lines.append(f"import {imported.module} as {imported.import_alias}")

        return lines

    def generate(self) -> str:
        """Generate the module text.

        Raises:
            UnresolvedTypeReference: If any service references an unknown message type.
            NameClashError: If two imports would bind the same module-level name.

        Returns:
            str: The module source.
        """
        out = IndentingWriter()
        for index, service_generator in enumerate(self.service_generators):
            if index:
                out.println()
                out.println()
            service_generator.generate(out)

        header = [
            f'"""This is an automatically generated module for `{self.file.name}`."""',
            "",
            "from __future__ import annotations",
            "",
            f"import abc as {proto_types.ABC_ALIAS}",
            f"import collections.abc as {proto_types.COLLECTIONS_ABC_ALIAS}",
            "",
            f"import {self.options.runtime_module} as {proto_types.RUNTIME_ALIAS}",
        ]

        imports = self.imports
        if imports:
            header.append("")
            header.extend(imports)

        header.extend(["", ""])
        return "\n".join(header) + "\n" + out.dumps()


def format_outputs(raw_input: str) -> str:
    """Formats raw input using ruff.

    Args:
        raw_input (str): The unformatted input.

    Returns:
        str: The formatted outputs.
    """
    try:
        # Sort imports first, then format.
        sorted_imports = subprocess.run(
            ["ruff", "check", "--fix", "--select", "I", "--stdin-filename", "generated.py", "-"],
            input=raw_input,
            capture_output=True,
            text=True,
            check=False,
        )
        intermediate = sorted_imports.stdout or raw_input

        formatted = subprocess.run(
            ["ruff", "format", "--stdin-filename", "generated.py", "-"],
            input=intermediate,
            capture_output=True,
            text=True,
            check=True,
        )
        return formatted.stdout

    except subprocess.CalledProcessError as e:
        logger.error("Ruff formatting failed: %s", e)
        logger.error("Stderr: %s", e.stderr)
        # Return unformatted output on error
        return raw_input
    except OSError as e:
        logger.error("Could not run ruff: %s", e)
        return raw_input


def generate_files(
    file_protos: Sequence[descriptor_pb2.FileDescriptorProto],
    files_to_generate: Collection[str] | None = None,
    options: GeneratorOptions | None = None,
) -> dict[str, str]:
    """Entry-point for generating service modules of a compilation run.

    Every message of every file is registered, and every service of every file to generate is
    resolved, before any module is emitted.

    Args:
        file_protos: All files of the run, including dependencies that are not generated.
        files_to_generate: Names of the files to generate modules for. Defaults to all files.
        options: Options of the run.

    Returns:
        dict[str, str]: Generated module text, keyed by output file name.
    """
    options = options or GeneratorOptions()

    registry = TypeRegistry()
    files = [registry.register_file(file_proto) for file_proto in file_protos]
    registry.resolve_all()

    units: list[UnitGenerator] = []
    for file, file_proto in zip(files, file_protos):
        if files_to_generate is not None and file.name not in files_to_generate:
            continue
        services = services_of(file_proto)
        if services:
            units.append(UnitGenerator(file, services, options))

    for unit in units:
        unit.resolve(registry)

    outputs: dict[str, str] = {}
    for unit in units:
        text = unit.generate()
        if options.format_output:
            text = format_outputs(text)
        outputs[unit.output_file_name] = text
        logger.info("Generated '%s' with %d service(s).", unit.output_file_name, len(unit.service_generators))

    return outputs
