"""Tests for tool descriptors, the built-in catalog and the registry."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import orjson
import pytest

from ocrdspi.foundation.config import CollectionKey, Configuration, ExitPolicy, Target
from ocrdspi.foundation.core import PremiseState
from ocrdspi.foundation.errors import DescriptionError
from ocrdspi.model import ArgumentKind, ModelArgument, SelectField, StringField
from ocrdspi.runtime import AsyncProcessorJob, EventController, Framework, ProcessorJob, ProcessState
from ocrdspi.tools import (
    Capabilities,
    ToolDescriptor,
    ToolMetadata,
    ToolRegistry,
    builtin_tools,
    default_registry,
    get_registry,
    reset_registry,
    set_registry,
)

from conftest import OUTPUT_GROUP, PRODUCE_OUTPUT

DESCRIPTION = {
    "executable": "ocrd-sbb-binarize",
    "categories": ["Image preprocessing"],
    "steps": ["preprocessing/optimization/binarization"],
    "parameters": {
        "operation_level": {"type": "string", "enum": ["page", "region"], "default": "page"},
        "model": {"type": "string", "required": True},
    },
}


def _docker() -> Configuration:
    return Configuration(commands=frozenset({"docker"}))


def _json_descriptor(name: str = "sbb-binarize-json", **capabilities: bool) -> ToolDescriptor:
    return ToolDescriptor(
        ToolMetadata(name=name, label="SBB binarize", description="ocr-d sbb binarize processor",
                     category="preprocessing"),
        CollectionKey("ocr-d", f"{name}-id", "ocrd-sbb-binarize"),
        capabilities=Capabilities(container_mode=False, json_mode=True, **capabilities),
        model_argument="model",
    )


@pytest.fixture
def describing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Configuration:
    """Default configuration, with an `ocrd-sbb-binarize` on PATH that prints the description."""
    bin_folder = tmp_path / "bin"
    bin_folder.mkdir()
    processor = bin_folder / "ocrd-sbb-binarize"
    processor.write_text(f"#!{sys.executable}\nprint({orjson.dumps(DESCRIPTION).decode()!r})\n")
    processor.chmod(0o755)
    monkeypatch.setenv("PATH", f"{bin_folder}{os.pathsep}{os.environ.get('PATH', '')}")
    return Configuration()


# ═════════════════════════════════════════════════════════════════════════════
# Catalog
# ═════════════════════════════════════════════════════════════════════════════


def test_builtin_tools() -> None:
    tools = {t.name: t for t in builtin_tools()}

    assert set(tools) == {
        "cis-ocropy-binarize", "tesserocr-deskew-json", "cis-ocropy-deskew-json", "sbb-binarize-json",
        "tesserocr-segment-line", "cis-ocropy-segment-json", "calamari-recognize", "tesserocr-recognize",
    }
    assert all(t.exit_policy == ExitPolicy.INTERRUPT for t in tools.values())
    assert not tools["sbb-binarize-json"].is_described
    assert tools["tesserocr-segment-line"].is_described
    assert tools["sbb-binarize-json"].capabilities.uses_resources


def test_identifier_and_description_keys() -> None:
    [segment] = [t for t in builtin_tools() if t.name == "tesserocr-segment-line"]
    cfg = Configuration.from_mapping("ocr-d", {"tesserocr-segment-line-description": "line segmentation"})

    assert segment.processor_identifier(None) == "ocrd-tesserocr-segment-line"
    assert segment.processor_description(cfg) == "line segmentation"
    assert segment.processor_description(None) == "ocr-d tesserocr segment line processor"


def test_metadata_validation() -> None:
    with pytest.raises(ValueError):
        ToolMetadata(name="Bad Name", label="x", description="long enough description")
    with pytest.raises(ValueError):
        ToolMetadata(name="ok", label="x", description="short")


# ═════════════════════════════════════════════════════════════════════════════
# Registry
# ═════════════════════════════════════════════════════════════════════════════


def test_registry_ordering() -> None:
    registry = default_registry()

    assert len(registry) == 8
    assert registry.categories() == {"preprocessing", "olr", "ocr"}
    assert [m.name for m in registry.list_by_category("ocr")] == ["calamari-recognize", "tesserocr-recognize"]
    assert [m.name for m in registry.list_by_category("preprocessing")] == [
        "cis-ocropy-binarize", "cis-ocropy-deskew-json", "tesserocr-deskew-json", "sbb-binarize-json"]
    assert [m.category for m in registry.list_tools()][:2] == ["ocr", "ocr"]


def test_registry_rejects_duplicates() -> None:
    registry = ToolRegistry(builtin_tools())
    with pytest.raises(ValueError, match="already registered"):
        registry.register(builtin_tools()[0])

    assert registry.unregister("cis-ocropy-binarize") is True
    assert registry.unregister("cis-ocropy-binarize") is False
    assert "cis-ocropy-binarize" not in registry
    assert registry.get("cis-ocropy-binarize") is None
    with pytest.raises(KeyError):
        registry["cis-ocropy-binarize"]


def test_global_registry() -> None:
    registry = get_registry()
    assert registry is get_registry()
    assert "calamari-recognize" in registry

    custom = ToolRegistry()
    set_registry(custom)
    assert get_registry() is custom
    reset_registry()
    assert get_registry() is not custom


# ═════════════════════════════════════════════════════════════════════════════
# Premises
# ═════════════════════════════════════════════════════════════════════════════


def test_container_tool_blocked_without_docker(tmp_path: Path) -> None:
    premises = default_registry().premises(Configuration(), Target(opt=tmp_path))

    assert {p.state for p in premises.values()} == {PremiseState.BLOCK}
    assert premises["calamari-recognize"].message == "The required 'docker' command is not available."


def test_resource_tools_warn_without_models(tmp_path: Path) -> None:
    premises = default_registry().premises(_docker(), Target(opt=tmp_path))

    assert premises["calamari-recognize"].state == PremiseState.WARN
    assert "ocrd-calamari-recognize" in premises["calamari-recognize"].message
    assert premises["tesserocr-recognize"].state == PremiseState.WARN
    assert premises["tesserocr-segment-line"].is_ok


def test_resource_tools_ok_with_models(tmp_path: Path) -> None:
    resources = tmp_path / "ocr-d" / "resources"
    (resources / "ocrd-calamari-recognize" / "antiqua").mkdir(parents=True)
    (resources / "ocrd-tesserocr-recognize").mkdir(parents=True)
    (resources / "ocrd-tesserocr-recognize" / "frk.traineddata").write_text("x")

    premises = default_registry().premises(_docker(), Target(opt=tmp_path))

    assert premises["calamari-recognize"].is_ok
    assert premises["tesserocr-recognize"].is_ok


def test_native_tool_needs_executable() -> None:
    descriptor = _json_descriptor()
    assert descriptor.premise(None, None).is_blocked

    cfg = Configuration()
    cfg.set(descriptor.processor_key, sys.executable)
    assert descriptor.premise(cfg, None).is_ok


# ═════════════════════════════════════════════════════════════════════════════
# Models & Jobs
# ═════════════════════════════════════════════════════════════════════════════


def test_model_offers_installed_models(tmp_path: Path) -> None:
    folder = tmp_path / "ocr-d" / "resources" / "ocrd-calamari-recognize"
    for name in ("antiqua", "fraktur_historical"):
        (folder / name).mkdir(parents=True)
    calamari = default_registry()["calamari-recognize"]

    model = calamari.model(Configuration(), Target(opt=tmp_path), pre=[StringField(argument="id")])

    assert model.arguments() == ["id", "model", "voter", "level-text-equivalence", "glyph-confidence-cutoff"]
    field = model.get("model")
    assert isinstance(field, SelectField)
    assert field.selected == ["fraktur_historical"]


def test_multiple_model_selection(tmp_path: Path) -> None:
    folder = tmp_path / "ocr-d" / "resources" / "ocrd-tesserocr-recognize"
    folder.mkdir(parents=True)
    for name in ("Fraktur_GT4HistOCR", "deu", "eng"):
        (folder / f"{name}.traineddata").write_text("x")

    field = default_registry()["tesserocr-recognize"].model(Configuration(), Target(opt=tmp_path)).get("models")

    assert field.multiple
    assert [o.value for o in field.options] == ["deu", "eng", "Fraktur_GT4HistOCR"]
    assert field.selected == ["Fraktur_GT4HistOCR"]


def test_container_job_command(framework: Framework) -> None:
    segment = default_registry()["tesserocr-segment-line"]
    binder = segment.binder(None)

    command = segment.command_builder(None)(framework, binder.bind(ModelArgument.of(dpi=300)))

    assert command.program == "docker"
    assert command.arguments[-7:] == (
        "ocrd-tesserocr-segment-line", "-I", "OCR-D-1", "-O", OUTPUT_GROUP,
        "-p", '{"dpi":300,"overwrite_lines":true,"padding":0,"shrink_polygons":false}',
    )


def test_new_job() -> None:
    segment = default_registry()["tesserocr-segment-line"]
    job = segment.new_job(None)

    assert type(job) is ProcessorJob
    assert job.processor == "ocrd-tesserocr-segment-line"
    assert job.exit_policy == ExitPolicy.INTERRUPT
    assert job.stop_grace == 2.0


def test_new_job_stop_grace_is_configured_per_tool() -> None:
    cfg = Configuration.from_mapping("ocr-d", {"docker-stop-wait-kill-seconds": "7"})
    assert default_registry()["tesserocr-segment-line"].new_job(cfg).stop_grace == 7.0
    assert _json_descriptor().new_job(cfg).stop_grace == 7.0


def test_async_tool_needs_controller() -> None:
    descriptor = _json_descriptor(async_mode=True)
    with pytest.raises(ValueError, match="needs an EventController"):
        descriptor.new_job(None)

    controller = EventController(workers=1)
    try:
        assert isinstance(descriptor.new_job(None, controller=controller), AsyncProcessorJob)
    finally:
        controller.shutdown()


def test_native_job_runs_processor(tmp_path: Path, framework: Framework) -> None:
    processor = tmp_path / "ocrd-fake"
    processor.write_text(f"#!{sys.executable}\n{PRODUCE_OUTPUT}")
    processor.chmod(0o755)
    descriptor = ToolDescriptor(
        ToolMetadata(name="fake", label="fake", description="processor writing one page"),
        CollectionKey("ocr-d", "fake-id", str(processor)),
        capabilities=Capabilities(container_mode=False),
    )
    completed: list[ProcessorJob] = []

    job = descriptor.new_job(None, on_complete=completed.append)
    state = job.execute(None, framework, ModelArgument.of(extra=1))

    assert state == ProcessState.COMPLETED
    assert completed == [job]
    assert (framework.output / "page_1.xml").exists()
    assert "-p" in job.standard_output and '{"extra":1}' in job.standard_output


# ═════════════════════════════════════════════════════════════════════════════
# JSON-described Tools
# ═════════════════════════════════════════════════════════════════════════════


def test_load_description(describing: Configuration, tmp_path: Path) -> None:
    loaded = _json_descriptor().load(describing)

    assert loaded.is_described
    assert loaded.metadata.categories == ("Image preprocessing",)
    assert loaded.capabilities.uses_resources
    assert [(p.argument, p.kind) for p in loaded.parameters] == [
        ("operation_level", ArgumentKind.SELECT), ("model", ArgumentKind.SELECT)]

    (tmp_path / "opt" / "ocr-d" / "resources" / "ocrd-sbb-binarize" / "default").mkdir(parents=True)
    model = loaded.model(describing, Target(opt=tmp_path / "opt"))
    assert [o.value for o in model.get("model").options] == ["default"]

    bound = loaded.binder(describing).bind(ModelArgument.of(model=["default"]))
    assert bound.parameters(exclude_unset=True) == {"model": "default"}


def test_describe_failure(tmp_path: Path) -> None:
    script = tmp_path / "fail.py"
    script.write_text("import sys\nsys.stderr.write('unknown processor')\nsys.exit(2)\n")
    cfg = Configuration.from_mapping("ocr-d", {"json": str(script)})
    descriptor = _json_descriptor()
    cfg.set(descriptor.processor_key, sys.executable)

    with pytest.raises(DescriptionError, match=r"unknown processor \(process exit code 2\)"):
        descriptor.describe(cfg)


def test_describe_missing_program(tmp_path: Path) -> None:
    descriptor = _json_descriptor()
    cfg = Configuration()
    cfg.set(descriptor.processor_key, str(tmp_path / "missing"))

    with pytest.raises(DescriptionError, match="could not run"):
        descriptor.describe(cfg)


def test_registry_loads_descriptions(describing: Configuration) -> None:
    registry = ToolRegistry([_json_descriptor(), _json_descriptor("broken-json")])
    describing.set(registry["broken-json"].processor_key, "/nonexistent/ocrd-broken")

    failures = registry.load_descriptions(describing)

    assert set(failures) == {"broken-json"}
    assert registry["sbb-binarize-json"].is_described
    assert not registry["broken-json"].is_described
    assert registry.load_descriptions(describing).keys() == {"broken-json"}
